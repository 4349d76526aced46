"""Sun and moon positions, rise/set times and moon phases."""

from .astro import get_moon_illumination, get_moon_position, get_position
from .models import (
    AlwaysDown,
    AlwaysUp,
    MoonIllumination,
    MoonPosition,
    MoonTimes,
    Rise,
    RiseAndSet,
    Set,
    SunPosition,
    TimesEntry,
)
from .moon_times import get_moon_times
from .sun_times import DEFAULT_TIMES, TimesConfigError, TimesRegistry, get_times
from .timescale import days_since_j2000, from_julian_day, to_julian_day

__all__ = [
    "get_position",
    "get_times",
    "get_moon_position",
    "get_moon_illumination",
    "get_moon_times",
    "to_julian_day",
    "from_julian_day",
    "days_since_j2000",
    "TimesRegistry",
    "TimesEntry",
    "TimesConfigError",
    "DEFAULT_TIMES",
    "SunPosition",
    "MoonPosition",
    "MoonIllumination",
    "MoonTimes",
    "Rise",
    "Set",
    "RiseAndSet",
    "AlwaysUp",
    "AlwaysDown",
]
