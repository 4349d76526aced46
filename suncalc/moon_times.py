"""Moonrise and moonset times by quadratic interpolation of sampled altitudes.

The search follows http://www.stargazing.net/kepler/moonrise.html: the day
is walked in 2-hour windows and a parabola through three altitude samples
tells whether, and where, the Moon crosses the horizon in that window.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Optional, Sequence

import numpy as np

from .astro import RAD, moon_altitude
from .models import AlwaysDown, AlwaysUp, MoonTimes, Rise, RiseAndSet, Set
from .timescale import days_since_j2000, hours_later

__all__ = [
    "HORIZON_ALTITUDE",
    "SAMPLE_HOURS",
    "WindowCrossings",
    "DayCrossings",
    "quadratic_crossings",
    "scan_crossings",
    "get_moon_times",
]

LOGGER = logging.getLogger(__name__)

HORIZON_ALTITUDE = 0.133 * RAD
SAMPLE_HOURS = 25  # hour 0, then hours i and i + 1 for every window
WINDOW_STARTS = range(1, SAMPLE_HOURS - 1, 2)


@dataclass(frozen=True)
class WindowCrossings:
    """Horizon crossings of the parabola fitted to one 2-hour window.

    ``x1`` and ``x2`` are in window units (-1 at the first sample, 1 at the
    last) and are NaN when the parabola has no real roots. When only ``x2``
    lies inside the window it is also reported as ``x1``. ``ye`` is the
    value of the parabola at its vertex.
    """

    roots: int
    x1: float
    x2: float
    ye: float


@dataclass(frozen=True)
class DayCrossings:
    """Rise and set offsets in hours after midnight, and the last vertex value."""

    rise: Optional[float]
    set: Optional[float]
    ye: float


def quadratic_crossings(h0: float, h1: float, h2: float) -> WindowCrossings:
    """Fit a parabola through ``(-1, h0)``, ``(0, h1)``, ``(1, h2)`` and find its zeros.

    Degenerate (flat or linear) samples yield NaN or infinite intermediate
    values and report no roots.
    """

    h0, h1, h2 = np.float64(h0), np.float64(h1), np.float64(h2)
    x1 = x2 = np.float64(np.nan)
    roots = 0

    with np.errstate(divide="ignore", invalid="ignore"):
        a = (h0 + h2) / 2 - h1
        b = (h2 - h0) / 2
        xe = -b / (2 * a)
        ye = (a * xe + b) * xe + h1
        d = b * b - 4 * a * h1

        if d >= 0:
            dx = np.sqrt(d) / (np.abs(a) * 2)
            x1 = xe - dx
            x2 = xe + dx
            if np.abs(x1) <= 1:
                roots += 1
            if np.abs(x2) <= 1:
                roots += 1
            if x1 < -1:
                x1 = x2

    return WindowCrossings(roots=roots, x1=float(x1), x2=float(x2), ye=float(ye))


def scan_crossings(samples: Sequence[float]) -> DayCrossings:
    """Walk the 2-hour windows of a day of horizon-relative altitudes.

    *samples* holds the altitude minus the horizon threshold at whole hours
    0 to 24 after midnight. A window starting at hour ``i`` spans hours
    ``i - 1`` to ``i + 1``. Scanning stops once both a rise and a set are
    known; until then a later crossing of the same kind replaces an earlier
    one.
    """

    if len(samples) != SAMPLE_HOURS:
        raise ValueError(
            f"expected {SAMPLE_HOURS} hourly samples, got {len(samples)}"
        )

    rise: Optional[float] = None
    set_: Optional[float] = None
    ye = float("nan")
    h0 = samples[0]

    for i in WINDOW_STARTS:
        h1 = samples[i]
        h2 = samples[i + 1]
        window = quadratic_crossings(h0, h1, h2)
        ye = window.ye

        if window.roots == 1:
            if h0 < 0:
                rise = i + window.x1
            else:
                set_ = i + window.x1
        elif window.roots == 2:
            rise = i + (window.x2 if ye < 0 else window.x1)
            set_ = i + (window.x1 if ye < 0 else window.x2)

        if rise is not None and set_ is not None:
            break

        h0 = h2

    return DayCrossings(rise=rise, set=set_, ye=ye)


def get_moon_times(
    dt: datetime, lat: float, lng: float, is_utc: bool = False
) -> MoonTimes:
    """Find moonrise and moonset within the calendar day containing *dt*.

    Parameters
    ----------
    dt:
        Timezone-aware instant selecting the day.
    lat, lng:
        Geographic coordinates in degrees (east-positive longitude).
    is_utc:
        Search the UTC calendar day. Otherwise the day runs from midnight
        to midnight in *dt*'s own tzinfo, not the process's local timezone,
        so an aware UTC *dt* searches the UTC day either way.

    Returns
    -------
    MoonTimes
        :class:`Rise`, :class:`Set` or :class:`RiseAndSet` when the Moon
        crosses the horizon; otherwise :class:`AlwaysUp` or
        :class:`AlwaysDown`. Returned datetimes share the day's timezone.
    """

    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")

    local = dt.astimezone(UTC) if is_utc else dt
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)

    days = np.array(
        [days_since_j2000(hours_later(midnight, hour)) for hour in range(SAMPLE_HOURS)]
    )
    samples = moon_altitude(days, lat, lng) - HORIZON_ALTITUDE
    crossings = scan_crossings(samples)

    result: MoonTimes
    if crossings.rise is not None and crossings.set is not None:
        result = RiseAndSet(
            rise=hours_later(midnight, crossings.rise),
            set=hours_later(midnight, crossings.set),
        )
    elif crossings.rise is not None:
        result = Rise(rise=hours_later(midnight, crossings.rise))
    elif crossings.set is not None:
        result = Set(set=hours_later(midnight, crossings.set))
    elif crossings.ye > 0:
        result = AlwaysUp()
    else:
        result = AlwaysDown()

    LOGGER.debug(
        json.dumps(
            {
                "event": "moon_times",
                "midnight": midnight.isoformat(),
                "lat": lat,
                "lng": lng,
                "result": type(result).__name__,
            }
        )
    )
    return result
