"""Sunrise, sunset and twilight times from closed-form transit formulas."""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Mapping
from datetime import datetime
from threading import Lock
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

import numpy as np
from pydantic import ValidationError

from .astro import RAD, declination, ecliptic_longitude, solar_mean_anomaly
from .models import TimesEntry
from .timescale import J2000, days_since_j2000, from_julian_day

__all__ = [
    "DEFAULT_TIMES",
    "TimesConfigError",
    "TimesRegistry",
    "get_times",
]

LOGGER = logging.getLogger(__name__)

# (angle in degrees, morning label, evening label)
DEFAULT_TIMES: Tuple[Tuple[float, str, str], ...] = (
    (-0.833, "sunrise", "sunset"),
    (-0.3, "sunriseEnd", "sunsetStart"),
    (-6.0, "dawn", "dusk"),
    (-12.0, "nauticalDawn", "nauticalDusk"),
    (-18.0, "nightEnd", "night"),
    (6.0, "goldenHourEnd", "goldenHour"),
)

J0 = 0.0009

TimesRow = Union[TimesEntry, Mapping, Tuple[float, str, str]]


class TimesConfigError(ValueError):
    """Raised when a sun times entry fails validation."""


def _to_entry(row: TimesRow) -> TimesEntry:
    if isinstance(row, TimesEntry):
        return row
    try:
        if isinstance(row, Mapping):
            return TimesEntry.model_validate(row)
        angle, rise_label, set_label = row
        return TimesEntry(angle=angle, rise_label=rise_label, set_label=set_label)
    except ValidationError as exc:
        raise TimesConfigError(f"Invalid sun times entry {row!r}: {exc}") from exc
    except (TypeError, ValueError) as exc:
        raise TimesConfigError(
            f"Sun times entry must be (angle, rise_label, set_label): {row!r}"
        ) from exc


class TimesRegistry:
    """Ordered table of solar altitudes for which :func:`get_times` reports times.

    A registry starts with :data:`DEFAULT_TIMES`. Entries are appended with
    :meth:`register`; duplicate labels are allowed and the later entry wins
    in the results. Readers always get an immutable snapshot of the table,
    so a registry can be shared between threads.
    """

    def __init__(self, entries: Optional[Iterable[TimesRow]] = None) -> None:
        rows = DEFAULT_TIMES if entries is None else entries
        self._entries: Tuple[TimesEntry, ...] = tuple(_to_entry(row) for row in rows)
        self._lock = Lock()

    @classmethod
    def default(cls) -> "TimesRegistry":
        return cls()

    @classmethod
    def empty(cls) -> "TimesRegistry":
        return cls(())

    @classmethod
    def from_config(cls, rows: Iterable[TimesRow]) -> "TimesRegistry":
        """Build a registry from mappings or ``(angle, rise, set)`` triples.

        Raises
        ------
        TimesConfigError
            If any row is malformed.
        """

        return cls(list(rows))

    @property
    def entries(self) -> Tuple[TimesEntry, ...]:
        return self._entries

    def register(self, angle: float, rise_label: str, set_label: str) -> None:
        """Append an entry reported under *rise_label* and *set_label*."""

        entry = _to_entry((angle, rise_label, set_label))
        with self._lock:
            self._entries = self._entries + (entry,)
        LOGGER.debug(
            json.dumps(
                {
                    "event": "times_entry_registered",
                    "angle": entry.angle,
                    "rise": entry.rise_label,
                    "set": entry.set_label,
                }
            )
        )

    def __iter__(self) -> Iterator[TimesEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self._entries)!r})"


def julian_cycle(d: float, lw: float) -> float:
    # half-up, not banker's rounding; NaN and inf pass through
    return np.floor(d - J0 - lw / (2 * np.pi) + 0.5)


def approx_transit(Ht: float, lw: float, n: float) -> float:
    return J0 + (Ht + lw) / (2 * math.pi) + n


def solar_transit_j(ds: float, M: float, L: float) -> float:
    return J2000 + ds + 0.0053 * np.sin(M) - 0.0069 * np.sin(2 * L)


def hour_angle(h: float, phi: float, dec: float) -> float:
    """Hour angle at which the Sun reaches altitude *h*; NaN if it never does."""

    with np.errstate(invalid="ignore", divide="ignore"):
        return np.arccos(
            (np.sin(h) - np.sin(phi) * np.sin(dec)) / (np.cos(phi) * np.cos(dec))
        )


def _set_j(
    h: float, lw: float, phi: float, dec: float, n: float, M: float, L: float
) -> float:
    w = hour_angle(h, phi, dec)
    return solar_transit_j(approx_transit(w, lw, n), M, L)


def get_times(
    dt: datetime,
    lat: float,
    lng: float,
    registry: Optional[TimesRegistry] = None,
) -> Dict[str, Optional[datetime]]:
    """Compute solar noon, nadir and the registry's rise/set times.

    Parameters
    ----------
    dt:
        Timezone-aware instant selecting the day.
    lat, lng:
        Geographic coordinates in degrees (east-positive longitude).
    registry:
        Table of altitudes to report. A fresh default registry is used when
        omitted.

    Returns
    -------
    dict
        ``solarNoon`` and ``nadir`` followed by each entry's rise and set
        labels, as UTC datetimes truncated to the millisecond. A label maps
        to ``None`` when the Sun does not reach the entry's altitude on that
        day (polar day or night).
    """

    if registry is None:
        registry = TimesRegistry.default()

    lw = RAD * -lng
    phi = RAD * lat

    d = days_since_j2000(dt)
    with np.errstate(invalid="ignore"):
        n = julian_cycle(d, lw)
        ds = approx_transit(0, lw, n)

        M = solar_mean_anomaly(ds)
        L = ecliptic_longitude(M)
        dec = declination(L, 0.0)

        j_noon = solar_transit_j(ds, M, L)

    result: Dict[str, Optional[datetime]] = {
        "solarNoon": from_julian_day(j_noon),
        "nadir": from_julian_day(j_noon - 0.5),
    }

    for entry in registry.entries:
        with np.errstate(invalid="ignore"):
            j_set = _set_j(entry.angle * RAD, lw, phi, dec, n, M, L)
        j_rise = j_noon - (j_set - j_noon)

        result[entry.rise_label] = from_julian_day(j_rise)
        result[entry.set_label] = from_julian_day(j_set)
        if math.isnan(j_set):
            LOGGER.debug(
                json.dumps(
                    {
                        "event": "sun_time_undefined",
                        "angle": entry.angle,
                        "labels": [entry.rise_label, entry.set_label],
                        "lat": lat,
                        "lng": lng,
                    }
                )
            )

    return result
