"""Conversions between datetimes and the Julian day axis used by the formulas."""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Optional

import erfa

__all__ = [
    "J1970",
    "J2000",
    "DAY_MS",
    "to_julian_day",
    "from_julian_day",
    "days_since_j2000",
    "hours_later",
]

J1970 = 2440588.0  # Julian day of the Unix epoch, offset by half a day.
J2000 = erfa.DJ00
DAY_MS = erfa.DAYSEC * 1000.0

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_MS = timedelta(milliseconds=1)
_MIN_MS = (datetime.min.replace(tzinfo=UTC) - _EPOCH) // _ONE_MS
_MAX_MS = (datetime.max.replace(tzinfo=UTC) - _EPOCH) // _ONE_MS


def _epoch_millis(dt: datetime) -> int:
    if dt.tzinfo is None:
        raise ValueError("datetime must be timezone-aware")
    return (dt - _EPOCH) // _ONE_MS


def _from_epoch_millis(millis: float) -> Optional[datetime]:
    if not math.isfinite(millis):
        return None
    value = int(millis)
    if not _MIN_MS <= value <= _MAX_MS:
        return None
    return _EPOCH + timedelta(milliseconds=value)


def to_julian_day(dt: datetime) -> float:
    """Return the Julian day number of a timezone-aware *dt*.

    The instant is first reduced to whole epoch milliseconds, so anything
    finer than a millisecond does not reach the formulas.
    """

    return _epoch_millis(dt) / DAY_MS - 0.5 + J1970


def from_julian_day(j: float) -> Optional[datetime]:
    """Return the UTC instant for Julian day *j*, truncated to the millisecond.

    Returns ``None`` when *j* is NaN, infinite or outside the range a
    :class:`~datetime.datetime` can hold. Sun times at extreme latitudes
    rely on this to report angles the Sun never reaches.
    """

    return _from_epoch_millis((j + 0.5 - J1970) * DAY_MS)


def days_since_j2000(dt: datetime) -> float:
    return to_julian_day(dt) - J2000


def hours_later(dt: datetime, hours: float) -> datetime:
    """Shift *dt* by fractional *hours*, keeping its tzinfo."""

    shifted = _from_epoch_millis(_epoch_millis(dt) + hours * DAY_MS / 24)
    if shifted is None:
        raise OverflowError(f"{dt.isoformat()} + {hours} hours is out of range")
    return shifted.astimezone(dt.tzinfo)
