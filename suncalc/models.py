"""Result types and configuration models for the sun and moon calculations."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import ClassVar, Dict, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "TimesEntry",
    "EquatorialCoords",
    "MoonCoords",
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

Angle = Union[float, np.ndarray]


class TimesEntry(BaseModel):
    """One row of the sun times table: a solar altitude and its two labels."""

    model_config = ConfigDict(frozen=True)

    angle: float = Field(
        ...,
        ge=-90.0,
        le=90.0,
        allow_inf_nan=False,
        description="Solar altitude in degrees",
    )
    rise_label: str = Field(..., description="Key of the morning crossing")
    set_label: str = Field(..., description="Key of the evening crossing")

    @field_validator("rise_label", "set_label")
    @classmethod
    def validate_label(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("label must not be blank")
        return value


@dataclass(frozen=True)
class EquatorialCoords:
    """Right ascension and declination in radians."""

    right_ascension: Angle
    declination: Angle


@dataclass(frozen=True)
class MoonCoords(EquatorialCoords):
    distance: Angle  # km


@dataclass(frozen=True)
class SunPosition:
    azimuth: float
    altitude: float


@dataclass(frozen=True)
class MoonPosition:
    """Apparent position of the Moon.

    ``altitude`` includes the refraction correction, ``distance`` is the
    Earth-Moon distance in kilometres and all angles are in radians.
    """

    azimuth: float
    altitude: float
    distance: float
    parallactic_angle: float


@dataclass(frozen=True)
class MoonIllumination:
    """Illuminated fraction, phase in [0, 1) and bright limb angle in radians."""

    fraction: float
    phase: float
    angle: float


class MoonTimes:
    """Outcome of a moonrise/moonset search over one calendar day.

    Exactly one of the subclasses is returned: :class:`Rise`, :class:`Set`,
    :class:`RiseAndSet`, :class:`AlwaysUp` or :class:`AlwaysDown`.
    """

    always_up: ClassVar[bool] = False
    always_down: ClassVar[bool] = False

    def as_dict(self) -> Dict[str, object]:
        """Return the ``rise``/``set``/``alwaysUp``/``alwaysDown`` mapping."""

        result: Dict[str, object] = {}
        for key in ("rise", "set"):
            value = getattr(self, key, None)
            if value is not None:
                result[key] = value
        if self.always_up:
            result["alwaysUp"] = True
        if self.always_down:
            result["alwaysDown"] = True
        return result


@dataclass(frozen=True)
class Rise(MoonTimes):
    rise: datetime


@dataclass(frozen=True)
class Set(MoonTimes):
    set: datetime


@dataclass(frozen=True)
class RiseAndSet(MoonTimes):
    rise: datetime
    set: datetime


@dataclass(frozen=True)
class AlwaysUp(MoonTimes):
    always_up: ClassVar[bool] = True


@dataclass(frozen=True)
class AlwaysDown(MoonTimes):
    always_down: ClassVar[bool] = True
