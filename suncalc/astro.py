"""Low-precision sun and moon positions.

Sun formulas follow http://aa.quae.nl/en/reken/zonpositie.html, moon formulas
http://aa.quae.nl/en/reken/hemelpositie.html. Everything is a direct
evaluation of fixed trigonometric series; the helpers are NumPy ufunc
expressions and accept scalars or arrays of day numbers alike.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Tuple

import numpy as np

from .models import (
    Angle,
    EquatorialCoords,
    MoonCoords,
    MoonIllumination,
    MoonPosition,
    SunPosition,
)
from .timescale import days_since_j2000

__all__ = [
    "RAD",
    "right_ascension",
    "declination",
    "azimuth",
    "altitude",
    "sidereal_time",
    "astro_refraction",
    "solar_mean_anomaly",
    "ecliptic_longitude",
    "sun_coords",
    "moon_coords",
    "moon_altitude",
    "get_position",
    "get_moon_position",
    "get_moon_illumination",
]

RAD = math.pi / 180.0
OBLIQUITY = RAD * 23.4397  # Obliquity of the Earth.
EARTH_PERIHELION = RAD * 102.9372
SUN_DISTANCE_KM = 149598000.0


def right_ascension(l: Angle, b: Angle) -> Angle:
    return np.arctan2(
        np.sin(l) * np.cos(OBLIQUITY) - np.tan(b) * np.sin(OBLIQUITY), np.cos(l)
    )


def declination(l: Angle, b: Angle) -> Angle:
    return np.arcsin(
        np.sin(b) * np.cos(OBLIQUITY) + np.cos(b) * np.sin(OBLIQUITY) * np.sin(l)
    )


def azimuth(H: Angle, phi: float, dec: Angle) -> Angle:
    return np.arctan2(np.sin(H), np.cos(H) * np.sin(phi) - np.tan(dec) * np.cos(phi))


def altitude(H: Angle, phi: float, dec: Angle) -> Angle:
    return np.arcsin(
        np.sin(phi) * np.sin(dec) + np.cos(phi) * np.cos(dec) * np.cos(H)
    )


def sidereal_time(d: Angle, lw: float) -> Angle:
    return RAD * (280.16 + 360.9856235 * d) - lw


def astro_refraction(h: Angle) -> Angle:
    """Return the refraction correction in radians to add to altitude *h*.

    Formula 16.4 of Meeus, "Astronomical Algorithms" (2nd ed.), rescaled to
    radians. It only holds for positive altitudes, so negative ones are
    clamped to the horizon; at h = -0.08901179 the unclamped formula divides
    by zero.
    """

    h = np.maximum(h, 0.0)
    return 0.0002967 / np.tan(h + 0.00312536 / (h + 0.08901179))


def solar_mean_anomaly(d: Angle) -> Angle:
    return RAD * (357.5291 + 0.98560028 * d)


def ecliptic_longitude(M: Angle) -> Angle:
    # equation of center
    C = RAD * (1.9148 * np.sin(M) + 0.02 * np.sin(2 * M) + 0.0003 * np.sin(3 * M))
    return M + C + EARTH_PERIHELION + math.pi


def sun_coords(d: Angle) -> EquatorialCoords:
    L = ecliptic_longitude(solar_mean_anomaly(d))
    return EquatorialCoords(
        right_ascension=right_ascension(L, 0.0),
        declination=declination(L, 0.0),
    )


def moon_coords(d: Angle) -> MoonCoords:
    """Geocentric equatorial coordinates and distance of the Moon."""

    L = RAD * (218.316 + 13.176396 * d)  # ecliptic longitude
    M = RAD * (134.963 + 13.064993 * d)  # mean anomaly
    F = RAD * (93.272 + 13.229350 * d)  # argument of latitude

    l = L + RAD * 6.289 * np.sin(M)
    b = RAD * 5.128 * np.sin(F)
    return MoonCoords(
        right_ascension=right_ascension(l, b),
        declination=declination(l, b),
        distance=385001.0 - 20905.0 * np.cos(M),
    )


def _moon_horizontal(
    d: Angle, lat: float, lng: float
) -> Tuple[Angle, float, MoonCoords, Angle]:
    """Return hour angle, latitude, coordinates and corrected altitude."""

    lw = RAD * -lng
    phi = RAD * lat
    coords = moon_coords(d)
    H = sidereal_time(d, lw) - coords.right_ascension
    h = altitude(H, phi, coords.declination)
    return H, phi, coords, h + astro_refraction(h)


def moon_altitude(d: Angle, lat: float, lng: float) -> Angle:
    """Refraction-corrected altitude of the Moon for day number(s) *d*."""

    return _moon_horizontal(d, lat, lng)[3]


def get_position(dt: datetime, lat: float, lng: float) -> SunPosition:
    """Compute the Sun's azimuth and altitude for *dt* at *lat*/*lng*.

    Parameters
    ----------
    dt:
        Timezone-aware instant.
    lat, lng:
        Geographic coordinates in degrees (east-positive longitude).

    Returns
    -------
    SunPosition
        Azimuth (measured from south, west-positive) and altitude in
        radians. The altitude is geometric; no refraction is applied.
    """

    lw = RAD * -lng
    phi = RAD * lat
    d = days_since_j2000(dt)
    coords = sun_coords(d)
    H = sidereal_time(d, lw) - coords.right_ascension
    return SunPosition(
        azimuth=float(azimuth(H, phi, coords.declination)),
        altitude=float(altitude(H, phi, coords.declination)),
    )


def get_moon_position(dt: datetime, lat: float, lng: float) -> MoonPosition:
    """Compute the Moon's apparent position for *dt* at *lat*/*lng*.

    The altitude is corrected for atmospheric refraction. The parallactic
    angle follows formula 14.1 of Meeus, "Astronomical Algorithms".
    """

    d = days_since_j2000(dt)
    H, phi, coords, h = _moon_horizontal(d, lat, lng)
    dec = coords.declination
    pa = np.arctan2(np.sin(H), np.tan(phi) * np.cos(dec) - np.sin(dec) * np.cos(H))
    return MoonPosition(
        azimuth=float(azimuth(H, phi, dec)),
        altitude=float(h),
        distance=float(coords.distance),
        parallactic_angle=float(pa),
    )


def get_moon_illumination(dt: datetime) -> MoonIllumination:
    """Compute the Moon's illuminated fraction, phase and bright limb angle.

    Based on the IDL Astronomy Library ``mphase`` routine and chapter 48 of
    Meeus, "Astronomical Algorithms". Phase runs from 0 (new moon) through
    0.5 (full moon) back towards 1; it is below 0.5 while waxing.
    """

    d = days_since_j2000(dt)
    s = sun_coords(d)
    m = moon_coords(d)
    delta_ra = s.right_ascension - m.right_ascension

    with np.errstate(invalid="ignore"):
        phi = np.arccos(
            np.sin(s.declination) * np.sin(m.declination)
            + np.cos(s.declination) * np.cos(m.declination) * np.cos(delta_ra)
        )
    inc = np.arctan2(
        SUN_DISTANCE_KM * np.sin(phi), m.distance - SUN_DISTANCE_KM * np.cos(phi)
    )
    angle = np.arctan2(
        np.cos(s.declination) * np.sin(delta_ra),
        np.sin(s.declination) * np.cos(m.declination)
        - np.cos(s.declination) * np.sin(m.declination) * np.cos(delta_ra),
    )
    sign = -1.0 if angle < 0 else 1.0

    return MoonIllumination(
        fraction=float((1 + np.cos(inc)) / 2),
        phase=float(0.5 + 0.5 * inc * sign / math.pi),
        angle=float(angle),
    )
