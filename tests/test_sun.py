from __future__ import annotations

import math
import threading
from datetime import UTC, datetime, timedelta
from typing import Dict, Optional

import pytest
from pydantic import ValidationError

from suncalc import (
    TimesConfigError,
    TimesEntry,
    TimesRegistry,
    get_position,
    get_times,
)
from suncalc.astro import RAD, altitude, sidereal_time, sun_coords
from suncalc.timescale import days_since_j2000

KYIV_DATE = datetime(2013, 3, 5, tzinfo=UTC)
KYIV_LAT = 50.5
KYIV_LNG = 30.5

EXPECTED_TIMES = {
    "solarNoon": "2013-03-05T10:10:57",
    "nadir": "2013-03-04T22:10:57",
    "sunrise": "2013-03-05T04:34:56",
    "sunset": "2013-03-05T15:46:57",
    "sunriseEnd": "2013-03-05T04:38:19",
    "sunsetStart": "2013-03-05T15:43:34",
    "dawn": "2013-03-05T04:02:17",
    "dusk": "2013-03-05T16:19:36",
    "nauticalDawn": "2013-03-05T03:24:31",
    "nauticalDusk": "2013-03-05T16:57:22",
    "nightEnd": "2013-03-05T02:46:17",
    "night": "2013-03-05T17:35:36",
    "goldenHourEnd": "2013-03-05T05:19:01",
    "goldenHour": "2013-03-05T15:02:52",
}

DAY_ORDER = [
    "nightEnd",
    "nauticalDawn",
    "dawn",
    "sunrise",
    "sunriseEnd",
    "goldenHourEnd",
    "solarNoon",
    "goldenHour",
    "sunsetStart",
    "sunset",
    "dusk",
    "nauticalDusk",
    "night",
]


@pytest.fixture
def kyiv_times() -> Dict[str, Optional[datetime]]:
    return get_times(KYIV_DATE, KYIV_LAT, KYIV_LNG)


def test_sun_position_reference() -> None:
    position = get_position(KYIV_DATE, KYIV_LAT, KYIV_LNG)
    assert position.azimuth == pytest.approx(-2.5003175907168385, abs=1e-9)
    assert position.altitude == pytest.approx(-0.7000406838781611, abs=1e-9)


def test_sun_altitude_is_not_refracted() -> None:
    dt = datetime(2022, 6, 1, 5, 0, tzinfo=UTC)
    d = days_since_j2000(dt)
    coords = sun_coords(d)
    H = sidereal_time(d, RAD * -KYIV_LNG) - coords.right_ascension
    raw = altitude(H, RAD * KYIV_LAT, coords.declination)
    assert get_position(dt, KYIV_LAT, KYIV_LNG).altitude == pytest.approx(float(raw))


def test_equinox_noon_is_daily_maximum() -> None:
    start = datetime(2013, 3, 20, tzinfo=UTC)
    samples = [start + timedelta(minutes=10 * step) for step in range(144)]
    altitudes = [get_position(dt, 0.0, 0.0).altitude for dt in samples]
    peak = samples[altitudes.index(max(altitudes))]
    assert abs(peak - start.replace(hour=12)) <= timedelta(minutes=30)
    assert max(altitudes) > 1.5
    assert get_position(start.replace(hour=12), 0.0, 0.0).altitude > 1.5


def test_times_reference(kyiv_times: Dict[str, Optional[datetime]]) -> None:
    for label, expected in EXPECTED_TIMES.items():
        value = kyiv_times[label]
        assert value is not None, label
        target = datetime.fromisoformat(expected).replace(tzinfo=UTC)
        assert abs(value - target) < timedelta(seconds=1), label


def test_times_keys(kyiv_times: Dict[str, Optional[datetime]]) -> None:
    assert len(kyiv_times) == 14
    assert list(kyiv_times)[:4] == ["solarNoon", "nadir", "sunrise", "sunset"]
    assert set(kyiv_times) == set(EXPECTED_TIMES)


def test_times_ordered_through_the_day(
    kyiv_times: Dict[str, Optional[datetime]],
) -> None:
    ordered = [kyiv_times[label] for label in DAY_ORDER]
    assert all(value is not None for value in ordered)
    assert ordered == sorted(ordered)
    assert kyiv_times["nadir"] < kyiv_times["nightEnd"]


def test_times_are_utc_millisecond_instants(
    kyiv_times: Dict[str, Optional[datetime]],
) -> None:
    for value in kyiv_times.values():
        assert value.tzinfo is UTC
        assert value.microsecond % 1000 == 0


def test_polar_night_reports_missing_times() -> None:
    times = get_times(datetime(2013, 12, 21, 12, tzinfo=UTC), 89.0, 0.0)
    assert len(times) == 14
    assert times["solarNoon"] is not None
    assert times["nadir"] is not None
    for label in ("sunrise", "sunset", "dawn", "dusk", "nightEnd", "night"):
        assert times[label] is None, label


def test_polar_day_reports_missing_times() -> None:
    times = get_times(datetime(2013, 6, 21, 12, tzinfo=UTC), 78.2232, 15.6469)
    assert times["solarNoon"] is not None
    assert times["sunrise"] is None
    assert times["sunset"] is None
    # Midnight Sun stays above 6 degrees too.
    assert times["goldenHour"] is None


def test_registered_entry_adds_two_keys() -> None:
    registry = TimesRegistry()
    registry.register(-4.0, "blueHourEnd", "blueHour")
    times = get_times(KYIV_DATE, KYIV_LAT, KYIV_LNG, registry)

    assert len(times) == 16
    assert list(times)[-2:] == ["blueHourEnd", "blueHour"]
    assert times["dawn"] < times["blueHourEnd"] < times["sunrise"]
    assert times["sunset"] < times["blueHour"] < times["dusk"]


def test_duplicate_labels_overwrite_earlier_entries() -> None:
    registry = TimesRegistry()
    registry.register(-0.3, "sunrise", "sunset")
    times = get_times(KYIV_DATE, KYIV_LAT, KYIV_LNG, registry)

    assert len(registry) == 7
    assert len(times) == 14
    assert times["sunrise"] == times["sunriseEnd"]
    assert times["sunset"] == times["sunsetStart"]


def test_registries_do_not_share_state() -> None:
    registry = TimesRegistry()
    snapshot = registry.entries
    registry.register(-4.0, "blueHourEnd", "blueHour")

    assert len(snapshot) == 6
    assert len(registry.entries) == 7
    assert len(TimesRegistry()) == 6
    assert len(get_times(KYIV_DATE, KYIV_LAT, KYIV_LNG)) == 14


def test_empty_registry_reports_noon_and_nadir_only() -> None:
    times = get_times(KYIV_DATE, KYIV_LAT, KYIV_LNG, TimesRegistry.empty())
    assert list(times) == ["solarNoon", "nadir"]


def test_registry_from_config() -> None:
    registry = TimesRegistry.from_config(
        [
            {"angle": -4, "rise_label": "blueHourEnd", "set_label": "blueHour"},
            (-8.0, "deepBlueEnd", "deepBlue"),
            TimesEntry(angle=10.0, rise_label="morning", set_label="evening"),
        ]
    )
    assert [entry.rise_label for entry in registry] == [
        "blueHourEnd",
        "deepBlueEnd",
        "morning",
    ]
    assert registry.entries[0].angle == -4.0


@pytest.mark.parametrize(
    "row",
    [
        (math.nan, "a", "b"),
        (95.0, "a", "b"),
        (-6.0, "", "b"),
        (-6.0, "a", "   "),
        (-6.0, "a"),
        {"angle": -6.0, "rise_label": "a"},
        "sunrise",
    ],
)
def test_invalid_entries_rejected(row: object) -> None:
    with pytest.raises(TimesConfigError):
        TimesRegistry.from_config([row])


def test_register_rejects_invalid_angle() -> None:
    registry = TimesRegistry()
    with pytest.raises(TimesConfigError):
        registry.register(math.inf, "a", "b")
    assert len(registry) == 6


def test_times_entry_is_frozen() -> None:
    entry = TimesEntry(angle=-6.0, rise_label="dawn", set_label="dusk")
    with pytest.raises(ValidationError):
        entry.angle = 0.0  # type: ignore[misc]


@pytest.mark.parametrize("lng", [math.nan, math.inf, -math.inf])
def test_non_finite_longitude_yields_missing_times(lng: float) -> None:
    times = get_times(KYIV_DATE, KYIV_LAT, lng)
    assert len(times) == 14
    assert all(value is None for value in times.values())


def test_concurrent_registration_keeps_every_entry() -> None:
    registry = TimesRegistry()
    workers = 8
    per_worker = 25
    start = threading.Barrier(workers)

    def register_many(worker: int) -> None:
        start.wait()
        for index in range(per_worker):
            registry.register(-4.0, f"r{worker}-{index}", f"s{worker}-{index}")

    threads = [
        threading.Thread(target=register_many, args=(worker,))
        for worker in range(workers)
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(registry) == 6 + workers * per_worker
    labels = {entry.rise_label for entry in registry}
    assert {f"r{w}-{i}" for w in range(workers) for i in range(per_worker)} <= labels
    times = get_times(KYIV_DATE, KYIV_LAT, KYIV_LNG, registry)
    assert len(times) == 14 + 2 * workers * per_worker
