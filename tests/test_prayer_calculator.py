from dataclasses import replace
from datetime import date, datetime, time, timedelta

import pytest

from masjid_engine.exceptions import ConfigurationError
from masjid_engine.services.engine_types import PRAYER_ENTRY_NAMES, PrayerConfig
from masjid_engine.services.prayer_calculator import (
    CALCULATION_METHODS,
    calculate_prayer_schedule,
    compute_schedule,
    format_clock,
    resolve_method,
)
from masjid_engine.services.prayer_selector import select_prayers


def test_schedule_is_deterministic(sacramento):
    first = calculate_prayer_schedule(sacramento, date(2025, 6, 10))
    second = calculate_prayer_schedule(sacramento, date(2025, 6, 10))

    assert first == second


def test_schedule_is_ordered_within_the_day(sacramento):
    schedule = calculate_prayer_schedule(sacramento, date(2025, 6, 10))

    assert schedule.fajr < schedule.sunrise < schedule.dhuhr < schedule.asr < schedule.maghrib
    assert schedule.maghrib <= schedule.sunset <= schedule.isha <= schedule.midnight
    for name in ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha"):
        assert schedule.instant(name).date() == date(2025, 6, 10)


def test_schedule_instants_are_local_and_whole_minutes(sacramento):
    schedule = calculate_prayer_schedule(sacramento, date(2025, 6, 10))

    assert [name for name, _ in schedule.items()] == list(PRAYER_ENTRY_NAMES)
    for _, instant in schedule.items():
        assert instant.tzinfo is not None
        assert instant.utcoffset() == timedelta(hours=-7)
        assert instant.second == 0 and instant.microsecond == 0
    assert 12 <= schedule.dhuhr.hour <= 13
    assert schedule.location == "Sacramento, CA"
    assert schedule.method == "Jafari"


def test_sunset_entry_follows_maghrib(sacramento):
    schedule = calculate_prayer_schedule(sacramento, date(2025, 6, 10))

    assert schedule.sunset == min(schedule.maghrib + timedelta(minutes=15), schedule.isha)


def test_dst_transition_shifts_local_clock_by_one_hour(sacramento):
    before = calculate_prayer_schedule(sacramento, date(2025, 3, 8))
    after = calculate_prayer_schedule(sacramento, date(2025, 3, 9))

    assert before.dhuhr.utcoffset() == timedelta(hours=-8)
    assert after.dhuhr.utcoffset() == timedelta(hours=-7)
    shift = (after.dhuhr.hour * 60 + after.dhuhr.minute) - (before.dhuhr.hour * 60 + before.dhuhr.minute)
    assert 55 <= shift <= 65


def test_fixed_offset_timezone(sacramento):
    schedule = calculate_prayer_schedule(replace(sacramento, timezone="UTC-08:00"), date(2025, 6, 10))

    assert schedule.dhuhr.utcoffset() == timedelta(hours=-8)
    assert 11 <= schedule.dhuhr.hour <= 12


@pytest.mark.parametrize(
    "latitude, longitude, zone",
    [
        (-21.14, -175.2, "Pacific/Tongatapu"),  # UTC+13, west of the date line
        (1.87, -157.4, "Pacific/Kiritimati"),  # UTC+14
        (-13.83, -171.76, "Pacific/Apia"),
        (-17.0, 175.0, "UTC-12:00"),  # zone a day behind solar time
    ],
)
def test_schedule_lands_on_the_local_date_when_zone_is_far_from_solar_time(latitude, longitude, zone):
    config = PrayerConfig(latitude=latitude, longitude=longitude, timezone=zone, method="MWL")
    day = date(2025, 6, 10)

    schedule = calculate_prayer_schedule(config, day)

    for name in ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "sunset", "isha"):
        assert schedule.instant(name).date() == day, name
    assert schedule.fajr < schedule.sunrise < schedule.dhuhr < schedule.asr < schedule.maghrib < schedule.isha
    assert 11 <= schedule.dhuhr.hour <= 13
    assert schedule.midnight.date() in (day, day + timedelta(days=1))


def test_afternoon_in_tonga_is_followed_by_asr_not_tomorrow():
    config = PrayerConfig(latitude=-21.14, longitude=-175.2, timezone="Pacific/Tongatapu", method="MWL")
    schedule = calculate_prayer_schedule(config, date(2025, 6, 10))
    afternoon = datetime.combine(date(2025, 6, 10), time(14), tzinfo=schedule.dhuhr.tzinfo)

    selection = select_prayers(schedule, afternoon)

    assert selection.active == "dhuhr"
    assert selection.next == "asr"
    assert selection.next_at == schedule.asr


def test_methods_differ_in_twilight_angles(sacramento):
    day = date(2025, 6, 10)
    jafari = calculate_prayer_schedule(sacramento, day)
    mwl = calculate_prayer_schedule(replace(sacramento, method="MWL"), day)

    # An 18 degree fajr angle is reached earlier than a 16 degree one
    assert mwl.fajr < jafari.fajr
    assert mwl.dhuhr == jafari.dhuhr


def test_makkah_isha_is_fixed_minutes_after_maghrib(sacramento):
    schedule = calculate_prayer_schedule(replace(sacramento, method="makkah"), date(2025, 6, 10))

    gap = schedule.isha - schedule.maghrib
    assert timedelta(minutes=89) <= gap <= timedelta(minutes=91)
    assert schedule.method == "Makkah"


def test_hanafi_asr_is_later(sacramento):
    day = date(2025, 6, 10)
    standard = calculate_prayer_schedule(sacramento, day)
    hanafi = calculate_prayer_schedule(replace(sacramento, asr_method="hanafi"), day)

    assert hanafi.asr > standard.asr


def test_high_latitude_summer_still_yields_fajr_and_isha():
    config = PrayerConfig(latitude=58.0, longitude=0.0, timezone="UTC", method="MWL")
    schedule = calculate_prayer_schedule(config, date(2025, 6, 21))

    assert schedule.fajr < schedule.sunrise
    assert schedule.isha > schedule.maghrib


def test_polar_night_is_a_configuration_error():
    config = PrayerConfig(latitude=80.0, longitude=15.0, timezone="UTC", method="MWL")

    with pytest.raises(ConfigurationError, match="does not rise or set"):
        calculate_prayer_schedule(config, date(2025, 12, 21))


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"method": "Unknown"}, "Unknown calculation method"),
        ({"latitude": 95.0}, "Latitude"),
        ({"longitude": -181.0}, "Longitude"),
        ({"latitude": float("nan")}, "finite"),
        ({"timezone": "Mars/Olympus_Mons"}, "Invalid timezone"),
        ({"asr_method": "shafi"}, "asr method"),
    ],
)
def test_invalid_config_fails_instead_of_defaulting(sacramento, changes, message):
    with pytest.raises(ConfigurationError, match=message):
        calculate_prayer_schedule(replace(sacramento, **changes), date(2025, 6, 10))


def test_datetime_is_not_a_calendar_date(sacramento):
    with pytest.raises(ConfigurationError):
        calculate_prayer_schedule(sacramento, datetime(2025, 6, 10, 12, 0))


def test_compute_schedule_returns_error_pair(sacramento):
    ok = compute_schedule(sacramento, date(2025, 6, 10))
    failed = compute_schedule(replace(sacramento, method="Nope"), date(2025, 6, 10))

    assert ok.schedule is not None and ok.error is None
    assert failed.schedule is None
    assert "Unknown calculation method" in failed.error


def test_resolve_method_is_case_insensitive():
    assert resolve_method("jafari") == "Jafari"
    assert resolve_method(" isna ") == "ISNA"
    assert {"MWL", "ISNA", "Egypt", "Makkah", "Karachi", "Tehran", "Jafari"} <= set(CALCULATION_METHODS)


@pytest.mark.parametrize(
    "hour, minute, expected",
    [(0, 5, "12:05 AM"), (5, 30, "5:30 AM"), (12, 0, "12:00 PM"), (23, 59, "11:59 PM")],
)
def test_format_clock(hour, minute, expected):
    assert format_clock(datetime(2025, 6, 10, hour, minute)) == expected
