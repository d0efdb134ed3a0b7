"""
Prayer Time Calculator

Computes the daily prayer schedule for a location, date and named calculation
method. Sun-position math is delegated to the praytimes library; this module
validates inputs, picks which solar day lands on the local calendar date, and
converts the library's fractional hours into aware datetimes.

Pure and deterministic: the same config and date always produce the same
schedule, so callers may recompute freely.
"""
from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timedelta, timezone

from praytimes.praytimes import PrayTimes

from masjid_engine.exceptions import ConfigurationError
from masjid_engine.services.engine_types import PrayerConfig, PrayerSchedule, ScheduleResult
from masjid_engine.utils.timezone import resolve_timezone


logger = logging.getLogger(__name__)

SUNSET_AFTER_MAGHRIB = timedelta(minutes=15)
ASR_METHODS = {"standard": "Standard", "hanafi": "Hanafi"}
HIGH_LATITUDE_RULE = "NightMiddle"

# Method name -> description, as shipped by praytimes
CALCULATION_METHODS: dict[str, str] = {
    name: method["name"] for name, method in PrayTimes.methods.items()
}

_SOLVED_NAMES = ("fajr", "sunrise", "dhuhr", "asr", "maghrib", "isha", "midnight")


def resolve_method(name: str) -> str:
    """
    Look up a calculation method by name (case-insensitive)

    Returns:
        Canonical method name, e.g. 'Jafari'

    Raises:
        ConfigurationError: If the method is not known
    """
    if name:
        for key in CALCULATION_METHODS:
            if key.lower() == name.strip().lower():
                return key
    raise ConfigurationError(
        f"Unknown calculation method '{name}'. Must be one of {sorted(CALCULATION_METHODS)}"
    )


def validate_prayer_config(config: PrayerConfig) -> str:
    """Check every PrayerConfig field, returning the canonical method name."""
    if not isinstance(config.latitude, (int, float)) or not math.isfinite(config.latitude):
        raise ConfigurationError(f"Latitude must be a finite number, got {config.latitude!r}")
    if not isinstance(config.longitude, (int, float)) or not math.isfinite(config.longitude):
        raise ConfigurationError(f"Longitude must be a finite number, got {config.longitude!r}")
    if not -90.0 <= config.latitude <= 90.0:
        raise ConfigurationError(f"Latitude must be within [-90, 90], got {config.latitude}")
    if not -180.0 <= config.longitude <= 180.0:
        raise ConfigurationError(f"Longitude must be within [-180, 180], got {config.longitude}")
    if config.asr_method not in ASR_METHODS:
        raise ConfigurationError(
            f"Unknown asr method '{config.asr_method}'. Must be one of {sorted(ASR_METHODS)}"
        )
    resolve_timezone(config.timezone)
    return resolve_method(config.method)


def calculate_prayer_schedule(config: PrayerConfig, target_date: date) -> PrayerSchedule:
    """
    Compute the prayer schedule for one local calendar date

    Args:
        config: Location, timezone and calculation conventions
        target_date: Local calendar date to compute

    Returns:
        PrayerSchedule with aware datetimes in the configured timezone,
        rounded to the minute

    Raises:
        ConfigurationError: On invalid method, coordinates or timezone, or
            when the sun does not rise/set at this latitude on this date
    """
    if isinstance(target_date, datetime) or not isinstance(target_date, date):
        raise ConfigurationError(f"Target date must be a calendar date, got {target_date!r}")

    method = validate_prayer_config(config)
    zone = resolve_timezone(config.timezone)

    offset = datetime.combine(target_date, time(12), tzinfo=zone).utcoffset()
    offset_hours = offset.total_seconds() / 3600

    # Zones far from longitude/15 (e.g. UTC+13 at -175) run a whole day ahead of
    # or behind local solar time; solve the solar day whose noon falls on target_date
    day_shift = math.floor((12 + offset_hours - config.longitude / 15) / 24)
    solve_date = target_date - timedelta(days=day_shift)

    hours = _solve(config, method, solve_date, offset_hours)

    anchor = datetime.combine(solve_date, time(0), tzinfo=timezone(offset))

    def to_local(value: float) -> datetime:
        return _round_to_minute(anchor + timedelta(seconds=round(value * 3600))).astimezone(zone)

    instants = {name: to_local(hours[name]) for name in _SOLVED_NAMES}

    # The displayed sunset follows maghrib; reference markers never precede isha
    instants["sunset"] = min(instants["maghrib"] + SUNSET_AFTER_MAGHRIB, instants["isha"])
    instants["midnight"] = max(instants["midnight"], instants["isha"])

    schedule = PrayerSchedule(
        date=target_date,
        location=config.location_label,
        method=method,
        fajr=instants["fajr"],
        sunrise=instants["sunrise"],
        dhuhr=instants["dhuhr"],
        asr=instants["asr"],
        maghrib=instants["maghrib"],
        sunset=instants["sunset"],
        isha=instants["isha"],
        midnight=instants["midnight"],
    )
    logger.debug(
        "Computed %s schedule for %s at (%.4f, %.4f): fajr=%s isha=%s",
        method,
        target_date.isoformat(),
        config.latitude,
        config.longitude,
        schedule.fajr.isoformat(),
        schedule.isha.isoformat(),
    )
    return schedule


def compute_schedule(config: PrayerConfig, target_date: date) -> ScheduleResult:
    """Boundary wrapper: returns (schedule, error) instead of raising."""
    try:
        return ScheduleResult(schedule=calculate_prayer_schedule(config, target_date))
    except ConfigurationError as exc:
        logger.error("Prayer schedule computation failed for %s: %s", target_date, exc)
        return ScheduleResult(error=str(exc))


def format_clock(instant: datetime) -> str:
    """Format an instant as a 12-hour clock string, e.g. '5:30 AM'."""
    hour12 = instant.hour % 12 or 12
    period = "PM" if instant.hour >= 12 else "AM"
    return f"{hour12}:{instant.minute:02d} {period}"


def _solve(config: PrayerConfig, method: str, solve_date: date, offset_hours: float) -> dict[str, float]:
    """Fractional hours from local midnight of solve_date at the given UTC offset."""
    # PrayTimes keeps its settings on the class; set every one we rely on per call
    calculator = PrayTimes()
    # Equivalent of setMethod(method), which raises in praytimes 2.3.x (attribute access on a dict)
    calculator.adjust(PrayTimes.methods[method]["params"])
    calculator.adjust({"asr": ASR_METHODS[config.asr_method], "highLats": HIGH_LATITUDE_RULE})

    times = calculator.getTimes(
        (solve_date.year, solve_date.month, solve_date.day),
        (config.latitude, config.longitude),
        offset_hours,
        0,
        "Float",
    )

    invalid = [
        name for name in _SOLVED_NAMES
        if not isinstance(times.get(name), (int, float)) or math.isnan(times[name])
    ]
    if invalid:
        raise ConfigurationError(
            f"The sun does not rise or set at latitude {config.latitude} on {solve_date.isoformat()} "
            f"(undefined: {', '.join(invalid)})"
        )
    return times


def _round_to_minute(value: datetime) -> datetime:
    return (value + timedelta(seconds=30)).replace(second=0, microsecond=0)
