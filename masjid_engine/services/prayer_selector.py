"""
Next Prayer Selection

Projects a PrayerSchedule against the current instant: which canonical
prayer window is active and which prayer comes next. Only the five canonical
prayers take part; sunrise, sunset and midnight are reference markers.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from masjid_engine.exceptions import ConfigurationError
from masjid_engine.services.engine_types import (
    CANONICAL_PRAYERS,
    PrayerSchedule,
    PrayerSelection,
    PrayerTime,
)
from masjid_engine.services.prayer_calculator import format_clock


logger = logging.getLogger(__name__)

PRAYER_ICONS = {
    "fajr": "🌅",
    "sunrise": "☀️",
    "dhuhr": "🌞",
    "asr": "🌤️",
    "maghrib": "🌆",
    "sunset": "🌇",
    "isha": "🌙",
    "midnight": "🌃",
}


def select_prayers(
    schedule: PrayerSchedule,
    now: datetime,
    next_day_fajr: datetime | None = None,
) -> PrayerSelection:
    """
    Flag the active and next canonical prayers for the given instant

    A prayer is active while now lies in [its time, next prayer's time).
    Before today's fajr the active window is still the previous night's isha.
    The next prayer is the soonest canonical instant strictly after now; after
    today's isha it wraps to the following day's fajr.

    Args:
        schedule: Today's schedule
        now: Current timezone-aware instant
        next_day_fajr: Following day's fajr, used as the countdown target
            after isha. Defaults to today's fajr plus one day.

    Returns:
        PrayerSelection with one display entry per schedule instant

    Raises:
        ConfigurationError: If now is a naive datetime
    """
    if now.tzinfo is None:
        raise ConfigurationError("Current time must be timezone-aware")

    canonical = [(name, schedule.instant(name)) for name in CANONICAL_PRAYERS]

    next_name, next_at = "fajr", next_day_fajr or schedule.fajr + timedelta(days=1)
    for name, instant in canonical:
        if instant > now:
            next_name, next_at = name, instant
            break

    active_name = "isha"
    for name, instant in canonical:
        if instant <= now:
            active_name = name

    entries = tuple(
        PrayerTime(
            name=name.capitalize(),
            time=format_clock(instant),
            icon=PRAYER_ICONS[name],
            instant=instant,
            is_next=name == next_name,
            is_active=name == active_name,
        )
        for name, instant in schedule.items()
    )

    logger.debug(
        "Prayer selection at %s: active=%s next=%s (%s)",
        now.isoformat(),
        active_name,
        next_name,
        next_at.isoformat(),
    )
    return PrayerSelection(entries=entries, active=active_name, next=next_name, next_at=next_at)
