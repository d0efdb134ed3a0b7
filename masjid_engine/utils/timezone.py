"""
Date and Time utilities

This module handles timezone resolution and calendar-date parsing.
Centralizes all date parsing logic to maintain consistency across the engine.
"""
from datetime import date, datetime, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import re

from masjid_engine.exceptions import ConfigurationError, DateFormatError

logger = logging.getLogger(__name__)

_OFFSET_PATTERN = re.compile(r"^(?:UTC|GMT)?\s*([+-])(\d{1,2})(?::?(\d{2}))?$", re.IGNORECASE)


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA zone name or a fixed UTC offset to a tzinfo

    Args:
        name: IANA zone ('America/Los_Angeles'), 'UTC', or an offset
              such as 'UTC-08:00', '+05:30', 'GMT+3'

    Returns:
        tzinfo usable with datetime.astimezone()

    Raises:
        ConfigurationError: If the identifier is neither a known zone nor an offset
    """
    if not name or not name.strip():
        raise ConfigurationError("Timezone must not be empty")

    candidate = name.strip()
    if candidate.upper() in ("UTC", "GMT", "Z"):
        return timezone.utc

    match = _OFFSET_PATTERN.match(candidate)
    if match:
        sign, hours, minutes = match.groups()
        offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
        if offset > timedelta(hours=14):
            raise ConfigurationError(f"Invalid UTC offset: {name}")
        return timezone(-offset if sign == "-" else offset)

    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid timezone: {name}. Must be a valid IANA timezone (e.g., 'America/Los_Angeles'), 'UTC' or an offset like 'UTC-08:00'"
        ) from e


def parse_calendar_date(value: date | datetime | str) -> date:
    """
    Parse a calendar date with no time-of-day component

    Args:
        value: date, datetime (its date part is used) or 'YYYY-MM-DD' string

    Returns:
        datetime.date

    Raises:
        DateFormatError: If the value is not a well-formed calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        text = value.strip()
        # Accept full ISO timestamps but keep only their calendar date
        if len(text) > 10 and text[10] in ("T", " "):
            text = text[:10]
        return date.fromisoformat(text)
    except (ValueError, AttributeError, TypeError) as e:
        raise DateFormatError(f"Invalid calendar date: '{value}' (expected YYYY-MM-DD)") from e


def local_date(instant: datetime, tz: tzinfo) -> date:
    """Calendar date of an aware instant as seen in the given timezone"""
    if instant.tzinfo is None:
        raise ConfigurationError("Instant must be timezone-aware")
    return instant.astimezone(tz).date()


def _normalize_iso8601_string(date_str: str) -> str:
    """Normalize ISO8601 string by replacing 'Z' with '+00:00'"""
    return date_str.replace('Z', '+00:00') if date_str.endswith('Z') else date_str


def parse_iso8601_to_utc(date_str: str) -> datetime:
    """
    Parse ISO8601 date string and convert to UTC datetime

    Args:
        date_str: ISO8601 datetime string (e.g., '2025-06-10T18:00:00Z' or '2025-06-10T18:00:00+01:00')

    Returns:
        Timezone-aware datetime in UTC

    Raises:
        DateFormatError: If the date string format is invalid
    """
    try:
        normalized = _normalize_iso8601_string(date_str.strip())
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (ValueError, AttributeError) as e:
        raise DateFormatError(f"Invalid ISO8601 datetime format: '{date_str}'") from e
