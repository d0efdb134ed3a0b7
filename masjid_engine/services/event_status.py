"""
Event Status Service

Derives the temporal flags of an event (today / tomorrow / upcoming /
ongoing / past) from its date range and the current calendar date. The flags
are projections: they are recomputed on every read and never stored next to
the event content.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta

from masjid_engine.exceptions import ConfigurationError
from masjid_engine.services.engine_types import (
    EventRecord,
    EventStatus,
    EventStatusResult,
    ProjectedEvent,
)
from masjid_engine.utils.timezone import parse_calendar_date


logger = logging.getLogger(__name__)


def derive_event_status(
    date_start: date | str,
    date_end: date | str | None,
    today: date | str,
) -> EventStatus:
    """
    Classify an event against the current calendar date

    Comparisons use whole calendar dates only, so an event never flickers
    between states around a timezone boundary.

    Args:
        date_start: First day of the event
        date_end: Last day for multi-day events, or None
        today: Current calendar date

    Returns:
        EventStatus with lifecycle status and derived flags

    Raises:
        DateFormatError: If any date is malformed
        ConfigurationError: If date_end falls before date_start
    """
    start = parse_calendar_date(date_start)
    end = parse_calendar_date(date_end) if date_end else None
    current = parse_calendar_date(today)

    if end is not None and end < start:
        raise ConfigurationError(
            f"Event end date {end.isoformat()} is before start date {start.isoformat()}"
        )

    is_multi_day = end is not None and end > start
    last_day = end if is_multi_day else start
    in_range = start <= current <= last_day

    is_today = current == start
    is_tomorrow = current == start - timedelta(days=1)
    is_upcoming = start > current
    days_remaining = (last_day - current).days if is_multi_day and in_range else None

    if last_day < current:
        status = "past"
    elif in_range:
        status = "active"
    else:
        status = "inactive"

    if in_range:
        highlight = "ongoing" if days_remaining else "today"
    elif is_tomorrow:
        highlight = "tomorrow"
    else:
        highlight = None

    return EventStatus(
        status=status,
        is_multi_day=is_multi_day,
        is_today=is_today,
        is_tomorrow=is_tomorrow,
        is_upcoming=is_upcoming,
        days_remaining=days_remaining,
        highlight=highlight,
    )


def event_status_result(
    date_start: date | str,
    date_end: date | str | None,
    today: date | str,
) -> EventStatusResult:
    """Boundary wrapper: returns (status, error) instead of raising."""
    try:
        return EventStatusResult(status=derive_event_status(date_start, date_end, today))
    except ConfigurationError as exc:
        return EventStatusResult(error=str(exc))


def format_date_range(date_start: date | str, date_end: date | str | None = None) -> str:
    """
    Format an event's dates for display

    Examples:
        'Jun 10, 2025', 'Jun 10-12, 2025', 'Jun 28 - Jul 2, 2025',
        'Dec 30, 2025 - Jan 2, 2026'
    """
    start = parse_calendar_date(date_start)
    end = parse_calendar_date(date_end) if date_end else None

    if end is None or end == start:
        return _format_day(start, with_year=True)
    if start.year != end.year:
        return f"{_format_day(start, with_year=True)} - {_format_day(end, with_year=True)}"
    if start.month != end.month:
        return f"{_format_day(start)} - {_format_day(end)}, {start.year}"
    return f"{_format_day(start)}-{end.day}, {start.year}"


def project_event(record: EventRecord, today: date) -> ProjectedEvent:
    """Attach freshly derived flags to an event's content."""
    return ProjectedEvent(
        record=record,
        status=derive_event_status(record.date_start, record.date_end, today),
        date_label=format_date_range(record.date_start, record.date_end),
    )


def project_events(
    records: Iterable[EventRecord],
    today: date,
) -> tuple[list[ProjectedEvent], dict[str, str]]:
    """
    Project every record, collecting per-event errors instead of failing the batch

    Returns:
        Tuple of (projected events in input order, {event id: error message})
    """
    projected: list[ProjectedEvent] = []
    errors: dict[str, str] = {}

    for record in records:
        try:
            projected.append(project_event(record, today))
        except ConfigurationError as exc:
            logger.warning("Skipping event %s: %s", record.id, exc)
            errors[record.id] = str(exc)

    return projected, errors


def upcoming_events(projected: Iterable[ProjectedEvent]) -> list[ProjectedEvent]:
    """Events that are not yet over, soonest first."""
    remaining = [event for event in projected if event.status.status != "past"]
    remaining.sort(key=lambda event: (parse_calendar_date(event.record.date_start), event.record.title))
    return remaining


def _format_day(value: date, *, with_year: bool = False) -> str:
    text = f"{value.strftime('%b')} {value.day}"
    return f"{text}, {value.year}" if with_year else text
