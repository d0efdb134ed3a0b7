"""
Shared dataclasses used across the temporal status engine.

Every value here is immutable: refreshing state means building a new
instance and swapping it in, never mutating the previous one.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterator, Literal


PRAYER_ENTRY_NAMES = (
    "fajr",
    "sunrise",
    "dhuhr",
    "asr",
    "maghrib",
    "sunset",
    "isha",
    "midnight",
)

# Only these take part in next/active selection; the others are reference markers
CANONICAL_PRAYERS = ("fajr", "dhuhr", "asr", "maghrib", "isha")

EventLifecycle = Literal["active", "inactive", "past"]
EventHighlight = Literal["today", "tomorrow", "ongoing"]


@dataclass(frozen=True, slots=True)
class PrayerConfig:
    """Location and convention inputs for schedule computation."""
    latitude: float
    longitude: float
    timezone: str
    method: str
    asr_method: str = "standard"
    location_label: str = ""


@dataclass(frozen=True, slots=True)
class PrayerSchedule:
    """Eight named instants for one local calendar date."""
    date: date
    location: str
    method: str
    fajr: datetime
    sunrise: datetime
    dhuhr: datetime
    asr: datetime
    maghrib: datetime
    sunset: datetime
    isha: datetime
    midnight: datetime

    def items(self) -> Iterator[tuple[str, datetime]]:
        for name in PRAYER_ENTRY_NAMES:
            yield name, getattr(self, name)

    def instant(self, name: str) -> datetime:
        if name not in PRAYER_ENTRY_NAMES:
            raise KeyError(name)
        return getattr(self, name)


@dataclass(frozen=True, slots=True)
class PrayerTime:
    """Display entity for one schedule entry, derived against 'now'."""
    name: str
    time: str
    icon: str
    instant: datetime
    is_next: bool = False
    is_active: bool = False


@dataclass(frozen=True, slots=True)
class PrayerSelection:
    entries: tuple[PrayerTime, ...]
    active: str
    next: str
    next_at: datetime

    @property
    def next_entry(self) -> PrayerTime:
        return next(entry for entry in self.entries if entry.is_next)


@dataclass(frozen=True, slots=True)
class ScheduleResult:
    schedule: PrayerSchedule | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class EventRecord:
    """Event content as owned by the external content source."""
    id: str
    title: str
    date_start: str
    date_end: str | None = None
    time: str = ""
    speaker: str = ""
    hosted_by: str = ""
    location: str = ""
    description: str = ""


@dataclass(frozen=True, slots=True)
class EventStatus:
    """Temporal flags for an event, recomputed on every read."""
    status: EventLifecycle
    is_multi_day: bool
    is_today: bool
    is_tomorrow: bool
    is_upcoming: bool
    days_remaining: int | None = None
    highlight: EventHighlight | None = None


@dataclass(frozen=True, slots=True)
class ProjectedEvent:
    record: EventRecord
    status: EventStatus
    date_label: str


@dataclass(frozen=True, slots=True)
class EventStatusResult:
    status: EventStatus | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class LiveStream:
    id: str
    title: str
    description: str
    thumbnail: str
    published_at: str
    video_id: str
    channel_title: str
    is_live: bool = True
    live_viewers: str | None = None
    start_time: str | None = None


@dataclass(frozen=True, slots=True)
class DetectionResult:
    """Response of the live-stream detection source."""
    live_stream: LiveStream | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class LiveStreamState:
    live_stream: LiveStream | None = None
    error: str | None = None
    loading: bool = True
    checked_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class YouTubeVideo:
    id: str
    title: str
    description: str
    thumbnail: str
    published_at: str
    video_id: str
    channel_title: str
    duration: str | None = None
    view_count: str | None = None


@dataclass(frozen=True, slots=True)
class VideoListing:
    """Response of the video listing source."""
    videos: tuple[YouTubeVideo, ...] = ()
    error: str | None = None


@dataclass(frozen=True, slots=True)
class VideoFeedState:
    videos: tuple[YouTubeVideo, ...] = ()
    error: str | None = None
    loading: bool = True
    fetched_at: datetime | None = None


__all__ = [
    "CANONICAL_PRAYERS",
    "PRAYER_ENTRY_NAMES",
    "DetectionResult",
    "EventRecord",
    "EventStatus",
    "EventStatusResult",
    "LiveStream",
    "LiveStreamState",
    "PrayerConfig",
    "PrayerSchedule",
    "PrayerSelection",
    "PrayerTime",
    "ProjectedEvent",
    "ScheduleResult",
    "VideoFeedState",
    "VideoListing",
    "YouTubeVideo",
]
