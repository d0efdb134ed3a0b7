from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from masjid_engine.services.engine_types import (
    EventRecord,
    LiveStream,
    ProjectedEvent,
    YouTubeVideo,
)


class PrayerTimeEntry(BaseModel):
    """One schedule row with its derived display flags"""
    name: str
    time: str = Field(..., description="12-hour clock time, e.g. '5:30 AM'")
    icon: str
    instant: datetime
    is_next: bool
    is_active: bool


class QiblaResponse(BaseModel):
    bearing: float = Field(..., description="Degrees clockwise from true north")
    distance_km: float
    cardinal: str
    distance_label: str


class PrayerTimesResponse(BaseModel):
    """Prayer schedule projected against the current instant"""
    schedule_date: date | None = None
    location: str
    method: str
    timezone: str
    entries: list[PrayerTimeEntry] = Field(default_factory=list)
    active_prayer: str | None = None
    next_prayer: str | None = None
    next_prayer_at: datetime | None = None
    countdown: str = ""
    qibla: QiblaResponse | None = None
    error: str | None = None


class CountdownResponse(BaseModel):
    next_prayer: str | None = None
    target: datetime | None = None
    countdown: str = ""
    remaining_seconds: int = 0


class EventIn(BaseModel):
    """Event content from the external content source"""
    id: str = Field(..., description="Event ID")
    title: str
    date_start: str = Field(..., description="First day, YYYY-MM-DD")
    date_end: str | None = Field(None, description="Last day for multi-day events, YYYY-MM-DD")
    time: str = ""
    speaker: str = ""
    hosted_by: str = ""
    location: str = ""
    description: str = ""

    def to_record(self) -> EventRecord:
        return EventRecord(**self.model_dump())


class EventsStatusRequest(BaseModel):
    events: list[EventIn] = Field(default_factory=list)
    today: date | None = Field(None, description="Override for the current local date")


class EventOut(EventIn):
    """Event content plus flags derived against the current date"""
    status: Literal["active", "inactive", "past"]
    is_multi_day: bool
    is_today: bool
    is_tomorrow: bool
    is_upcoming: bool
    days_remaining: int | None = None
    highlight: Literal["today", "tomorrow", "ongoing"] | None = None
    date_label: str

    @classmethod
    def from_projection(cls, event: ProjectedEvent) -> "EventOut":
        record, status = event.record, event.status
        return cls(
            id=record.id,
            title=record.title,
            date_start=record.date_start,
            date_end=record.date_end,
            time=record.time,
            speaker=record.speaker,
            hosted_by=record.hosted_by,
            location=record.location,
            description=record.description,
            status=status.status,
            is_multi_day=status.is_multi_day,
            is_today=status.is_today,
            is_tomorrow=status.is_tomorrow,
            is_upcoming=status.is_upcoming,
            days_remaining=status.days_remaining,
            highlight=status.highlight,
            date_label=event.date_label,
        )


class EventsStatusResponse(BaseModel):
    today: date
    count: int
    events: list[EventOut]
    errors: dict[str, str] = Field(default_factory=dict, description="Event ID -> validation error")


class LiveStreamOut(BaseModel):
    id: str
    title: str
    description: str
    thumbnail: str
    published_at: str
    video_id: str
    channel_title: str
    is_live: bool
    live_viewers: str | None = None
    start_time: str | None = None

    @classmethod
    def from_stream(cls, stream: LiveStream) -> "LiveStreamOut":
        return cls(
            id=stream.id,
            title=stream.title,
            description=stream.description,
            thumbnail=stream.thumbnail,
            published_at=stream.published_at,
            video_id=stream.video_id,
            channel_title=stream.channel_title,
            is_live=stream.is_live,
            live_viewers=stream.live_viewers,
            start_time=stream.start_time,
        )


class LiveStreamResponse(BaseModel):
    live_stream: LiveStreamOut | None = None
    error: str | None = None
    loading: bool
    checked_at: datetime | None = None


class VideoOut(BaseModel):
    id: str
    title: str
    description: str
    thumbnail: str
    published_at: str
    video_id: str
    channel_title: str
    duration: str | None = None
    view_count: str | None = None

    @classmethod
    def from_video(cls, video: YouTubeVideo) -> "VideoOut":
        return cls(
            id=video.id,
            title=video.title,
            description=video.description,
            thumbnail=video.thumbnail,
            published_at=video.published_at,
            video_id=video.video_id,
            channel_title=video.channel_title,
            duration=video.duration,
            view_count=video.view_count,
        )


class VideoFeedResponse(BaseModel):
    count: int
    videos: list[VideoOut]
    error: str | None = None
    loading: bool
    fetched_at: datetime | None = None


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'CONFIGURATION_ERROR', 'VALIDATION_ERROR')")
    message: str = Field(..., description="Human-readable error message")
    context: dict | None = Field(None, description="Additional context about the error")


class StandardErrorResponse(BaseModel):
    """Standardized error response for all endpoints"""
    status: str = Field("error", description="Status indicator")
    timestamp: str = Field(..., description="ISO8601 timestamp of error")
    error: ErrorDetail = Field(..., description="Error details")
