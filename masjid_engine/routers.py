from typing import Annotated
import logging

from fastapi import APIRouter, Depends, Query

from masjid_engine.dependencies import get_display_session
from masjid_engine.schemas import (
    CountdownResponse,
    EventOut,
    EventsStatusRequest,
    EventsStatusResponse,
    LiveStreamOut,
    LiveStreamResponse,
    PrayerTimeEntry,
    PrayerTimesResponse,
    QiblaResponse,
    VideoFeedResponse,
    VideoOut,
)
from masjid_engine.services.display_session import DisplaySession
from masjid_engine.services.engine_types import LiveStreamState, VideoFeedState
from masjid_engine.services.event_status import project_events, upcoming_events
from masjid_engine.services.prayer_calculator import compute_schedule, format_clock
from masjid_engine.services.prayer_selector import PRAYER_ICONS
from masjid_engine.services.qibla import qibla_info
from masjid_engine.utils.timezone import parse_calendar_date


logger = logging.getLogger(__name__)

main_router = APIRouter()

Session = Annotated[DisplaySession, Depends(get_display_session)]


@main_router.get("/")
async def root(session: Session) -> dict:
    """Root endpoint with service information"""
    next_run = session.rollover.get_next_run_time()

    return {
        "service": "Masjid Engine",
        "version": "0.1.0",
        "location": session.config.location_label,
        "next_schedule_rollover": next_run.isoformat() if next_run else None,
        "endpoints": {
            "prayer_times": "/prayer-times - Today's schedule with next/active prayer",
            "countdown": "/countdown - Time remaining to the next prayer",
            "events": "/events/status - Derive event flags (POST)",
            "live_stream": "/live-stream - Latest live stream check",
            "videos": "/videos - Channel video listing",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check(session: Session) -> dict:
    """Health check endpoint"""
    next_run = session.rollover.get_next_run_time()
    poll_task = session.poller.task
    return {
        "status": "ok" if session.schedule_result.error is None else "degraded",
        "session_started": session.is_started,
        "scheduler_running": session.rollover.running,
        "next_rollover": next_run.isoformat() if next_run else None,
        "countdown_running": session.ticker.is_running,
        "live_stream_polling": poll_task.is_running if poll_task else False,
        "live_stream_polls_skipped": poll_task.ticks_skipped if poll_task else 0,
        "videos_fetching": session.videos.is_fetching,
        "schedule_error": session.schedule_result.error,
    }


@main_router.get("/prayer-times", response_model=PrayerTimesResponse)
async def get_prayer_times(session: Session) -> PrayerTimesResponse:
    """
    Get today's prayer schedule projected against the current instant

    Returns:
        Schedule entries with is_next/is_active flags, the next prayer and its
        countdown, and the qibla direction; `error` is set instead when the
        schedule cannot be computed
    """
    config = session.config
    qibla = qibla_info(config.latitude, config.longitude)
    response = PrayerTimesResponse(
        location=config.location_label,
        method=config.method,
        timezone=config.timezone,
        qibla=QiblaResponse(
            bearing=qibla.bearing,
            distance_km=qibla.distance_km,
            cardinal=qibla.cardinal,
            distance_label=qibla.distance_label,
        ),
    )

    result = session.schedule_result
    selection = session.select()
    if result.schedule is None or selection is None:
        response.error = result.error
        return response

    response.schedule_date = result.schedule.date
    response.method = result.schedule.method
    response.entries = [
        PrayerTimeEntry(
            name=entry.name,
            time=entry.time,
            icon=entry.icon,
            instant=entry.instant,
            is_next=entry.is_next,
            is_active=entry.is_active,
        )
        for entry in selection.entries
    ]
    response.active_prayer = selection.active
    response.next_prayer = selection.next
    response.next_prayer_at = selection.next_at
    response.countdown = session.ticker.value
    return response


@main_router.get("/countdown", response_model=CountdownResponse)
async def get_countdown(session: Session) -> CountdownResponse:
    """Current countdown to the next prayer"""
    selection = session.selection
    return CountdownResponse(
        next_prayer=selection.next if selection else None,
        target=session.ticker.target,
        countdown=session.ticker.value,
        remaining_seconds=session.ticker.remaining,
    )


@main_router.post("/events/status", response_model=EventsStatusResponse)
async def get_events_status(
    request: EventsStatusRequest,
    session: Session,
    upcoming_only: Annotated[bool, Query(description="Drop past events and sort by start date")] = False,
) -> EventsStatusResponse:
    """
    Derive temporal flags for a batch of events

    Args:
        request: Event content records and an optional override for today

    Returns:
        Projected events; events with malformed dates are reported in
        `errors` instead of failing the whole batch
    """
    today = request.today or session.today()
    projected, errors = project_events((event.to_record() for event in request.events), today)
    if upcoming_only:
        projected = upcoming_events(projected)

    return EventsStatusResponse(
        today=today,
        count=len(projected),
        events=[EventOut.from_projection(event) for event in projected],
        errors=errors,
    )


@main_router.get("/live-stream", response_model=LiveStreamResponse)
async def get_live_stream(session: Session) -> LiveStreamResponse:
    """Latest live stream poll snapshot"""
    return _live_stream_response(session.poller.state)


@main_router.get("/videos", response_model=VideoFeedResponse)
async def get_videos(session: Session) -> VideoFeedResponse:
    """Currently held video listing"""
    return _video_feed_response(session.videos.state)


@main_router.post("/videos/refresh", response_model=VideoFeedResponse)
async def refresh_videos(session: Session) -> VideoFeedResponse:
    """
    Fetch the video listing again

    The held listing is replaced wholesale; a failed fetch returns an empty
    list next to the error
    """
    logger.info("Manual video refresh triggered via API")
    state = await session.videos.refetch()
    return _video_feed_response(state)


@main_router.get("/prayer-times/{day}", response_model=PrayerTimesResponse)
async def get_prayer_times_for_date(day: str, session: Session) -> PrayerTimesResponse:
    """
    Get the prayer schedule for any calendar date (YYYY-MM-DD)

    No entry is flagged next or active and there is no countdown; those only
    make sense against the current instant.

    Raises:
        DateFormatError: If day is not a calendar date (answered with 400)
    """
    target = parse_calendar_date(day)
    config = session.config
    result = compute_schedule(config, target)
    response = PrayerTimesResponse(
        schedule_date=target,
        location=config.location_label,
        method=config.method,
        timezone=config.timezone,
    )
    if result.schedule is None:
        response.error = result.error
        return response

    response.entries = [
        PrayerTimeEntry(
            name=name.capitalize(),
            time=format_clock(instant),
            icon=PRAYER_ICONS[name],
            instant=instant,
            is_next=False,
            is_active=False,
        )
        for name, instant in result.schedule.items()
    ]
    return response


def _live_stream_response(state: LiveStreamState) -> LiveStreamResponse:
    return LiveStreamResponse(
        live_stream=LiveStreamOut.from_stream(state.live_stream) if state.live_stream else None,
        error=state.error,
        loading=state.loading,
        checked_at=state.checked_at,
    )


def _video_feed_response(state: VideoFeedState) -> VideoFeedResponse:
    return VideoFeedResponse(
        count=len(state.videos),
        videos=[VideoOut.from_video(video) for video in state.videos],
        error=state.error,
        loading=state.loading,
        fetched_at=state.fetched_at,
    )
