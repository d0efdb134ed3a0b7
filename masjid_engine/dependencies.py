"""
Dependency providers for the HTTP routes.

The display session is created by the application lifespan and stored on
app.state; routes receive it through FastAPI's dependency injection so tests
can install a session built from fakes.
"""
import logging

from fastapi import HTTPException, Request

from masjid_engine.config import CustomSettings
from masjid_engine.services.countdown import CountdownTicker
from masjid_engine.services.display_session import DisplaySession
from masjid_engine.services.live_stream_service import LiveStreamDetector, LiveStreamPoller
from masjid_engine.services.video_feed_service import VideoFeedCache, VideoListingSource


logger = logging.getLogger(__name__)


def create_display_session(settings: CustomSettings) -> DisplaySession:
    """
    Build a display session wired to the configured remote sources.

    Args:
        settings: Validated application settings

    Returns:
        A DisplaySession that has not been started yet
    """
    detector = LiveStreamDetector(
        settings.youtube_channel_id,
        feed_url=settings.youtube_feed_url,
        scan_count=settings.live_stream_scan_count,
        timeout=settings.http_timeout_sec,
    )
    listing = VideoListingSource(
        settings.youtube_channel_id,
        feed_url=settings.youtube_feed_url,
        cache_url=settings.video_cache_url,
        count=settings.video_feed_count,
        timeout=settings.http_timeout_sec,
    )
    session = DisplaySession(
        settings.to_prayer_config(),
        poller=LiveStreamPoller(detector.detect, interval=settings.live_stream_poll_interval_sec),
        videos=VideoFeedCache(listing.fetch),
        ticker=CountdownTicker(interval=settings.countdown_interval_sec),
        refresh_cron=settings.schedule_refresh_cron,
    )
    logger.debug("Display session created for channel %s", settings.youtube_channel_id)
    return session


def get_display_session(request: Request) -> DisplaySession:
    """Return the session owned by the running application."""
    session: DisplaySession | None = getattr(request.app.state, "display_session", None)
    if session is None:
        raise HTTPException(status_code=503, detail="Display session is not running")
    return session
