"""
Services package for Masjid Engine

This package contains the schedule, countdown, event, live-stream and video
components and the display session that ties them together.
"""
from masjid_engine.services.countdown import CountdownTicker, format_remaining
from masjid_engine.services.display_session import DisplaySession
from masjid_engine.services.event_status import derive_event_status, project_event, upcoming_events
from masjid_engine.services.live_stream_service import LiveStreamDetector, LiveStreamPoller
from masjid_engine.services.prayer_calculator import calculate_prayer_schedule, compute_schedule
from masjid_engine.services.prayer_selector import select_prayers
from masjid_engine.services.video_feed_service import VideoFeedCache, VideoListingSource

__all__ = [
    'CountdownTicker',
    'DisplaySession',
    'LiveStreamDetector',
    'LiveStreamPoller',
    'VideoFeedCache',
    'VideoListingSource',
    'calculate_prayer_schedule',
    'compute_schedule',
    'derive_event_status',
    'format_remaining',
    'project_event',
    'select_prayers',
    'upcoming_events',
]
