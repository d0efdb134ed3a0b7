"""
Live Stream Service

Detects whether the channel is currently live and polls that detection on a
fixed cadence. Each poll replaces the published state wholesale; a failed
poll clears the stream rather than leaving a stale "still live" indicator.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta
from typing import Awaitable, Callable

import httpx
from lxml import etree # type: ignore

from masjid_engine.exceptions import SourceError
from masjid_engine.services.countdown import Clock, utc_clock
from masjid_engine.services.engine_types import DetectionResult, LiveStream, LiveStreamState
from masjid_engine.services.feed_parser import FeedEntry, parse_channel_feed
from masjid_engine.services.periodic_task import PeriodicTask
from masjid_engine.utils.http_client import fetch_bytes
from masjid_engine.utils.logging_helpers import log_poll_summary


logger = logging.getLogger(__name__)

DETECTION_UNAVAILABLE = "Unable to check for live streams at this time"
POLL_FAILED = "Failed to check for live streams"

LIVE_INDICATORS = (
    "🔴 live",
    "[live]",
    "live now",
    "streaming now",
    "live stream",
    "going live",
    "live:",
    "🔴",
    "live broadcast",
    "live event",
)
RECENT_KEYWORDS = ("prayer", "lecture", "event", "program")
RECENT_WINDOW = timedelta(hours=2)

_VIEWERS_PATTERN = re.compile(r"(\d+)\s*watching", re.IGNORECASE)
_START_TIME_PATTERN = re.compile(r"Started (\d+:\d+)", re.IGNORECASE)

Detect = Callable[[], Awaitable[DetectionResult]]


def is_live_entry(entry: FeedEntry, now: datetime) -> bool:
    """
    Decide whether a feed entry looks like a live broadcast

    An entry is live when its title or description carries a live indicator,
    or when it was published within the last two hours and its title names a
    prayer, lecture, event or program.
    """
    title = entry.title.lower()
    description = entry.description.lower()

    if any(indicator in title for indicator in LIVE_INDICATORS):
        return True
    if any(indicator in description for indicator in LIVE_INDICATORS):
        return True

    if entry.published is not None and now - entry.published < RECENT_WINDOW:
        return any(keyword in title for keyword in RECENT_KEYWORDS)
    return False


def extract_live_viewers(description: str) -> str | None:
    match = _VIEWERS_PATTERN.search(description or "")
    return f"{match.group(1)} watching" if match else None


def extract_start_time(description: str) -> str | None:
    match = _START_TIME_PATTERN.search(description or "")
    return match.group(1) if match else None


def to_live_stream(entry: FeedEntry) -> LiveStream:
    return LiveStream(
        id=entry.entry_id,
        title=entry.title,
        description=entry.description,
        thumbnail=entry.thumbnail,
        published_at=entry.published_raw,
        video_id=entry.video_id,
        channel_title=entry.channel_title,
        is_live=True,
        live_viewers=extract_live_viewers(entry.description),
        start_time=extract_start_time(entry.description),
    )


class LiveStreamDetector:
    """Detection source: scans the channel's latest feed entries for a live broadcast"""

    def __init__(
        self,
        channel_id: str,
        *,
        feed_url: str = "https://www.youtube.com/feeds/videos.xml",
        scan_count: int = 5,
        timeout: float = 8.0,
        client: httpx.AsyncClient | None = None,
        clock: Clock = utc_clock,
    ) -> None:
        self.channel_id = channel_id
        self.feed_url = feed_url
        self.scan_count = scan_count
        self.timeout = timeout
        self._client = client
        self._clock = clock

    async def detect(self) -> DetectionResult:
        """
        Check the channel once

        Returns:
            DetectionResult with the live stream (or None when nothing is
            live); transport and parse failures are reported in `error`
        """
        try:
            content = await fetch_bytes(
                self.feed_url,
                params={"channel_id": self.channel_id},
                timeout=self.timeout,
                client=self._client,
            )
            _, entries = parse_channel_feed(content, limit=self.scan_count)
            if not entries:
                raise SourceError("Channel feed contained no entries")
        except (httpx.HTTPError, etree.XMLSyntaxError, SourceError) as exc:
            logger.error("Live stream detection error: %s", exc)
            return DetectionResult(live_stream=None, error=DETECTION_UNAVAILABLE)

        now = self._clock()
        for entry in entries:
            if is_live_entry(entry, now):
                logger.info("Live stream detected: %s (%s)", entry.title, entry.video_id)
                return DetectionResult(live_stream=to_live_stream(entry))

        return DetectionResult(live_stream=None)


class LiveStreamPoller:
    """
    Polls a detection source on a fixed interval.

    Polls are single-flight: while one is outstanding, further ticks are
    skipped. There is no backoff; a persistent failure keeps surfacing the
    latest error at the same cadence.
    """

    def __init__(self, detect: Detect, *, interval: float = 30.0, clock: Clock = utc_clock) -> None:
        self.interval = interval
        self._detect = detect
        self._clock = clock
        self._state = LiveStreamState()
        self._task: PeriodicTask | None = None

    @property
    def state(self) -> LiveStreamState:
        return self._state

    @property
    def task(self) -> PeriodicTask | None:
        return self._task

    def start(self) -> None:
        """Begin polling; the first poll runs immediately."""
        if self._task is not None and self._task.is_running:
            logger.warning("Live stream poller already running")
            return
        self._task = PeriodicTask("live-stream-poll", self.poll, self.interval)
        self._task.start()

    async def stop(self) -> None:
        if self._task is not None:
            await self._task.stop()
            self._task = None

    async def poll(self) -> LiveStreamState:
        """Query the detection source once and publish the outcome."""
        try:
            result = await self._detect()
        except Exception as exc:
            logger.error("Live stream poll raised: %s", exc, exc_info=True)
            result = DetectionResult(live_stream=None, error=POLL_FAILED)

        checked_at = self._clock()
        if result.error:
            state = LiveStreamState(live_stream=None, error=result.error, loading=False, checked_at=checked_at)
        else:
            state = LiveStreamState(live_stream=result.live_stream, error=None, loading=False, checked_at=checked_at)

        self._state = state
        log_poll_summary(logger, "Live stream", state.live_stream is not None, state.error)
        return state
