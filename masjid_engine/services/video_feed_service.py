"""
Video Feed Service

Fetches the channel's video listing and holds it for the display session.
The pre-built JSON cache is tried first; when it is missing or unusable the
channel's Atom feed is read directly. Every fetch replaces the held list
wholesale, and a failed fetch leaves an empty list next to the error.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Literal

import httpx
from lxml import etree # type: ignore
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from masjid_engine.exceptions import SourceError
from masjid_engine.services.countdown import Clock, utc_clock
from masjid_engine.services.engine_types import VideoFeedState, VideoListing, YouTubeVideo
from masjid_engine.services.feed_parser import FeedEntry, parse_channel_feed, thumbnail_url
from masjid_engine.utils.http_client import fetch_bytes, fetch_json
from masjid_engine.utils.logging_helpers import log_listing_summary


logger = logging.getLogger(__name__)

VIDEOS_UNAVAILABLE = (
    "Videos are currently unavailable. The SSMA tech team is working on resolving the issue. "
    "Please check back later or visit our YouTube channel directly."
)
LOAD_FAILED = "Failed to load YouTube videos"

FetchListing = Callable[[], Awaitable[VideoListing]]


class CachedVideo(BaseModel):
    """Video entry as written to the pre-built JSON cache"""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str = ""
    thumbnail: str = ""
    published_at: str = Field("", alias="publishedAt")
    video_id: str = Field(..., alias="videoId")
    channel_title: str = Field("", alias="channelTitle")
    duration: str | None = None
    view_count: str | None = Field(None, alias="viewCount")

    def to_video(self) -> YouTubeVideo:
        return YouTubeVideo(
            id=self.id,
            title=self.title,
            description=self.description,
            thumbnail=self.thumbnail or thumbnail_url(self.video_id),
            published_at=self.published_at,
            video_id=self.video_id,
            channel_title=self.channel_title,
            duration=self.duration,
            view_count=self.view_count,
        )


class VideoCachePayload(BaseModel):
    """Top-level document of the pre-built JSON cache"""
    model_config = ConfigDict(populate_by_name=True)

    videos: list[CachedVideo] = Field(default_factory=list)
    last_updated: str | None = Field(None, alias="lastUpdated")
    status: Literal["success", "error"]
    error: str | None = None


def entry_to_video(entry: FeedEntry) -> YouTubeVideo:
    return YouTubeVideo(
        id=entry.entry_id,
        title=entry.title,
        description=entry.description,
        thumbnail=entry.thumbnail or thumbnail_url(entry.video_id),
        published_at=entry.published_raw,
        video_id=entry.video_id,
        channel_title=entry.channel_title,
        duration="",
        view_count=entry.view_count or "",
    )


class VideoListingSource:
    """Listing source: JSON cache first, channel feed as fallback"""

    def __init__(
        self,
        channel_id: str,
        *,
        feed_url: str = "https://www.youtube.com/feeds/videos.xml",
        cache_url: str | None = None,
        count: int = 10,
        timeout: float = 8.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.channel_id = channel_id
        self.feed_url = feed_url
        self.cache_url = cache_url
        self.count = count
        self.timeout = timeout
        self._client = client

    async def fetch(self) -> VideoListing:
        """
        Fetch the current listing

        Returns:
            VideoListing; on failure `videos` is empty and `error` holds a
            message suitable for display
        """
        if self.cache_url:
            try:
                listing = await self._fetch_from_cache()
                if listing is not None:
                    return listing
            except (httpx.HTTPError, ValueError, ValidationError, SourceError) as exc:
                logger.warning("Cache fetch failed, trying channel feed: %s", exc)

        try:
            return await self._fetch_from_feed()
        except (httpx.HTTPError, etree.XMLSyntaxError, SourceError) as exc:
            logger.error("Channel feed fetch also failed: %s", exc)
            return VideoListing(videos=(), error=VIDEOS_UNAVAILABLE)

    async def _fetch_from_cache(self) -> VideoListing | None:
        """Returns None when the cache is valid but empty, so the feed is tried."""
        logger.info("Fetching videos from cache...")
        data = await fetch_json(self.cache_url, timeout=self.timeout, client=self._client)
        payload = VideoCachePayload.model_validate(data)

        if payload.status == "error":
            logger.warning("Cache contains error status: %s", payload.error)
            return VideoListing(videos=(), error=VIDEOS_UNAVAILABLE)
        if not payload.videos:
            raise SourceError("Cache data invalid")

        videos = tuple(video.to_video() for video in payload.videos)
        logger.info(
            "Successfully loaded %s videos from cache (last updated: %s)",
            len(videos),
            payload.last_updated or "unknown",
        )
        return VideoListing(videos=videos)

    async def _fetch_from_feed(self) -> VideoListing:
        content = await fetch_bytes(
            self.feed_url,
            params={"channel_id": self.channel_id},
            timeout=self.timeout,
            client=self._client,
        )
        _, entries = parse_channel_feed(content, limit=self.count)
        videos = tuple(entry_to_video(entry) for entry in entries)
        logger.info("Fetched %s videos from channel feed", len(videos))
        return VideoListing(videos=videos)


class VideoFeedCache:
    """
    Fetch-on-init, replace-on-refetch holder for the video listing.

    Fetches run one after another: a refetch requested while another is in
    flight waits for it instead of cancelling it, then replaces the state.
    """

    def __init__(self, fetch_listing: FetchListing, *, clock: Clock = utc_clock) -> None:
        self._fetch_listing = fetch_listing
        self._clock = clock
        self._state = VideoFeedState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> VideoFeedState:
        return self._state

    @property
    def is_fetching(self) -> bool:
        return self._lock.locked()

    async def load(self) -> VideoFeedState:
        """Initial fetch for a new display session."""
        return await self.refetch()

    async def refetch(self) -> VideoFeedState:
        """Fetch the listing again and replace videos and error together."""
        async with self._lock:
            try:
                listing = await self._fetch_listing()
            except Exception as exc:
                logger.error("Video listing fetch raised: %s", exc, exc_info=True)
                listing = VideoListing(videos=(), error=LOAD_FAILED)

            fetched_at = self._clock()
            if listing.error:
                state = VideoFeedState(videos=(), error=listing.error, loading=False, fetched_at=fetched_at)
            else:
                state = VideoFeedState(videos=tuple(listing.videos), error=None, loading=False, fetched_at=fetched_at)

            self._state = state
            log_listing_summary(logger, "Video listing", len(state.videos), state.error)
            return state
