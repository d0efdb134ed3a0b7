"""
YouTube channel feed parsing

Parses the channel's Atom feed (videos.xml) into FeedEntry records.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import re

from lxml import etree # type: ignore

from masjid_engine.exceptions import DateFormatError
from masjid_engine.utils.timezone import parse_iso8601_to_utc

logger = logging.getLogger(__name__)

NAMESPACES = {
    "atom": "http://www.w3.org/2005/Atom",
    "yt": "http://www.youtube.com/xml/schemas/2015",
    "media": "http://search.yahoo.com/mrss/",
}

_VIDEO_ID_PATTERN = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)")
_IMG_SRC_PATTERN = re.compile(r'<img[^>]+src="([^">]+)"')


@dataclass(frozen=True, slots=True)
class FeedEntry:
    """One video entry from the channel feed."""
    entry_id: str
    video_id: str
    title: str
    link: str
    description: str
    thumbnail: str
    published: datetime | None
    published_raw: str
    channel_title: str
    view_count: str | None = None


def parse_channel_feed(content: bytes, limit: int | None = None) -> tuple[str, list[FeedEntry]]:
    """
    Parse a YouTube channel Atom feed

    Args:
        content: Raw feed XML
        limit: Keep at most this many entries (feed order, newest first)

    Returns:
        Tuple of (channel title, entries)

    Raises:
        etree.XMLSyntaxError: If XML is malformed
    """
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(content, parser=parser)
    except etree.XMLSyntaxError as e:
        logger.error(f"Feed XML parsing error: {e}")
        raise

    channel_title = _get_text(root, "atom:title", default="")
    entries = []

    for element in root.findall("atom:entry", NAMESPACES):
        entry = _parse_entry(element, channel_title)
        if entry:
            entries.append(entry)
        if limit is not None and len(entries) >= limit:
            break

    logger.debug(f"Parsed channel feed '{channel_title}': {len(entries)} entries")
    return channel_title, entries


def _parse_entry(element: etree._Element, channel_title: str) -> FeedEntry | None:
    """Parse single feed entry, skipping ones without a usable video id"""
    link = ""
    link_elem = element.find("atom:link", NAMESPACES)
    if link_elem is not None:
        link = link_elem.get("href") or ""

    video_id = _get_text(element, "yt:videoId") or extract_video_id(link)
    if not video_id:
        logger.debug("Skipping feed entry without video id")
        return None

    description = _get_text(element, "media:group/media:description", default="") or ""
    thumbnail = ""
    thumb_elem = element.find("media:group/media:thumbnail", NAMESPACES)
    if thumb_elem is not None:
        thumbnail = thumb_elem.get("url") or ""

    view_count = None
    stats_elem = element.find("media:group/media:community/media:statistics", NAMESPACES)
    if stats_elem is not None:
        view_count = stats_elem.get("views")

    published_raw = _get_text(element, "atom:published", default="") or ""
    try:
        published = parse_iso8601_to_utc(published_raw) if published_raw else None
    except DateFormatError:
        published = None

    return FeedEntry(
        entry_id=_get_text(element, "atom:id", default=f"yt:video:{video_id}") or video_id,
        video_id=video_id,
        title=_get_text(element, "atom:title", default="") or "",
        link=link or f"https://www.youtube.com/watch?v={video_id}",
        description=description,
        thumbnail=thumbnail or extract_thumbnail_from_description(description) or thumbnail_url(video_id),
        published=published,
        published_raw=published_raw,
        channel_title=_get_text(element, "atom:author/atom:name", default=channel_title) or channel_title,
        view_count=view_count,
    )


def extract_video_id(url: str) -> str:
    """Extract the video id from a watch or youtu.be URL."""
    match = _VIDEO_ID_PATTERN.search(url or "")
    return match.group(1) if match else ""


def extract_thumbnail_from_description(description: str) -> str:
    """Pull the first <img src> out of an HTML description."""
    match = _IMG_SRC_PATTERN.search(description or "")
    return match.group(1) if match else ""


def thumbnail_url(video_id: str, quality: str = "hqdefault") -> str:
    """Static thumbnail URL for a video id."""
    return f"https://img.youtube.com/vi/{video_id}/{quality}.jpg"


def _get_text(element: etree._Element, path: str, default: str | None = None) -> str | None:
    """Get stripped text from a namespaced child element"""
    child = element.find(path, NAMESPACES)
    if child is None or child.text is None:
        return default
    return child.text.strip()
