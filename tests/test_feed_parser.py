from datetime import datetime, timezone

import pytest
from lxml import etree

from conftest import feed_entry, make_feed
from masjid_engine.services.feed_parser import (
    extract_thumbnail_from_description,
    extract_video_id,
    parse_channel_feed,
    thumbnail_url,
)


def test_parse_channel_feed_reads_entries_in_order():
    content = make_feed(
        feed_entry("abc123", "Tafsir Night", description="Surah Al-Kahf", views="17"),
        feed_entry("def456", "Friday Khutbah", published="2025-06-06T20:15:00Z"),
        title="SSMA Channel",
    )

    channel, entries = parse_channel_feed(content)

    assert channel == "SSMA Channel"
    assert [entry.video_id for entry in entries] == ["abc123", "def456"]
    first = entries[0]
    assert first.entry_id == "yt:video:abc123"
    assert first.title == "Tafsir Night"
    assert first.description == "Surah Al-Kahf"
    assert first.view_count == "17"
    assert first.link == "https://www.youtube.com/watch?v=abc123"
    assert first.channel_title == "SSMA"
    assert entries[1].published == datetime(2025, 6, 6, 20, 15, tzinfo=timezone.utc)
    assert entries[1].published_raw == "2025-06-06T20:15:00Z"


def test_parse_channel_feed_honours_limit():
    content = make_feed(*(feed_entry(f"v{i}", f"Video {i}") for i in range(5)))

    _, entries = parse_channel_feed(content, limit=3)

    assert [entry.video_id for entry in entries] == ["v0", "v1", "v2"]


def test_unparseable_published_date_is_kept_raw():
    _, entries = parse_channel_feed(make_feed(feed_entry("v1", "Video", published="yesterday")))

    assert entries[0].published is None
    assert entries[0].published_raw == "yesterday"


def test_malformed_feed_raises_syntax_error():
    with pytest.raises(etree.XMLSyntaxError):
        parse_channel_feed(b"<feed><entry>")


def test_url_helpers():
    assert extract_video_id("https://www.youtube.com/watch?v=abc123&t=30") == "abc123"
    assert extract_video_id("https://youtu.be/xyz789") == "xyz789"
    assert extract_video_id("https://example.com") == ""
    assert extract_thumbnail_from_description('<p><img src="https://cdn/x.jpg" /></p>') == "https://cdn/x.jpg"
    assert thumbnail_url("abc123") == "https://img.youtube.com/vi/abc123/hqdefault.jpg"
    assert thumbnail_url("abc123", "maxresdefault").endswith("/maxresdefault.jpg")
