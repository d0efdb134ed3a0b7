from datetime import datetime, timedelta, timezone

import pytest

from masjid_engine.services.engine_types import PrayerConfig, PrayerSchedule


SACRAMENTO = PrayerConfig(
    latitude=38.5816,
    longitude=-121.4944,
    timezone="America/Los_Angeles",
    method="Jafari",
    location_label="Sacramento, CA",
)

FEED_URL = "https://www.youtube.com/feeds/videos.xml"
CACHE_URL = "https://cache.example.com/videos.json"


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_schedule(day: datetime | None = None) -> PrayerSchedule:
    """Synthetic UTC schedule with round clock times for selector tests."""
    base = day or datetime(2025, 6, 10, tzinfo=timezone.utc)

    def at(hours: int, minutes: int = 0) -> datetime:
        return base + timedelta(hours=hours, minutes=minutes)

    return PrayerSchedule(
        date=base.date(),
        location="Test",
        method="Jafari",
        fajr=at(5),
        sunrise=at(6, 30),
        dhuhr=at(12),
        asr=at(15, 30),
        maghrib=at(19),
        sunset=at(19, 15),
        isha=at(20, 30),
        midnight=at(24, 30),
    )


def feed_entry(
    video_id: str,
    title: str,
    *,
    published: str = "2025-06-01T18:00:00+00:00",
    description: str = "",
    views: str = "42",
) -> str:
    return f"""
  <entry>
    <id>yt:video:{video_id}</id>
    <yt:videoId>{video_id}</yt:videoId>
    <title>{title}</title>
    <link rel="alternate" href="https://www.youtube.com/watch?v={video_id}"/>
    <author><name>SSMA</name></author>
    <published>{published}</published>
    <media:group>
      <media:title>{title}</media:title>
      <media:thumbnail url="https://i1.ytimg.com/vi/{video_id}/hqdefault.jpg" width="480" height="360"/>
      <media:description>{description}</media:description>
      <media:community><media:statistics views="{views}"/></media:community>
    </media:group>
  </entry>"""


def make_feed(*entries: str, title: str = "SSMA") -> bytes:
    body = "".join(entries)
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns:media="http://search.yahoo.com/mrss/" xmlns="http://www.w3.org/2005/Atom">
  <title>{title}</title>{body}
</feed>""".encode("utf-8")


@pytest.fixture
def sacramento() -> PrayerConfig:
    return SACRAMENTO


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 6, 10, 20, 0, tzinfo=timezone.utc))
