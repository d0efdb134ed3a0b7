import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import FakeClock
from masjid_engine import main as main_module
from masjid_engine.main import app
from masjid_engine.services.countdown import CountdownTicker
from masjid_engine.services.display_session import DisplaySession
from masjid_engine.services.engine_types import DetectionResult, LiveStream, VideoListing, YouTubeVideo
from masjid_engine.services.live_stream_service import LiveStreamPoller
from masjid_engine.services.video_feed_service import VIDEOS_UNAVAILABLE, VideoFeedCache


LIVE = LiveStream(
    id="yt:video:live1",
    title="🔴 LIVE Jummah Khutbah",
    description="312 watching",
    thumbnail="https://img.youtube.com/vi/live1/hqdefault.jpg",
    published_at="2025-06-10T20:30:00Z",
    video_id="live1",
    channel_title="SSMA",
    live_viewers="312 watching",
)

VIDEO = YouTubeVideo(
    id="yt:video:v1",
    title="Tafsir Night",
    description="Surah Al-Kahf",
    thumbnail="https://img.youtube.com/vi/v1/hqdefault.jpg",
    published_at="2025-06-01T18:00:00Z",
    video_id="v1",
    channel_title="SSMA",
    view_count="42",
)


@pytest.fixture
async def client(sacramento):
    clock = FakeClock(datetime(2025, 6, 10, 21, 0, tzinfo=timezone.utc))
    listings = iter([VideoListing(videos=(VIDEO,)), VideoListing(videos=(), error=VIDEOS_UNAVAILABLE)])

    async def detect():
        return DetectionResult(live_stream=LIVE)

    async def fetch_listing():
        return next(listings)

    session = DisplaySession(
        sacramento,
        poller=LiveStreamPoller(detect, interval=60),
        videos=VideoFeedCache(fetch_listing),
        ticker=CountdownTicker(interval=60, clock=clock),
        clock=clock,
    )
    await session.start()
    for _ in range(50):
        if not session.videos.state.loading and not session.poller.state.loading:
            break
        await asyncio.sleep(0.01)

    app.state.display_session = session
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.state.display_session = None
    await session.close()


async def test_root_and_health(client):
    root = await client.get("/")
    health = await client.get("/health")

    assert root.status_code == 200
    assert root.json()["service"] == "Masjid Engine"
    assert root.json()["next_schedule_rollover"] is not None
    body = health.json()
    assert body["status"] == "ok"
    assert body["scheduler_running"] is True
    assert body["live_stream_polling"] is True
    assert body["schedule_error"] is None


async def test_prayer_times_flags_next_and_active(client):
    response = await client.get("/prayer-times")

    assert response.status_code == 200
    body = response.json()
    assert body["schedule_date"] == "2025-06-10"
    assert body["method"] == "Jafari"
    assert len(body["entries"]) == 8
    assert [entry["name"] for entry in body["entries"] if entry["is_next"]] == ["Asr"]
    assert [entry["name"] for entry in body["entries"] if entry["is_active"]] == ["Dhuhr"]
    assert body["next_prayer"] == "asr"
    assert body["countdown"].endswith("s")
    assert body["qibla"]["cardinal"] in ("N", "NNE", "NE")
    assert body["error"] is None


async def test_prayer_times_for_a_given_date(client):
    response = await client.get("/prayer-times/2025-12-25")

    assert response.status_code == 200
    body = response.json()
    assert body["schedule_date"] == "2025-12-25"
    assert len(body["entries"]) == 8
    assert not any(entry["is_next"] or entry["is_active"] for entry in body["entries"])


async def test_malformed_date_answers_standard_error(client):
    response = await client.get("/prayer-times/2025-13-01")

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["error"]["code"] == "DATE_FORMAT_ERROR"
    assert body["error"]["context"] == {"path": "/prayer-times/2025-13-01"}


async def test_countdown(client):
    body = (await client.get("/countdown")).json()

    assert body["next_prayer"] == "asr"
    assert body["remaining_seconds"] > 0
    assert body["countdown"]


async def test_events_status_projects_each_event(client):
    payload = {
        "today": "2025-06-11",
        "events": [
            {"id": "conf", "title": "Youth Conference", "date_start": "2025-06-10", "date_end": "2025-06-12"},
            {"id": "iftar", "title": "Community Iftar", "date_start": "2025-06-12", "time": "8:00 PM"},
            {"id": "old", "title": "Bake Sale", "date_start": "2025-06-01"},
            {"id": "broken", "title": "Typo", "date_start": "2025-06-31"},
        ],
    }

    response = await client.post("/events/status", json=payload)

    assert response.status_code == 200
    body = response.json()
    events = {event["id"]: event for event in body["events"]}
    assert body["count"] == 3
    assert events["conf"]["status"] == "active"
    assert events["conf"]["days_remaining"] == 1
    assert events["conf"]["date_label"] == "Jun 10-12, 2025"
    assert events["iftar"]["is_tomorrow"] is True
    assert events["iftar"]["time"] == "8:00 PM"
    assert events["old"]["status"] == "past"
    assert "broken" in body["errors"]


async def test_events_status_upcoming_only_uses_session_date(client):
    payload = {
        "events": [
            {"id": "later", "title": "Eid Picnic", "date_start": "2025-06-20"},
            {"id": "old", "title": "Bake Sale", "date_start": "2025-06-01"},
            {"id": "today", "title": "Halaqa", "date_start": "2025-06-10"},
        ],
    }

    response = await client.post("/events/status", params={"upcoming_only": "true"}, json=payload)

    body = response.json()
    assert body["today"] == "2025-06-10"
    assert [event["id"] for event in body["events"]] == ["today", "later"]
    assert body["events"][0]["highlight"] == "today"


async def test_events_status_rejects_incomplete_records(client):
    response = await client.post("/events/status", json={"events": [{"id": "x"}]})

    assert response.status_code == 422
    assert response.json()["detail"]


async def test_live_stream_snapshot(client):
    body = (await client.get("/live-stream")).json()

    assert body["loading"] is False
    assert body["error"] is None
    assert body["live_stream"]["video_id"] == "live1"
    assert body["live_stream"]["live_viewers"] == "312 watching"


async def test_videos_and_failed_refresh_clears_list(client):
    listing = (await client.get("/videos")).json()
    refreshed = (await client.post("/videos/refresh")).json()

    assert listing["count"] == 1
    assert listing["videos"][0]["video_id"] == "v1"
    assert refreshed["count"] == 0
    assert refreshed["videos"] == []
    assert refreshed["error"] == VIDEOS_UNAVAILABLE


def test_routes_answer_503_without_a_session():
    app.state.display_session = None
    test_client = TestClient(app)

    response = test_client.get("/health")

    assert response.status_code == 503


def test_run_serves_the_app_on_the_configured_address(monkeypatch):
    served = {}
    monkeypatch.setattr(main_module.uvicorn, "run", lambda target, **options: served.update(target=target, **options))
    monkeypatch.setattr(main_module.settings, "port", 8123)

    main_module.run()

    assert served["target"] is app
    assert served["port"] == 8123
    assert served["host"] == main_module.settings.host
    assert served["log_level"] == main_module.settings.log_level.lower()
