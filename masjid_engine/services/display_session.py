"""
Display Session

Owns everything one mounted display needs: the prayer schedule snapshot for
the current local day, the countdown to the next prayer, the live-stream
poller and the video listing. Starting the session brings all of them up;
closing it cancels every timer and in-flight fetch.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from datetime import date, datetime, timedelta

from masjid_engine.services.countdown import Clock, CountdownTicker, utc_clock
from masjid_engine.services.engine_types import PrayerConfig, PrayerSelection, ScheduleResult
from masjid_engine.services.live_stream_service import LiveStreamPoller
from masjid_engine.services.prayer_calculator import compute_schedule
from masjid_engine.services.prayer_selector import select_prayers
from masjid_engine.services.scheduler_service import ScheduleRolloverScheduler
from masjid_engine.services.video_feed_service import VideoFeedCache
from masjid_engine.utils.timezone import local_date, resolve_timezone


logger = logging.getLogger(__name__)


class DisplaySession:
    """
    Wires the engine components together for one display.

    The schedule is recomputed on start, at every local-day rollover and
    whenever the countdown reaches zero, so the countdown target always
    follows the prayer that is actually next.
    """

    def __init__(
        self,
        config: PrayerConfig,
        *,
        poller: LiveStreamPoller,
        videos: VideoFeedCache,
        ticker: CountdownTicker | None = None,
        refresh_cron: str = "0 0 * * *",
        clock: Clock = utc_clock,
    ) -> None:
        self.config = config
        self.poller = poller
        self.videos = videos
        self.ticker = ticker or CountdownTicker(clock=clock)
        self.rollover = ScheduleRolloverScheduler(
            self.refresh_schedule,
            cron=refresh_cron,
            timezone=config.timezone,
        )
        self._clock = clock
        self._zone = resolve_timezone(config.timezone)
        self._schedule_result = ScheduleResult(error="Schedule not computed yet")
        self._next_day_fajr: datetime | None = None
        self._selection: PrayerSelection | None = None
        self._advancing = False
        self._background: set[asyncio.Task] = set()
        self._started = False

        self.ticker.subscribe(self._on_countdown_tick)

    @property
    def schedule_result(self) -> ScheduleResult:
        return self._schedule_result

    @property
    def selection(self) -> PrayerSelection | None:
        return self._selection

    @property
    def is_started(self) -> bool:
        return self._started

    def today(self) -> date:
        """Current calendar date in the configured timezone."""
        return local_date(self._clock(), self._zone)

    async def start(self) -> None:
        if self._started:
            logger.warning("Display session already started")
            return
        self._started = True

        await self.refresh_schedule()
        self.poller.start()
        self._spawn(self.videos.load(), "video-initial-load")
        self.rollover.start()
        logger.info("Display session started for %s", self.config.location_label or "configured location")

    async def close(self) -> None:
        """Tear down timers and in-flight fetches."""
        self._started = False
        self.rollover.shutdown()

        # Pending advances retarget the ticker; cancel them before it closes
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._background.clear()

        await self.ticker.close()
        await self.poller.stop()

        logger.info("Display session closed")

    async def refresh_schedule(self) -> ScheduleResult:
        """
        Recompute today's schedule and retarget the countdown

        Returns:
            The new ScheduleResult; on error the countdown is cleared and the
            error is kept for display
        """
        now = self._clock()
        today = local_date(now, self._zone)

        result = compute_schedule(self.config, today)
        self._schedule_result = result

        if result.schedule is None:
            self._next_day_fajr = None
            self._selection = None
            await self.ticker.set_target(None)
            return result

        tomorrow = compute_schedule(self.config, today + timedelta(days=1))
        self._next_day_fajr = tomorrow.schedule.fajr if tomorrow.schedule else None
        self._selection = select_prayers(result.schedule, now, self._next_day_fajr)

        logger.info(
            "Schedule for %s ready; next prayer %s at %s",
            today.isoformat(),
            self._selection.next,
            self._selection.next_at.isoformat(),
        )
        await self.ticker.set_target(self._selection.next_at)
        return result

    def select(self, now: datetime | None = None) -> PrayerSelection | None:
        """Project the current schedule against an instant without touching the countdown."""
        schedule = self._schedule_result.schedule
        if schedule is None:
            return None
        return select_prayers(schedule, now or self._clock(), self._next_day_fajr)

    def _on_countdown_tick(self, value: str, remaining: int) -> None:
        if not self._started or self._advancing or not self.ticker.reached:
            return
        self._advancing = True
        self._spawn(self._advance(), "prayer-advance")

    async def _advance(self) -> None:
        try:
            logger.info("Countdown reached zero, selecting next prayer")
            await self.refresh_schedule()
        finally:
            self._advancing = False

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task
