import logging
from datetime import datetime
from typing import Awaitable, Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from masjid_engine.utils.timezone import resolve_timezone


logger = logging.getLogger(__name__)

ROLLOVER_JOB_ID = "schedule_rollover"


class ScheduleRolloverScheduler:
    """Scheduler that recomputes the prayer schedule at the start of each local day"""

    def __init__(
        self,
        refresh: Callable[[], Awaitable[None]],
        *,
        cron: str = "0 0 * * *",
        timezone: str = "UTC",
        misfire_grace_sec: int = 300,
    ):
        self.scheduler: AsyncIOScheduler | None = None
        self.cron = cron
        self.timezone = timezone
        self.misfire_grace_sec = misfire_grace_sec
        self._refresh = refresh

    async def _rollover_job(self) -> None:
        """Background job that refreshes the schedule snapshot"""
        logger.info("Scheduled schedule rollover triggered")
        try:
            await self._refresh()
        except Exception as e:
            logger.error(f"Exception in scheduled rollover: {e}", exc_info=True)

    def start(self) -> None:
        """Start the scheduler with the rollover job"""
        if self.scheduler and self.scheduler.running:
            logger.warning("Scheduler already running")
            return

        zone = resolve_timezone(self.timezone)
        try:
            trigger = CronTrigger.from_crontab(self.cron, timezone=zone)
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", self.cron, exc)
            raise

        self.scheduler = AsyncIOScheduler(timezone=zone)
        self.scheduler.add_job(
            self._rollover_job,
            trigger=trigger,
            id=ROLLOVER_JOB_ID,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.misfire_grace_sec,
        )

        self.scheduler.start()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler started. Next rollover: %s",
            next_time.isoformat() if next_time else "unknown"
        )

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    @property
    def running(self) -> bool:
        return bool(self.scheduler and self.scheduler.running)

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled rollover time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job(ROLLOVER_JOB_ID)
        return job.next_run_time if job else None
