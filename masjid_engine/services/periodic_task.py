"""
Periodic Tasks

A cancellable repeating asyncio task with single-flight execution. Ticks fire
on a fixed cadence measured against the event loop clock, so slow ticks do
not push later ones back; a tick that would overlap a still-running
predecessor is skipped.
"""
import asyncio
import logging
from contextlib import suppress
from typing import Awaitable, Callable

from masjid_engine.services.single_flight import SingleFlight
from masjid_engine.utils.logging_helpers import log_task_started, log_task_stopped


logger = logging.getLogger(__name__)


class PeriodicTask:
    """Runs an async callable every `interval` seconds until stopped"""

    def __init__(
        self,
        name: str,
        operation: Callable[[], Awaitable[None]],
        interval: float,
        *,
        run_immediately: bool = True,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"{name}: interval must be > 0")
        self.name = name
        self.interval = interval
        self.run_immediately = run_immediately
        self.ticks_started = 0
        self.ticks_failed = 0
        self._operation = operation
        self._flight = SingleFlight(name)
        self._loop_task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def is_busy(self) -> bool:
        return self._flight.is_busy()

    @property
    def ticks_skipped(self) -> int:
        return self._flight.skipped

    def start(self) -> None:
        """Start ticking. Must be called from inside a running event loop."""
        if self.is_running:
            logger.warning("Periodic task %s already running", self.name)
            return
        self._loop_task = asyncio.create_task(self._run_loop(), name=f"{self.name}-loop")
        log_task_started(logger, self.name, self.interval)

    async def stop(self) -> None:
        """Cancel the loop and any in-flight tick, waiting for both to finish."""
        loop_task = self._loop_task
        self._loop_task = None
        if loop_task is not None and not loop_task.done():
            loop_task.cancel()
            with suppress(asyncio.CancelledError):
                await loop_task
        await self._flight.cancel()
        if loop_task is not None:
            log_task_stopped(logger, self.name, self.ticks_started, self.ticks_skipped)

    async def restart(self) -> None:
        await self.stop()
        self.start()

    async def _run_loop(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        if not self.run_immediately:
            deadline += self.interval

        while True:
            await asyncio.sleep(max(0.0, deadline - loop.time()))

            if self._flight.launch(self._run_tick) is not None:
                self.ticks_started += 1

            deadline += self.interval
            # After a long stall (suspend, blocked loop) resume from now instead of bursting
            if loop.time() - deadline > self.interval:
                logger.debug("Periodic task %s fell behind, resetting cadence", self.name)
                deadline = loop.time()

    async def _run_tick(self) -> None:
        try:
            await self._operation()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # A failed tick never ends the loop
            self.ticks_failed += 1
            logger.error("Periodic task %s tick failed: %s", self.name, exc, exc_info=True)
