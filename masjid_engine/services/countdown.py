"""
Countdown Ticker

Re-evaluates the time remaining to a target instant once per second and
republishes it as a human-readable duration. The ticker knows nothing about
prayers: once the target is reached it keeps publishing "0s" until its owner
sets a new target.
"""
import asyncio
import logging
import math
from datetime import datetime, timezone
from typing import Callable

from masjid_engine.services.periodic_task import PeriodicTask


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
CountdownListener = Callable[[str, int], None]


def utc_clock() -> datetime:
    return datetime.now(timezone.utc)


def remaining_seconds(target: datetime, now: datetime) -> int:
    """Whole seconds until target, rounded up; 0 only once target is reached."""
    return max(0, math.ceil((target - now).total_seconds()))


def format_remaining(seconds: int, *, with_seconds: bool = True) -> str:
    """
    Format a duration as '2h 5m 9s', '5m 9s' or '9s'

    Args:
        seconds: Non-negative duration in seconds
        with_seconds: When False, use the compact '2h 5m' / '5m' form

    Returns:
        Formatted duration string
    """
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)

    if not with_seconds:
        return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class CountdownTicker:
    """Publishes the formatted time remaining to a target once per interval"""

    def __init__(self, *, interval: float = 1.0, clock: Clock = utc_clock) -> None:
        self.interval = interval
        self._clock = clock
        self._target: datetime | None = None
        self._value = ""
        self._remaining = 0
        self._reached = False
        self._task: PeriodicTask | None = None
        self._listeners: list[CountdownListener] = []
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def value(self) -> str:
        return self._value

    @property
    def target(self) -> datetime | None:
        return self._target

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def reached(self) -> bool:
        """True once the clock has passed the current target."""
        return self._reached

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_running(self) -> bool:
        return self._task is not None and self._task.is_running

    def subscribe(self, listener: CountdownListener) -> None:
        """Register a callback receiving (formatted value, remaining seconds) on every tick."""
        self._listeners.append(listener)

    async def set_target(self, target: datetime | None) -> None:
        """
        Point the countdown at a new instant

        The running loop, if any, is torn down and a fresh one started, so
        ticks are always aligned to the moment the target was set. A None
        target publishes an empty string and leaves the ticker idle.
        Concurrent calls are applied one at a time; after close() this is a
        no-op.
        """
        async with self._lock:
            if self._closed:
                logger.debug("Countdown closed, ignoring target %s", target)
                return

            await self._stop_loop()
            self._target = target

            if target is None:
                self._remaining = 0
                self._reached = False
                self._publish("")
                return

            logger.debug("Countdown target set to %s", target.isoformat())
            self.tick()
            self._task = PeriodicTask("countdown", self._tick_async, self.interval, run_immediately=False)
            self._task.start()

    def tick(self) -> str:
        """Recompute and publish the remaining duration for the current target."""
        if self._target is None:
            self._remaining = 0
            self._reached = False
            self._publish("")
            return self._value

        now = self._clock()
        self._remaining = remaining_seconds(self._target, now)
        self._reached = now >= self._target
        self._publish(format_remaining(self._remaining))
        return self._value

    async def close(self) -> None:
        """Stop the loop for good; later set_target calls are ignored."""
        async with self._lock:
            self._closed = True
            await self._stop_loop()

    async def _tick_async(self) -> None:
        self.tick()

    async def _stop_loop(self) -> None:
        if self._task is not None:
            await self._task.stop()
            self._task = None

    def _publish(self, value: str) -> None:
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value, self._remaining)
            except Exception as exc:
                logger.error("Countdown listener failed: %s", exc, exc_info=True)
