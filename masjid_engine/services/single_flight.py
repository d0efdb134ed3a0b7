"""
Single-Flight Coordination

Guards an async operation so that at most one execution is in flight.
Overlapping triggers are dropped rather than queued.
"""
import asyncio
import logging
from contextlib import suppress
from typing import Any, Awaitable, Callable


logger = logging.getLogger(__name__)


class SingleFlight:
    """
    Coordinates executions of one operation to prevent overlap.

    Tracks the in-flight asyncio.Task; a trigger arriving while that task is
    still pending is skipped and counted. The guard is claimed synchronously
    in launch(), so no second execution can slip in before the first one
    reaches its first await.
    """

    def __init__(self, name: str):
        """Initialize the guard for the named operation."""
        self.name = name
        self.skipped = 0
        self._task: asyncio.Task | None = None

    def is_busy(self) -> bool:
        """
        Check if an execution is currently in flight.

        Returns:
            True if the previous execution has not finished, False otherwise
        """
        return self._task is not None and not self._task.done()

    def launch(self, operation: Callable[[], Awaitable[Any]]) -> asyncio.Task | None:
        """
        Start the operation unless one is already running.

        Args:
            operation: Zero-argument coroutine function to execute

        Returns:
            The scheduled task, or None if the trigger was skipped
        """
        if self.is_busy():
            self.skipped += 1
            logger.warning("%s already in progress, skipping this trigger", self.name)
            return None

        self._task = asyncio.create_task(operation(), name=self.name)
        return self._task

    async def execute(self, operation: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run the operation and wait for its result.

        Returns:
            Result from operation, or None if the trigger was skipped

        Raises:
            Any exception raised by operation
        """
        task = self.launch(operation)
        if task is None:
            return None
        return await task

    async def cancel(self) -> None:
        """Cancel the in-flight execution, if any, and wait for it to unwind."""
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
