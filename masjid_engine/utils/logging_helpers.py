"""
Structured logging helpers for consistent log formatting.

Provides utilities for lifecycle and poll summaries without decorative separators.
"""
import logging


def log_task_started(logger: logging.Logger, task_name: str, interval: float) -> None:
    """
    Log the start of a periodic task.

    Args:
        logger: Logger instance
        task_name: Name of the periodic task
        interval: Seconds between ticks
    """
    logger.info(f"Started: {task_name} (every {interval:g}s)")


def log_task_stopped(logger: logging.Logger, task_name: str, ticks: int, skipped: int) -> None:
    """
    Log the teardown of a periodic task.

    Args:
        logger: Logger instance
        task_name: Name of the periodic task
        ticks: Number of ticks that ran
        skipped: Number of ticks dropped because the previous one was still running
    """
    logger.info(f"Stopped: {task_name} ({ticks} ticks, {skipped} skipped)")


def log_poll_summary(logger: logging.Logger, source: str, found: bool, error: str | None) -> None:
    """Log the outcome of one external poll."""
    if error:
        logger.warning(f"{source} poll failed: {error}")
    else:
        logger.info(f"{source} poll complete: {'live' if found else 'not live'}")


def log_listing_summary(logger: logging.Logger, source: str, count: int, error: str | None) -> None:
    """Log the outcome of one listing fetch."""
    if error:
        logger.warning(f"{source} fetch failed: {error}")
    else:
        logger.info(f"{source} fetch complete: {count} videos")
