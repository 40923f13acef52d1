"""Timeout wrapper for async operations.

Races an operation against a clock timer. A timeout stops the caller from
waiting; the operation itself is not cancelled and keeps running in the
background, its eventual outcome is discarded.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from .clock import Clock, SystemClock

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Strong references to operations still running after their caller timed out
_detached: set[asyncio.Task] = set()


class OperationTimeoutError(Exception):
    """Raised when an operation does not finish within its deadline."""

    def __init__(self, operation_name: str = "", timeout_ms: float = 0):
        super().__init__(f"{operation_name} timed out after {timeout_ms}ms")
        self.operation_name = operation_name
        self.timeout_ms = timeout_ms


class TimeoutExecutor:
    """Runs operations against a deadline measured on a clock."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    async def execute_with_timeout(
        self,
        operation: Callable[[], Awaitable[T]],
        timeout_ms: float,
        name: str,
    ) -> T:
        """Execute an operation with timeout protection.

        Args:
            operation: Zero-argument async operation
            timeout_ms: Deadline in milliseconds
            name: Operation name for error messages

        Returns:
            Operation result

        Raises:
            OperationTimeoutError: If the deadline passes first
            Exception: Whatever the operation raises before the deadline
        """
        task = asyncio.ensure_future(operation())
        timer = asyncio.ensure_future(self.clock.sleep(timeout_ms))

        try:
            await asyncio.wait({task, timer}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            timer.cancel()
            _detach(task, name)
            raise

        if task.done():
            timer.cancel()
            return task.result()

        logger.warning(f"{name} timed out after {timeout_ms}ms")
        _detach(task, name)
        raise OperationTimeoutError(name, timeout_ms)


def _detach(task: asyncio.Task, name: str) -> None:
    """Let an abandoned operation finish on its own."""
    if task.done():
        _log_late_outcome(task, name)
        return
    _detached.add(task)
    task.add_done_callback(lambda t: _on_detached_done(t, name))


def _on_detached_done(task: asyncio.Task, name: str) -> None:
    _detached.discard(task)
    _log_late_outcome(task, name)


def _log_late_outcome(task: asyncio.Task, name: str) -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.debug(f"{name} failed after its caller stopped waiting: {error}")
    else:
        logger.debug(f"{name} completed after its caller stopped waiting")
