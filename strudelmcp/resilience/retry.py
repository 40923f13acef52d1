"""Retry with backoff for async operations.

Provides automatic retry for transient failures with:
- Configurable retry count
- Exponential or constant backoff
- A last-resort fallback action once retries are exhausted
- Failure history updates for every failed attempt
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .clock import Clock
from .history import ErrorHistoryTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryStrategy:
    """Retry policy for a single execute_with_retry call."""

    max_retries: int = 3  # Retries after the first attempt
    retry_delay_ms: int = 1000  # Base delay in milliseconds
    exponential_backoff: bool = True  # Double the delay after each retry
    fallback_action: Optional[Callable[[], Awaitable[Any]]] = None

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be non-negative, got {self.max_retries}")
        if self.retry_delay_ms < 0:
            raise ValueError(f"retry_delay_ms must be non-negative, got {self.retry_delay_ms}")

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1


DEFAULT_STRATEGY = RetryStrategy()


class RetryExhaustedError(Exception):
    """Raised when every attempt (and the fallback, if any) has failed.

    The message always carries the operation's last error, even when a
    fallback ran and failed too; the fallback's error is kept separately.
    """

    def __init__(
        self,
        operation_name: str,
        attempts: int,
        last_error: Optional[BaseException] = None,
        fallback_error: Optional[BaseException] = None,
    ):
        super().__init__(f"{operation_name} failed after {attempts} attempts: {last_error}")
        self.operation_name = operation_name
        self.attempts = attempts
        self.last_error = last_error
        self.fallback_error = fallback_error


def calculate_delay(retry: int, strategy: RetryStrategy) -> int:
    """Calculate the wait before a retry.

    Args:
        retry: Retry number (0-indexed)
        strategy: Retry strategy

    Returns:
        Delay in milliseconds
    """
    if strategy.exponential_backoff:
        return strategy.retry_delay_ms * (2**retry)
    return strategy.retry_delay_ms


class RetryExecutor:
    """Repeats failing operations according to a RetryStrategy.

    Usage:
        executor = RetryExecutor(tracker)
        result = await executor.execute_with_retry(
            fetch_samples,
            "Sample Fetch",
            RetryStrategy(max_retries=2, retry_delay_ms=500),
        )
    """

    def __init__(
        self,
        tracker: ErrorHistoryTracker,
        clock: Optional[Clock] = None,
    ):
        """Initialize retry executor.

        Args:
            tracker: Failure history updated on every attempt
            clock: Time source for backoff waits (defaults to the tracker's)
        """
        self.tracker = tracker
        self.clock = clock or tracker.clock

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        strategy: Optional[RetryStrategy] = None,
    ) -> T:
        """Execute an operation with automatic retry.

        Args:
            operation: Zero-argument async operation
            name: Operation name for history and error messages
            strategy: Retry strategy (defaults to RetryStrategy())

        Returns:
            Operation result, or the fallback's result once retries are exhausted

        Raises:
            RetryExhaustedError: If all attempts and the fallback failed
        """
        strategy = strategy or DEFAULT_STRATEGY
        attempts = strategy.total_attempts
        last_error: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                logger.debug(f"Executing {name} (attempt {attempt + 1}/{attempts})")
                result = await operation()
            except Exception as e:
                last_error = e
                self.tracker.record_failure(name)
                logger.warning(f"{name} failed (attempt {attempt + 1}/{attempts}): {e}")

                if attempt < strategy.max_retries:
                    delay = calculate_delay(attempt, strategy)
                    logger.debug(f"Waiting {delay}ms before retrying {name}")
                    await self.clock.sleep(delay)
                continue

            self.tracker.clear_error_history(name)
            return result

        logger.error(f"{name} failed after {attempts} attempts: {last_error}")

        fallback_error: Optional[Exception] = None
        if strategy.fallback_action is not None:
            logger.info(f"Executing fallback for {name}")
            try:
                return await strategy.fallback_action()
            except Exception as e:
                fallback_error = e
                logger.error(f"Fallback failed for {name}: {e}")

        raise RetryExhaustedError(name, attempts, last_error, fallback_error) from last_error
