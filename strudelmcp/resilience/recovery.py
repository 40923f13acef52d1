"""Error recovery for the Strudel MCP server.

ErrorRecovery ties one clock and one failure history to the retry, timeout
and circuit breaker components, and exposes the fixed policies used for the
browser, the pattern editor and network calls.
"""

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..config import settings
from .circuit_breaker import CircuitBreakerGate
from .clock import Clock, SystemClock
from .fallback import browser_init_fallback, simplified_write_fallback
from .history import ErrorHistoryTracker, ErrorStats
from .retry import RetryExecutor, RetryStrategy
from .timeout import TimeoutExecutor

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Pre-configured policies for the Strudel controller's operations
BROWSER_INIT_OPERATION = "Browser Initialization"
BROWSER_INIT_TIMEOUT_MS = 30000
BROWSER_INIT_STRATEGY = RetryStrategy(max_retries=2, retry_delay_ms=2000, exponential_backoff=True)

PATTERN_WRITE_OPERATION = "Pattern Write"
PATTERN_WRITE_STRATEGY = RetryStrategy(max_retries=2, retry_delay_ms=500, exponential_backoff=False)

NETWORK_STRATEGY = RetryStrategy(max_retries=5, retry_delay_ms=2000, exponential_backoff=True)


class ErrorRecovery:
    """Graceful error handling for browser, pattern and network operations.

    Usage:
        recovery = ErrorRecovery()
        status = await recovery.handle_browser_init(controller.initialize)
        result = await recovery.handle_pattern_write(controller.write_pattern, pattern)
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        tracker: Optional[ErrorHistoryTracker] = None,
        window_ms: Optional[float] = None,
    ):
        """Initialize error recovery.

        Args:
            clock: Time source for waits and failure timestamps
            tracker: Failure history to share with other components
            window_ms: Failure window when creating a new tracker
        """
        self.clock = clock or (tracker.clock if tracker else SystemClock())
        self.tracker = tracker or ErrorHistoryTracker(
            self.clock,
            window_ms if window_ms is not None else settings.error_window_ms,
        )
        self.retry_executor = RetryExecutor(self.tracker, self.clock)
        self.timeout_executor = TimeoutExecutor(self.clock)
        self.circuit_gate = CircuitBreakerGate(self.tracker)

    async def execute_with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        strategy: Optional[RetryStrategy] = None,
    ) -> T:
        """Execute an operation with automatic retry. See RetryExecutor."""
        return await self.retry_executor.execute_with_retry(operation, name, strategy)

    async def execute_with_timeout(
        self,
        operation: Callable[[], Awaitable[T]],
        timeout_ms: float,
        name: str,
    ) -> T:
        """Execute an operation with timeout protection. See TimeoutExecutor."""
        return await self.timeout_executor.execute_with_timeout(operation, timeout_ms, name)

    async def execute_with_retry_and_timeout(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        timeout_ms: float,
        strategy: Optional[RetryStrategy] = None,
    ) -> T:
        """Retry an operation, bounding every attempt by `timeout_ms`.

        A timed-out attempt counts as an ordinary failure.
        """
        return await self.execute_with_retry(
            lambda: self.execute_with_timeout(operation, timeout_ms, name),
            name,
            strategy,
        )

    async def handle_browser_init(self, init_fn: Callable[[], Awaitable[str]]) -> str:
        """Start the browser, degrading total failure to a hint message.

        Args:
            init_fn: Browser initialization routine

        Returns:
            The routine's result, or a description of the failure
        """
        strategy = replace(BROWSER_INIT_STRATEGY, fallback_action=browser_init_fallback)
        return await self.execute_with_retry_and_timeout(
            init_fn,
            BROWSER_INIT_OPERATION,
            BROWSER_INIT_TIMEOUT_MS,
            strategy,
        )

    async def handle_pattern_write(
        self,
        write_fn: Callable[[str], Awaitable[str]],
        pattern: str,
    ) -> str:
        """Write a pattern, falling back to a simplified pattern.

        Args:
            write_fn: Pattern write routine
            pattern: Pattern to write

        Returns:
            Write result
        """
        strategy = replace(
            PATTERN_WRITE_STRATEGY,
            fallback_action=simplified_write_fallback(write_fn, pattern),
        )
        return await self.execute_with_retry(
            lambda: write_fn(pattern),
            PATTERN_WRITE_OPERATION,
            strategy,
        )

    async def handle_network_operation(
        self,
        network_op: Callable[[], Awaitable[T]],
        name: str,
    ) -> T:
        """Run a network call with long exponential backoff and no fallback."""
        return await self.execute_with_retry(network_op, name, NETWORK_STRATEGY)

    def create_circuit_breaker(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        threshold: Optional[int] = None,
    ) -> Callable[[], Awaitable[T]]:
        """Protect an operation with the shared failure history. See CircuitBreakerGate."""
        if threshold is None:
            threshold = settings.circuit_breaker_threshold
        return self.circuit_gate.create_circuit_breaker(operation, name, threshold)

    def is_frequently_failing(self, name: str, threshold: Optional[int] = None) -> bool:
        """Check if an operation failed `threshold` times within the window."""
        if threshold is None:
            threshold = settings.frequent_failure_threshold
        return self.tracker.is_frequently_failing(name, threshold)

    def get_error_stats(self) -> dict[str, ErrorStats]:
        """Get recent failure statistics by operation."""
        return self.tracker.get_error_stats()

    def clear_error_history(self, name: str) -> None:
        """Clear error history for one operation."""
        self.tracker.clear_error_history(name)

    def clear_all_error_history(self) -> None:
        """Clear all error history."""
        self.tracker.clear_all_error_history()

    def get_diagnostics(self) -> dict[str, Any]:
        """Get a JSON-friendly snapshot of the failure history.

        Returns:
            Diagnostics dictionary
        """
        return {
            "window_ms": self.tracker.window_ms,
            "error_stats": {
                name: stats.to_dict() for name, stats in self.get_error_stats().items()
            },
        }


# Default instance for the server process
error_recovery = ErrorRecovery()
