"""Circuit breaker gate built on the shared failure history.

There is no separate OPEN/HALF_OPEN/CLOSED state machine: the circuit for
an operation is open while its recent failure count (as recorded by the
retry executor) is at or above the threshold, and closes on its own once
those failures age out of the history window.
"""

import functools
import logging
from typing import Awaitable, Callable, TypeVar

from .history import ErrorHistoryTracker

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CIRCUIT_THRESHOLD = 5


class CircuitOpenError(Exception):
    """Raised when an operation is refused because its circuit is open."""

    def __init__(self, operation_name: str):
        super().__init__(
            f"Circuit breaker open for {operation_name} - "
            "operation disabled due to repeated failures"
        )
        self.operation_name = operation_name


class CircuitBreakerGate:
    """Refuses to invoke operations that have been failing frequently.

    Usage:
        gate = CircuitBreakerGate(tracker)
        guarded = gate.create_circuit_breaker(load_samples, "Sample Load")
        result = await guarded()

        # Or as a decorator:
        @gate.protect("Sample Load")
        async def load_samples():
            ...
    """

    def __init__(self, tracker: ErrorHistoryTracker):
        """Initialize gate.

        Args:
            tracker: Failure history shared with the retry executor
        """
        self.tracker = tracker

    def is_open(self, name: str, threshold: int = DEFAULT_CIRCUIT_THRESHOLD) -> bool:
        """Check if the circuit for `name` is currently open."""
        return self.tracker.is_frequently_failing(name, threshold)

    def create_circuit_breaker(
        self,
        operation: Callable[[], Awaitable[T]],
        name: str,
        threshold: int = DEFAULT_CIRCUIT_THRESHOLD,
    ) -> Callable[[], Awaitable[T]]:
        """Wrap an operation behind the circuit check.

        The returned coroutine function neither records failures nor
        retries; it only refuses to run while the circuit is open.

        Args:
            operation: Zero-argument async operation to protect
            name: Operation name used as the history key
            threshold: Recent failures at which the circuit opens

        Returns:
            Protected operation
        """

        async def guarded() -> T:
            if self.is_open(name, threshold):
                logger.warning(f"Circuit breaker open for {name}, refusing call")
                raise CircuitOpenError(name)
            return await operation()

        return guarded

    def protect(self, name: str, threshold: int = DEFAULT_CIRCUIT_THRESHOLD) -> Callable:
        """Decorator form of create_circuit_breaker for async functions.

        Args:
            name: Operation name used as the history key
            threshold: Recent failures at which the circuit opens

        Returns:
            Decorator
        """

        def decorator(func: Callable) -> Callable:
            @functools.wraps(func)
            async def wrapper(*args, **kwargs):
                guarded = self.create_circuit_breaker(
                    lambda: func(*args, **kwargs), name, threshold
                )
                return await guarded()

            return wrapper

        return decorator
