"""Resilience layer for the Strudel MCP server.

This module provides:
- Retry with exponential or constant backoff and fallbacks
- Timeout wrappers that stop waiting without cancelling
- A circuit breaker gate over shared failure history
- Pattern simplification for failing pattern writes
"""

from .circuit_breaker import CircuitBreakerGate, CircuitOpenError
from .clock import Clock, ManualClock, SystemClock
from .history import ErrorHistoryTracker, ErrorStats
from .recovery import ErrorRecovery, error_recovery
from .retry import RetryExecutor, RetryExhaustedError, RetryStrategy, calculate_delay
from .simplifier import simplify_pattern
from .timeout import OperationTimeoutError, TimeoutExecutor

__all__ = [
    "ErrorRecovery",
    "error_recovery",
    "RetryExecutor",
    "RetryStrategy",
    "RetryExhaustedError",
    "calculate_delay",
    "TimeoutExecutor",
    "OperationTimeoutError",
    "CircuitBreakerGate",
    "CircuitOpenError",
    "ErrorHistoryTracker",
    "ErrorStats",
    "Clock",
    "SystemClock",
    "ManualClock",
    "simplify_pattern",
]
