"""Strudel MCP: resilient control of the Strudel live-coding editor."""

__version__ = "0.1.0"

from .resilience import ErrorRecovery, RetryStrategy

__all__ = ["ErrorRecovery", "RetryStrategy"]
