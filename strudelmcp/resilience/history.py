"""Per-operation failure history.

Tracks failure timestamps per operation name in a sliding window:
- Reads only count failures inside the window
- Expired entries stay visible as zero counts until cleared
- Thread-safe access to the shared map
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .clock import Clock, SystemClock

logger = logging.getLogger(__name__)


ERROR_WINDOW_MS = 60_000  # 1 minute window for error tracking


@dataclass(frozen=True)
class ErrorStats:
    """Recent failure statistics for one operation."""

    count: int = 0
    last_error: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "last_error": self.last_error.isoformat() if self.last_error else None,
        }


class ErrorHistoryTracker:
    """Sliding-window failure ledger keyed by operation name.

    Usage:
        tracker = ErrorHistoryTracker()
        tracker.record_failure("Pattern Write")
        if tracker.is_frequently_failing("Pattern Write", threshold=3):
            ...
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        window_ms: float = ERROR_WINDOW_MS,
    ):
        """Initialize tracker.

        Args:
            clock: Time source (defaults to the wall clock)
            window_ms: Trailing window in milliseconds for counting failures
        """
        self.clock = clock or SystemClock()
        self.window_ms = window_ms
        self._history: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def record_failure(self, name: str) -> None:
        """Record a failure of `name` at the current time."""
        now = self.clock.now()
        with self._lock:
            timestamps = [ts for ts in self._history.get(name, []) if self._in_window(ts, now)]
            timestamps.append(now)
            self._history[name] = timestamps
        logger.debug(f"Recorded failure for {name} ({len(timestamps)} in window)")

    def is_frequently_failing(self, name: str, threshold: int = 3) -> bool:
        """Check if `name` failed at least `threshold` times within the window.

        Args:
            name: Operation name
            threshold: Number of recent failures considered frequent

        Returns:
            True if the operation is failing frequently
        """
        return len(self._recent(name)) >= threshold

    def get_error_stats(self) -> dict[str, ErrorStats]:
        """Get recent failure statistics for every known operation.

        Operations whose failures have all expired are still reported,
        with a zero count.
        """
        now = self.clock.now()
        with self._lock:
            snapshot = {name: list(timestamps) for name, timestamps in self._history.items()}

        stats: dict[str, ErrorStats] = {}
        for name, timestamps in snapshot.items():
            recent = [ts for ts in timestamps if self._in_window(ts, now)]
            last_error = None
            if recent:
                last_error = datetime.fromtimestamp(max(recent) / 1000.0, tz=timezone.utc)
            stats[name] = ErrorStats(count=len(recent), last_error=last_error)
        return stats

    def clear_error_history(self, name: str) -> None:
        """Forget every failure recorded for `name`."""
        with self._lock:
            self._history.pop(name, None)

    def clear_all_error_history(self) -> None:
        """Forget every failure of every operation."""
        with self._lock:
            self._history.clear()

    def _recent(self, name: str) -> list[float]:
        now = self.clock.now()
        with self._lock:
            return [ts for ts in self._history.get(name, []) if self._in_window(ts, now)]

    def _in_window(self, timestamp: float, now: float) -> bool:
        return now - timestamp < self.window_ms
