"""Clock abstraction for the resilience layer.

All waiting done by the retry and timeout executors goes through a clock so
that real time and deterministic test time drive the same logic:
- SystemClock: wall-clock time and asyncio.sleep
- ManualClock: time that only moves when advance() is awaited
"""

import asyncio
import heapq
import itertools
import time
from typing import Protocol

# Event loop passes granted to woken tasks after each ManualClock timer fires
SETTLE_PASSES = 20


class Clock(Protocol):
    """Time source used by the executors. Times are in milliseconds."""

    def now(self) -> float:
        ...

    async def sleep(self, ms: float) -> None:
        ...


class SystemClock:
    """Clock backed by the wall clock."""

    def now(self) -> float:
        return time.time() * 1000.0

    async def sleep(self, ms: float) -> None:
        await asyncio.sleep(max(ms, 0) / 1000.0)


class ManualClock:
    """Deterministic clock for tests and simulations.

    Sleepers are parked until advance() moves time past their deadline.

    Usage:
        clock = ManualClock()
        task = asyncio.create_task(recovery.execute_with_retry(op, "op"))
        await clock.advance(1000)
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._sleepers: list[tuple[float, int, asyncio.Future]] = []
        self._sequence = itertools.count()

    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of sleepers still waiting for their deadline."""
        return sum(1 for _, _, future in self._sleepers if not future.done())

    async def sleep(self, ms: float) -> None:
        if ms <= 0:
            await asyncio.sleep(0)
            return

        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._sleepers, (self._now + ms, next(self._sequence), future))
        await future

    async def advance(self, ms: float) -> None:
        """Move time forward, waking every sleeper whose deadline is reached.

        Timers fire in deadline order and woken tasks get to run (and
        schedule new sleeps) before the next timer is considered.
        """
        target = self._now + ms
        await self._settle()

        while self._sleepers and self._sleepers[0][0] <= target:
            deadline, _, future = heapq.heappop(self._sleepers)
            if future.done():
                # Sleeper was cancelled
                continue
            self._now = max(self._now, deadline)
            future.set_result(None)
            await self._settle()

        self._now = target

    @staticmethod
    async def _settle() -> None:
        for _ in range(SETTLE_PASSES):
            await asyncio.sleep(0)
