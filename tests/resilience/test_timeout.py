"""Tests for timeout wrappers."""

import asyncio
import pytest
from unittest.mock import AsyncMock

from strudelmcp.resilience.clock import SystemClock
from strudelmcp.resilience.retry import RetryExhaustedError, RetryStrategy
from strudelmcp.resilience.timeout import OperationTimeoutError, TimeoutExecutor


@pytest.fixture
def executor(clock):
    return TimeoutExecutor(clock)


class TestOperationTimeoutError:
    """Test OperationTimeoutError exception."""

    def test_error_creation(self):
        """Test creating OperationTimeoutError."""
        error = OperationTimeoutError("slow-op", 1000)
        assert str(error) == "slow-op timed out after 1000ms"
        assert error.operation_name == "slow-op"
        assert error.timeout_ms == 1000


class TestExecuteWithTimeout:
    """Test TimeoutExecutor.execute_with_timeout."""

    @pytest.mark.asyncio
    async def test_fast_operation(self, executor, clock):
        """Test result is returned when the operation beats the deadline."""
        operation = AsyncMock(return_value="fast result")

        result = await executor.execute_with_timeout(operation, 5000, "fast-op")

        assert result == "fast result"
        assert clock.pending == 0

    @pytest.mark.asyncio
    async def test_slow_operation_times_out(self, executor, clock):
        """Test a slow operation is abandoned at the deadline."""
        async def slow_op():
            await clock.sleep(10000)
            return "too late"

        task = asyncio.create_task(executor.execute_with_timeout(slow_op, 1000, "x"))

        await clock.advance(999)
        assert not task.done()

        await clock.advance(1)
        assert task.done()
        with pytest.raises(OperationTimeoutError, match="^x timed out after 1000ms$"):
            await task

        await clock.advance(9000)

    @pytest.mark.asyncio
    async def test_operation_keeps_running_after_timeout(self, executor, clock):
        """Test the timed-out operation is not cancelled."""
        finished = []

        async def slow_op():
            await clock.sleep(5000)
            finished.append(True)
            return "done"

        task = asyncio.create_task(executor.execute_with_timeout(slow_op, 1000, "slow-op"))
        await clock.advance(1000)
        with pytest.raises(OperationTimeoutError):
            await task

        assert finished == []
        await clock.advance(4000)
        assert finished == [True]

    @pytest.mark.asyncio
    async def test_late_failure_is_discarded(self, executor, clock):
        """Test an error raised after the timeout does not reach the caller."""
        async def slow_failure():
            await clock.sleep(2000)
            raise RuntimeError("late failure")

        task = asyncio.create_task(executor.execute_with_timeout(slow_failure, 1000, "late-op"))
        await clock.advance(1000)
        with pytest.raises(OperationTimeoutError):
            await task

        await clock.advance(1000)

    @pytest.mark.asyncio
    async def test_error_propagates_unchanged(self, executor):
        """Test an operation error before the deadline propagates as is."""
        operation = AsyncMock(side_effect=ValueError("operation error"))

        with pytest.raises(ValueError, match="operation error"):
            await executor.execute_with_timeout(operation, 5000, "error-op")

    @pytest.mark.asyncio
    async def test_system_clock_timeout(self):
        """Test timeouts on the wall clock."""
        executor = TimeoutExecutor(SystemClock())

        async def slow_op():
            await asyncio.sleep(1.0)

        with pytest.raises(OperationTimeoutError, match="wall-op timed out after 50ms"):
            await executor.execute_with_timeout(slow_op, 50, "wall-op")

    @pytest.mark.asyncio
    async def test_system_clock_success(self):
        """Test wall-clock execution returns the result."""
        executor = TimeoutExecutor()

        async def quick_op():
            await asyncio.sleep(0.01)
            return {"key": "value"}

        result = await executor.execute_with_timeout(quick_op, 1000, "quick-op")
        assert result == {"key": "value"}


class TestExecuteWithRetryAndTimeout:
    """Test retry combined with per-attempt timeouts."""

    @pytest.mark.asyncio
    async def test_timeout_is_retried(self, recovery, clock):
        """Test a timed-out attempt is retried like any failure."""
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            if calls == 1:
                await clock.sleep(60000)
            return "success"

        strategy = RetryStrategy(max_retries=1, retry_delay_ms=100, exponential_backoff=False)
        task = asyncio.create_task(
            recovery.execute_with_retry_and_timeout(operation, "slow-op", 1000, strategy)
        )

        await clock.advance(1000)
        assert calls == 1
        assert recovery.get_error_stats()["slow-op"].count == 1

        await clock.advance(100)
        assert await task == "success"
        assert calls == 2

        await clock.advance(60000)

    @pytest.mark.asyncio
    async def test_success_within_timeout(self, recovery):
        """Test a fast operation passes straight through."""
        operation = AsyncMock(return_value="success")

        result = await recovery.execute_with_retry_and_timeout(operation, "fast-op", 1000)

        assert result == "success"
        assert operation.call_count == 1

    @pytest.mark.asyncio
    async def test_exhaustion_carries_timeout_message(self, recovery, clock):
        """Test exhaustion after timeouts reports the timeout error."""
        async def hang():
            await clock.sleep(100000)

        strategy = RetryStrategy(max_retries=1, retry_delay_ms=100, exponential_backoff=False)
        task = asyncio.create_task(
            recovery.execute_with_retry_and_timeout(hang, "hang-op", 500, strategy)
        )

        await clock.advance(1100)
        with pytest.raises(RetryExhaustedError) as exc_info:
            await task
        assert str(exc_info.value) == (
            "hang-op failed after 2 attempts: hang-op timed out after 500ms"
        )

        await clock.advance(100000)
