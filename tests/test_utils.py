"""
Warden - Utility Tests
======================

Tests for async fan-out helpers and retry logic.
"""

import asyncio

import pytest

from warden.utils.async_utils import create_safe_task, gather_with_logging, raise_first_failure
from warden.utils.retry import RetryableStatusError, retry_async


class TestGatherWithLogging:
    """Tests for gather_with_logging and raise_first_failure."""

    @pytest.mark.asyncio
    async def test_all_operations_complete(self):
        """Test a failing operation does not cancel the others."""
        finished = []

        async def ok():
            await asyncio.sleep(0)
            finished.append("ok")
            return 1

        async def boom():
            raise ValueError("nope")

        results = await gather_with_logging(("Boom", boom()), ("Ok", ok()), context="test")

        assert finished == ["ok"]
        assert isinstance(results[0], ValueError)
        assert results[1] == 1

    def test_raise_first_failure(self):
        """Test the first exception in order is re-raised."""
        first, second = KeyError("a"), ValueError("b")
        with pytest.raises(KeyError):
            raise_first_failure([1, first, second])

    def test_raise_first_failure_no_errors(self):
        """Test clean results pass through."""
        assert raise_first_failure([1, None, True]) is None

    @pytest.mark.asyncio
    async def test_safe_task_swallows_and_logs(self):
        """Test background task errors do not escape the task."""
        async def boom():
            raise RuntimeError("background")

        task = create_safe_task(boom(), "Boom")
        await task
        assert task.exception() is None


class TestRetryAsync:
    """Tests for retry_async."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        """Test retryable errors are retried until success."""
        attempts = []

        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise RetryableStatusError(503)
            return "done"

        assert await retry_async(flaky, max_retries=3, base_delay=0) == "done"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_non_retryable_propagates(self):
        """Test other exceptions are not retried."""
        attempts = []

        async def broken():
            attempts.append(1)
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await retry_async(broken, max_retries=3, base_delay=0)
        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_exhausted(self):
        """Test the last error is raised after every retry."""
        async def down():
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError):
            await retry_async(down, max_retries=2, base_delay=0)
