"""Unit tests for CancellationToken."""
from __future__ import annotations

import asyncio
import time

import pytest

from reminder_service.utils.cancellation import CancellationToken, OperationCancelledError


@pytest.mark.unit
class TestCancellationToken:
    """Test suite for CancellationToken."""

    def test_cancel_is_idempotent(self):
        """Test that cancelling twice is harmless."""
        token = CancellationToken()

        token.cancel()
        token.cancel()

        assert token.is_cancelled

    @pytest.mark.asyncio
    async def test_sleep_full_interval(self):
        """Test that an uncancelled sleep returns False."""
        token = CancellationToken()

        assert await token.sleep(0.01) is False

    @pytest.mark.asyncio
    async def test_sleep_interrupted(self):
        """Test that cancel wakes a sleeping coroutine promptly."""
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)

        started = time.monotonic()
        interrupted = await token.sleep(60)

        assert interrupted is True
        assert time.monotonic() - started < 5

    @pytest.mark.asyncio
    async def test_sleep_after_cancel_returns_immediately(self):
        """Test that sleeping on a cancelled token does not wait."""
        token = CancellationToken()
        token.cancel()

        assert await asyncio.wait_for(token.sleep(60), timeout=1) is True

    @pytest.mark.asyncio
    async def test_wait_for_returns_result(self):
        """Test that wait_for passes through the awaited result."""
        token = CancellationToken()

        async def compute():
            return 42

        assert await token.wait_for(compute()) == 42

    @pytest.mark.asyncio
    async def test_wait_for_propagates_errors(self):
        """Test that exceptions from the awaited operation propagate."""
        token = CancellationToken()

        async def fail():
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            await token.wait_for(fail())

    @pytest.mark.asyncio
    async def test_wait_for_cancelled_midway(self):
        """Test that cancellation aborts the pending operation."""
        token = CancellationToken()
        operation_cancelled = asyncio.Event()

        async def hang():
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                operation_cancelled.set()
                raise

        asyncio.get_running_loop().call_later(0.02, token.cancel)

        with pytest.raises(OperationCancelledError):
            await asyncio.wait_for(token.wait_for(hang()), timeout=5)

        assert operation_cancelled.is_set()

    @pytest.mark.asyncio
    async def test_wait_for_already_cancelled(self):
        """Test that an already-cancelled token never starts the operation."""
        token = CancellationToken()
        token.cancel()
        started = False

        async def operation():
            nonlocal started
            started = True

        with pytest.raises(OperationCancelledError):
            await token.wait_for(operation())

        assert started is False

    @pytest.mark.asyncio
    async def test_wait_blocks_until_cancel(self):
        """Test that wait() returns once cancel() is called."""
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        await asyncio.wait_for(token.wait(), timeout=5)

        assert token.is_cancelled
