"""Unit tests for cycle exclusivity."""

import asyncio

import pytest

from collector.services.token_collector.cycle_guard import CycleGuard


class TestCycleGuard:
    """Tests for CycleGuard."""

    @pytest.mark.asyncio
    async def test_acquire_and_release(self):
        guard = CycleGuard("scan")

        async with guard.acquire() as acquired:
            assert acquired is True
            assert guard.in_flight is True

        assert guard.in_flight is False

    @pytest.mark.asyncio
    async def test_second_caller_skips(self):
        """A trigger while a cycle is in flight does not wait."""
        guard = CycleGuard("scan")
        release = asyncio.Event()
        started = asyncio.Event()

        async def long_cycle():
            async with guard.acquire() as acquired:
                started.set()
                await release.wait()
                return acquired

        task = asyncio.create_task(long_cycle())
        await started.wait()

        async with guard.acquire() as acquired:
            assert acquired is False

        release.set()
        assert await task is True

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        guard = CycleGuard("pools")

        with pytest.raises(RuntimeError):
            async with guard.acquire():
                raise RuntimeError("boom")

        async with guard.acquire() as acquired:
            assert acquired is True

    @pytest.mark.asyncio
    async def test_wait_released_returns_after_cycle(self):
        guard = CycleGuard("scan")
        release = asyncio.Event()
        started = asyncio.Event()

        async def long_cycle():
            async with guard.acquire():
                started.set()
                await release.wait()

        task = asyncio.create_task(long_cycle())
        await started.wait()
        waiter = asyncio.create_task(guard.wait_released())
        await asyncio.sleep(0)

        assert not waiter.done()
        release.set()
        await asyncio.wait_for(waiter, timeout=1)
        await task
        assert guard.in_flight is False

    @pytest.mark.asyncio
    async def test_wait_released_when_idle(self):
        await asyncio.wait_for(CycleGuard("pools").wait_released(), timeout=1)
