"""
In-process cycle exclusivity.

Guards a cycle so that a second trigger while one is in flight
is skipped instead of queued.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class CycleGuard:
    """
    Non-blocking lock for one kind of cycle.

    Usage:
        async with guard.acquire() as acquired:
            if not acquired:
                return skipped
            ...
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._lock = asyncio.Lock()

    @property
    def in_flight(self) -> bool:
        """Check if a cycle currently holds the guard."""
        return self._lock.locked()

    async def wait_released(self) -> None:
        """Wait until the cycle holding the guard, if any, finishes."""
        async with self._lock:
            pass

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[bool]:
        """
        Try to take the guard without waiting.

        Yields:
            True if acquired, False if another cycle is running
        """
        if self._lock.locked():
            yield False
            return

        await self._lock.acquire()
        try:
            yield True
        finally:
            self._lock.release()
