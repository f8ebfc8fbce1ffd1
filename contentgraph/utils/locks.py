"""Per-key asyncio locks for single-document read-modify-write cycles."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedLock:
    """
    Hands out one asyncio.Lock per key.

    Locks are dropped once no task holds or waits for them, so the
    mapping only grows with the number of documents being mutated
    concurrently. Locks are not re-entrant: never nest two acquisitions
    of the same key in one task.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        if not self.enabled:
            yield
            return

        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
