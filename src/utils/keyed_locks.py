"""
Per-key asyncio locks.

Serializes writers of the same stats row inside one process. Locks are held
in a weak-value map, so a key's lock disappears once nobody holds or waits
on it.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable

logger = logging.getLogger(__name__)


class KeyedLocks:
    """Hand out one ``asyncio.Lock`` per key."""

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[Hashable, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: Hashable) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for *key* for the duration of the block."""
        lock = self._lock_for(key)
        if lock.locked():
            logger.debug("Waiting for lock on %s", key)
        async with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
