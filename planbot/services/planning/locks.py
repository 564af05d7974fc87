import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Hashable


class KeyedLocks:
    """asyncio locks created on demand, one per key"""

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    def get(self, key: Hashable) -> asyncio.Lock:
        return self._locks.setdefault(key, asyncio.Lock())

    @asynccontextmanager
    async def acquire(self, *keys: Hashable):
        """Holds the locks of every key, always taken in sorted order"""
        locks = [self.get(key) for key in sorted(set(keys))]
        acquired = []
        try:
            for lock in locks:
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
