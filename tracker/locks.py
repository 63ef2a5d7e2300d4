"""Per-peer mutation locks shared by request handlers and the liveness sweep."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class PeerLockRegistry:
    """
    One asyncio.Lock per username. Operations on the same username are
    serialized; different usernames never contend.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def lock_for(self, username: str) -> asyncio.Lock:
        lock = self._locks.get(username)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[username] = lock
        return lock

    @asynccontextmanager
    async def hold(self, username: str) -> AsyncIterator[None]:
        async with self.lock_for(username):
            yield

    def __len__(self) -> int:
        return len(self._locks)
