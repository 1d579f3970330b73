"""Per-key async locks guarding read-modify-write of on-disk stores."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager

# Key for the workspace-wide state.json lock
STATE_LOCK_KEY = "__state__"


class LockRegistry:
    """Lazily created asyncio locks, one per key.

    Keys are file hashes (one lock per tracked file) plus STATE_LOCK_KEY
    for the shared tracking registry. When both are needed, acquire the
    file lock first, then the state lock.

    A key's lock exists only while some task holds or waits for it; the
    last one out removes it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def state(self) -> AbstractAsyncContextManager[None]:
        """Context manager for the state.json lock."""
        return self.hold(STATE_LOCK_KEY)

    def __len__(self) -> int:
        return len(self._locks)
