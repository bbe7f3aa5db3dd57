"""Per-repository serialization of ingestion runs."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict


class RepositoryLocks:
    """
    One asyncio.Lock per repository id.

    A run that arrives while another run for the same repository is in
    flight waits behind it. Runs for different repositories never contend.
    Locks are dropped once nobody holds or waits on them.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, repository_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(repository_id, asyncio.Lock())
        self._users[repository_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[repository_id] -= 1
            if self._users[repository_id] == 0:
                del self._users[repository_id]
                self._locks.pop(repository_id, None)

    def is_locked(self, repository_id: str) -> bool:
        lock = self._locks.get(repository_id)
        return lock is not None and lock.locked()
