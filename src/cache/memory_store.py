# src/cache/memory_store.py — v2
"""In-process availability cache (CACHE_BACKEND=memory).

Entries live for the lifetime of the store object. Expiry is checked on
every read; ``sweep_expired`` (driven by CacheSweeper) reclaims entries
nobody reads any more.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Callable

from groupavail.cache.base_cache_store import BaseAvailabilityCache
from groupavail.cache.models import CacheEntry

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class MemoryAvailabilityCache(BaseAvailabilityCache):
    """Dict-backed cache with per-key asyncio locks.

    A key's lock is counted by holders and waiters together and dropped
    when the count reaches zero, so the lock map only holds keys in use.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._locks: dict[str, _KeyLock] = {}
        self._clock = clock or _utcnow

    def now(self) -> datetime:
        return self._clock()

    async def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            logger.debug("Cache entry %s expired at %s", key, entry.expires_at.isoformat())
            self._evict(key)
            return None
        return entry.model_copy(deep=True)

    async def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry.model_copy(deep=True)

    async def delete(self, key: str) -> None:
        self._evict(key)

    async def clear(self) -> None:
        self._entries.clear()

    async def keys(self) -> list[str]:
        return list(self._entries)

    async def sweep_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            self._evict(key)
        if expired:
            logger.info("Swept %d expired cache entr%s", len(expired), "y" if len(expired) == 1 else "ies")
        return len(expired)

    @contextlib.asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        slot = self._locks.get(key)
        if slot is None:
            slot = self._locks[key] = _KeyLock()
        slot.users += 1
        try:
            async with slot.lock:
                yield
        finally:
            slot.users -= 1
            if slot.users == 0 and self._locks.get(key) is slot:
                del self._locks[key]

    def locked(self, key: str) -> bool:
        slot = self._locks.get(key)
        return slot is not None and slot.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)

    def _evict(self, key: str) -> None:
        self._entries.pop(key, None)
