# src/cache/base_cache_store.py — v2
"""Abstract availability cache interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import AsyncContextManager

from groupavail.cache.models import CacheEntry


class BaseAvailabilityCache(ABC):
    """Process-wide store of CacheEntry values keyed by cache key.

    The store owns its entries: ``get`` hands out copies and ``put`` stores
    one, so callers never hold a reference into the store. An expired entry
    is never returned.
    """

    @abstractmethod
    async def get(self, key: str) -> CacheEntry | None:
        """Retrieve a live (non-expired) entry, or None."""

    @abstractmethod
    async def put(self, key: str, entry: CacheEntry) -> None:
        """Store or replace an entry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove an entry if present."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove all entries."""

    @abstractmethod
    async def keys(self) -> list[str]:
        """List keys of stored entries, expired or not."""

    @abstractmethod
    async def sweep_expired(self) -> int:
        """Evict every expired entry. Returns the number removed."""

    @abstractmethod
    def lock(self, key: str) -> AsyncContextManager[None]:
        """Exclusive section for one key, held only around reads and writes.

        Usage: ``async with cache.lock(key): ...``. Never hold it across I/O.
        """

    def now(self) -> datetime:
        """Current time as seen by the expiry checks."""
        return datetime.now(timezone.utc)
