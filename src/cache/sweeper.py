# src/cache/sweeper.py — v1
"""Background task evicting expired cache entries on a fixed interval."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from groupavail.cache.base_cache_store import BaseAvailabilityCache

logger = logging.getLogger(__name__)


class CacheSweeper:
    """Periodically call ``sweep_expired`` on a cache.

    An interval of 0 disables the sweeper; reads still never return
    expired entries.
    """

    def __init__(self, cache: BaseAvailabilityCache, interval_s: float) -> None:
        self._cache = cache
        self._interval_s = interval_s
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._interval_s <= 0 or self.running:
            return
        self._task = asyncio.create_task(self._run(), name="groupavail-cache-sweeper")
        logger.debug("Cache sweeper started (every %.1fs)", self._interval_s)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> CacheSweeper:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval_s)
            try:
                await self._cache.sweep_expired()
            except Exception:
                logger.exception("Cache sweep failed")
