# src/aggregation/aggregator.py — v2
"""Availability aggregator: cache lookup, batched concurrent fetch, merge.

Per request:
  1. Under the key's lock, look up the entry and work out who is missing
  2. Full hit (nothing missing): return cached slots, no provider call
  3. Otherwise claim the missing subs nobody else is fetching, release the
     lock and fetch them; subs already claimed by a concurrent request are
     awaited instead of refetched
  4. Under the lock again, merge the fetched results into the entry as it
     stands now (partial hit) or create it (full miss)

The lock never spans provider I/O. Batches are fetched concurrently; if any
batch fails the request fails and nothing it fetched is written, so
covered_subs never runs ahead of slots.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from typing import Literal

from groupavail.aggregation.models import AggregationResult, CacheOutcome
from groupavail.batch.batcher import DEFAULT_BATCH_SIZE, batch_members
from groupavail.cache.base_cache_store import BaseAvailabilityCache
from groupavail.cache.keys import KeyScope, cache_key
from groupavail.cache.models import CacheEntry
from groupavail.cache.reconciler import (
    CacheEntryValidationError,
    extract_covered_subs,
    merge_entry,
    missing_members,
    new_entry,
    validate_entry,
)
from groupavail.config.settings import Settings
from groupavail.core.models import AvailabilityRequest, AvailabilityResponse, Member
from groupavail.logging.context import set_batch_context, set_request_context
from groupavail.provider.base_client import BaseAvailabilityClient
from groupavail.provider.errors import ProviderError, ProviderHttpError
from groupavail.provider.request_builder import DEFAULT_MAX_RESULTS, build_request

logger = logging.getLogger(__name__)

CoveragePolicy = Literal["asked", "appeared"]


class AvailabilityAggregator:
    """Serve availability requests from the cache, fetching only what is missing.

    Args:
        cache: Shared cache store; owns all entries.
        client: Provider client used for every batch.
        batch_size: Members per provider request.
        ttl_seconds: Lifetime given to every written entry.
        key_scope: How cache keys are derived (see cache.keys).
        coverage_policy: "asked" covers every member sent to the provider;
            "appeared" covers only subs present in returned slots.
        max_results: Provider cap on returned slots per batch.
    """

    def __init__(
        self,
        cache: BaseAvailabilityCache,
        client: BaseAvailabilityClient,
        batch_size: int = DEFAULT_BATCH_SIZE,
        ttl_seconds: float = 3600.0,
        key_scope: KeyScope = "bucket",
        coverage_policy: CoveragePolicy = "asked",
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        self._cache = cache
        self._client = client
        self._batch_size = batch_size
        self._ttl_seconds = ttl_seconds
        self._key_scope = key_scope
        self._coverage_policy = coverage_policy
        self._max_results = max_results
        # key -> sub -> future resolved with True once that sub is written
        self._inflight: dict[str, dict[str, asyncio.Future[bool]]] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        cache: BaseAvailabilityCache,
        client: BaseAvailabilityClient,
    ) -> AvailabilityAggregator:
        return cls(
            cache=cache,
            client=client,
            batch_size=settings.provider_batch_size,
            ttl_seconds=settings.cache_ttl_seconds,
            key_scope=settings.cache_key_scope,
            coverage_policy=settings.cache_coverage_policy,
            max_results=settings.provider_max_results,
        )

    async def aggregate(self, request: AvailabilityRequest) -> AggregationResult:
        """Return common availability slots for the request's members.

        The outcome (hit / partial / miss) reflects the cache on first look.
        Subs fetched by a concurrent request for the same key are awaited
        rather than refetched; if that fetch fails they are fetched here.

        Raises:
            ConfigurationError: If the provider credential is missing.
            ProviderError: If any batch fails; nothing it fetched is cached.
        """
        start_ns = time.monotonic_ns()
        key = cache_key(request, self._key_scope)
        request_id = uuid.uuid4().hex[:12]
        set_request_context(request_id, key)

        outcome: CacheOutcome | None = None
        attempted: set[str] = set()
        fetched: list[str] = []
        calls = 0

        while True:
            async with self._cache.lock(key):
                entry = await self._load(key)
                missing = missing_members(entry, request.members)
                if outcome is None:
                    outcome = "miss" if entry is None else ("partial" if missing else "hit")
                if not missing:
                    if outcome == "hit":
                        logger.info(
                            "Cache hit for %s (%d member(s), %d slot(s))",
                            key, len(request.members), len(entry.slots),
                        )
                    return self._result(
                        request_id, key, outcome, entry, fetched, calls, start_ns,
                    )

                pending = [m for m in missing if m.sub not in attempted]
                if not pending:
                    # Everything still missing was tried by this request.
                    return self._result(
                        request_id, key, outcome, entry, fetched, calls, start_ns,
                    )

                inflight = self._inflight.setdefault(key, {})
                waiting = {m.sub: inflight[m.sub] for m in pending if m.sub in inflight}
                to_fetch = [m for m in pending if m.sub not in inflight]
                claim = self._claim(key, to_fetch) if to_fetch else None
                logger.info(
                    "Cache %s for %s: fetching %d, awaiting %d of %d member(s)",
                    outcome, key, len(to_fetch), len(waiting), len(request.members),
                )

            stored: CacheEntry | None = None
            if claim is not None:
                stored, batches = await self._fetch_and_store(
                    key, entry, to_fetch, request, claim,
                )
                calls += batches
                fetched.extend(m.sub for m in to_fetch)
                attempted.update(m.sub for m in to_fetch)

            if not waiting:
                return self._result(
                    request_id, key, outcome, stored, fetched, calls, start_ns,
                )

            await asyncio.wait(set(waiting.values()))
            attempted.update(sub for sub, future in waiting.items() if future.result())

    async def _fetch_and_store(
        self,
        key: str,
        base: CacheEntry | None,
        members: list[Member],
        request: AvailabilityRequest,
        claim: asyncio.Future[bool],
    ) -> tuple[CacheEntry, int]:
        """Fetch claimed members, then merge them into the current entry."""
        stored = False
        try:
            responses, calls = await self._fetch_all(key, members, request)
            async with self._cache.lock(key):
                current = await self._load(key)
                if base is not None and current is None:
                    # Old slots must not be re-stamped with a fresh ttl.
                    logger.info(
                        "Cache entry %s expired during fetch; storing fetched members only", key,
                    )
                entry = self._build_entry(key, current, members, responses)
                await self._cache.put(key, entry)
            stored = True
        finally:
            self._release(key, members, claim, stored)
        return entry, calls

    async def _load(self, key: str) -> CacheEntry | None:
        """Live entry for key; a malformed entry is dropped and reported absent."""
        entry = await self._cache.get(key)
        if entry is None:
            return None
        try:
            validate_entry(entry)
        except CacheEntryValidationError as exc:
            logger.warning("Discarding malformed cache entry %s: %s", key, exc)
            await self._cache.delete(key)
            return None
        return entry

    def _claim(self, key: str, members: list[Member]) -> asyncio.Future[bool]:
        future: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        inflight = self._inflight.setdefault(key, {})
        for member in members:
            inflight[member.sub] = future
        return future

    def _release(
        self, key: str, members: list[Member], future: asyncio.Future[bool], stored: bool,
    ) -> None:
        inflight = self._inflight.get(key, {})
        for member in members:
            if inflight.get(member.sub) is future:
                del inflight[member.sub]
        if not inflight:
            self._inflight.pop(key, None)
        if not future.done():
            future.set_result(stored)

    async def _fetch_all(
        self,
        key: str,
        members: list[Member],
        request: AvailabilityRequest,
    ) -> tuple[list[AvailabilityResponse], int]:
        """Fetch every batch concurrently; all must succeed."""
        batches = batch_members(members, self._batch_size)
        if not batches:
            return [], 0

        tasks = [
            self._fetch_batch(key, index, len(batches), batch, request)
            for index, batch in enumerate(batches)
        ]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        errors = [r for r in results if isinstance(r, BaseException)]
        if errors:
            logger.error(
                "Aggregation for %s failed: %d of %d batch(es) failed, nothing cached",
                key, len(errors), len(batches),
            )
            raise errors[0]

        return [r for r in results if isinstance(r, AvailabilityResponse)], len(batches)

    async def _fetch_batch(
        self,
        key: str,
        index: int,
        total: int,
        batch: list[Member],
        request: AvailabilityRequest,
    ) -> AvailabilityResponse:
        set_batch_context(index, total)
        provider_request = build_request(
            batch, request.query_periods, request.duration_buffer, self._max_results,
        )
        try:
            response = await self._client.fetch(provider_request, batch)
        except ProviderHttpError as exc:
            logger.error(
                "Provider HTTP %d for %s (batch %d/%d, %d member(s)): %s",
                exc.status, key, index + 1, total, len(batch), exc.body,
            )
            raise
        except ProviderError as exc:
            logger.error(
                "Provider call failed for %s (batch %d/%d, %d member(s)): %s",
                key, index + 1, total, len(batch), exc,
            )
            raise

        if response.available_slots is None:
            logger.warning(
                "No available_slots for %s (batch %d/%d); treating as no availability",
                key, index + 1, total,
            )
        return response

    def _build_entry(
        self,
        key: str,
        current: CacheEntry | None,
        fetched: list[Member],
        responses: list[AvailabilityResponse],
    ) -> CacheEntry:
        new_slots = [slot for response in responses for slot in response.slots]
        if self._coverage_policy == "asked":
            new_subs = {m.sub for m in fetched}
        else:
            new_subs = extract_covered_subs(responses)

        now = self._cache.now()
        if current is None:
            return new_entry(key, new_slots, new_subs, now, self._ttl_seconds)
        return merge_entry(current, new_slots, new_subs, now, self._ttl_seconds)

    @staticmethod
    def _result(
        request_id: str,
        key: str,
        outcome: CacheOutcome,
        entry: CacheEntry | None,
        fetched: list[str],
        calls: int,
        start_ns: int,
    ) -> AggregationResult:
        return AggregationResult(
            request_id=request_id,
            bucket_key=key,
            outcome=outcome,
            slots=[slot.model_copy(deep=True) for slot in entry.slots] if entry else [],
            covered_subs=sorted(entry.covered_subs) if entry else [],
            fetched_subs=list(fetched),
            provider_calls=calls,
            duration_ms=(time.monotonic_ns() - start_ns) // 1_000_000,
        )
