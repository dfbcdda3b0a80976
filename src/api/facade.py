# src/api/facade.py — v1
"""Public API facade: single entry point for availability lookups.

Usage:
    async with AvailabilityService() as service:
        result = await service.find_availability(request)
"""

from __future__ import annotations

import logging
from typing import Any

from groupavail.aggregation.aggregator import AvailabilityAggregator
from groupavail.aggregation.models import AggregationResult
from groupavail.api.models import parse_request_payload
from groupavail.cache.base_cache_store import BaseAvailabilityCache
from groupavail.cache.cache_factory import create_cache_store
from groupavail.cache.sweeper import CacheSweeper
from groupavail.config.settings import Settings
from groupavail.core.models import AvailabilityRequest
from groupavail.logging.context import clear_context
from groupavail.provider.base_client import BaseAvailabilityClient
from groupavail.provider.client_factory import create_provider_client

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Owns the cache, provider client and sweeper for the process lifetime.

    Args:
        settings: Global settings. Loaded from .env if None.
        cache: Cache store. Built from settings if None.
        client: Provider client. Built from settings if None; a client
            passed in is not closed by the service.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: BaseAvailabilityCache | None = None,
        client: BaseAvailabilityClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache or create_cache_store(self.settings)
        self._owns_client = client is None
        self.client = client or create_provider_client(self.settings)
        self.aggregator = AvailabilityAggregator.from_settings(
            self.settings, self.cache, self.client,
        )
        self._sweeper = CacheSweeper(self.cache, self.settings.cache_sweep_interval_seconds)

    async def start(self) -> None:
        self._sweeper.start()

    async def close(self) -> None:
        await self._sweeper.stop()
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> AvailabilityService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def find_availability(
        self, request: AvailabilityRequest | dict[str, Any],
    ) -> AggregationResult:
        """Resolve availability for a request or raw payload.

        Raises:
            pydantic.ValidationError: If a raw payload is malformed.
            ConfigurationError: If the provider credential is missing.
            ProviderError: If any provider batch fails.
        """
        if not isinstance(request, AvailabilityRequest):
            request = parse_request_payload(request)
        try:
            result = await self.aggregator.aggregate(request)
        finally:
            clear_context()
        logger.info(
            "Resolved %s: %s, %d slot(s), %d provider call(s) in %dms",
            result.bucket_key, result.outcome, len(result.slots),
            result.provider_calls, result.duration_ms,
        )
        return result


async def find_availability(
    request: AvailabilityRequest | dict[str, Any],
    settings: Settings | None = None,
) -> AggregationResult:
    """One-shot lookup with a throwaway cache and client."""
    async with AvailabilityService(settings=settings) as service:
        return await service.find_availability(request)
