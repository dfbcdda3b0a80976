# tests/unit/api/test_facade.py — v1
"""Tests for api/facade.py — AvailabilityService and find_availability()."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from groupavail.api.facade import AvailabilityService, find_availability
from groupavail.cache.memory_store import MemoryAvailabilityCache
from groupavail.config.settings import Settings
from groupavail.logging.context import get_context
from groupavail.provider.errors import ProviderHttpError


def _payload(subs):
    return {
        "members": [{"sub": s, "calendar_ids": [f"cal_{s}"], "uid": f"uid-{s}"} for s in subs],
        "query_periods": [{"start": "2026-03-02T09:00:00Z", "end": "2026-03-02T17:00:00Z"}],
        "duration": 30,
        "buffer": {"before": 0, "after": 0},
        "cache_bucket": "DAY",
    }


# ---------------------------------------------------------------------------
# AvailabilityService
# ---------------------------------------------------------------------------

class TestAvailabilityService:
    @pytest.mark.asyncio
    async def test_find_availability_with_request(self, settings, provider, sample_request):
        async with AvailabilityService(settings=settings, client=provider) as service:
            first = await service.find_availability(sample_request)
            second = await service.find_availability(sample_request)
        assert first.outcome == "miss"
        assert second.outcome == "hit"
        assert len(provider.calls) == 1

    @pytest.mark.asyncio
    async def test_find_availability_with_payload(self, settings, provider):
        async with AvailabilityService(settings=settings, client=provider) as service:
            result = await service.find_availability(_payload(["a", "b"]))
        assert result.covered_subs == ["a", "b"]

    @pytest.mark.asyncio
    async def test_invalid_payload(self, settings, provider):
        async with AvailabilityService(settings=settings, client=provider) as service:
            with pytest.raises(ValidationError):
                await service.find_availability({"members": []})
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_context_cleared_after_request(self, settings, provider, sample_request):
        async with AvailabilityService(settings=settings, client=provider) as service:
            await service.find_availability(sample_request)
        assert get_context().as_dict() == {}

    @pytest.mark.asyncio
    async def test_context_cleared_after_failure(self, settings, provider_factory, sample_request):
        failing = provider_factory(fail_subs={"acc_a"}, error=ProviderHttpError(500))
        async with AvailabilityService(settings=settings, client=failing) as service:
            with pytest.raises(ProviderHttpError):
                await service.find_availability(sample_request)
        assert get_context().as_dict() == {}

    @pytest.mark.asyncio
    async def test_uses_injected_cache(self, settings, provider, sample_request):
        cache = MemoryAvailabilityCache()
        async with AvailabilityService(settings=settings, cache=cache, client=provider) as service:
            await service.find_availability(sample_request)
        assert await cache.keys() == ["DAY"]

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self, settings):
        client = AsyncMock()
        async with AvailabilityService(settings=settings, client=client):
            pass
        client.aclose.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_owned_client_closed(self, settings):
        client = AsyncMock()
        with patch("groupavail.api.facade.create_provider_client", return_value=client):
            async with AvailabilityService(settings=settings):
                pass
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sweeper_started_when_configured(self, provider):
        settings = Settings(_env_file=None, cache_ttl_seconds=60, cache_sweep_interval_seconds=30)
        service = AvailabilityService(settings=settings, client=provider)
        await service.start()
        assert service._sweeper.running
        await service.close()
        assert not service._sweeper.running

    @pytest.mark.asyncio
    async def test_sweeper_disabled_by_default(self, settings, provider):
        async with AvailabilityService(settings=settings, client=provider) as service:
            assert not service._sweeper.running


# ---------------------------------------------------------------------------
# find_availability()
# ---------------------------------------------------------------------------

class TestFindAvailability:
    @pytest.mark.asyncio
    async def test_one_shot(self, settings, provider):
        with patch("groupavail.api.facade.create_provider_client", return_value=provider):
            result = await find_availability(_payload(["a"]), settings=settings)
        assert result.outcome == "miss"
        assert provider.calls == [["a"]]
