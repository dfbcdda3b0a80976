# tests/unit/cache/test_base_cache_store.py — v1
"""Tests for cache/base_cache_store.py — BaseAvailabilityCache ABC."""

from __future__ import annotations

from datetime import timezone

import pytest

from groupavail.cache.base_cache_store import BaseAvailabilityCache


class TestBaseAvailabilityCache:
    def test_cannot_instantiate(self):
        with pytest.raises(TypeError):
            BaseAvailabilityCache()  # type: ignore[abstract]

    def test_has_required_methods(self):
        for method in ["get", "put", "delete", "clear", "keys", "sweep_expired", "lock"]:
            assert hasattr(BaseAvailabilityCache, method)

    def test_default_now_is_utc(self):
        class _Minimal(BaseAvailabilityCache):
            async def get(self, key): return None
            async def put(self, key, entry): pass
            async def delete(self, key): pass
            async def clear(self): pass
            async def keys(self): return []
            async def sweep_expired(self): return 0
            def lock(self, key): raise NotImplementedError

        assert _Minimal().now().tzinfo == timezone.utc
