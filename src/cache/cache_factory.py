# src/cache/cache_factory.py — v1
"""Factory for availability cache instantiation."""

from __future__ import annotations

from groupavail.cache.base_cache_store import BaseAvailabilityCache
from groupavail.config.settings import Settings


def create_cache_store(settings: Settings | None = None) -> BaseAvailabilityCache:
    """Instantiate the configured cache backend.

    Args:
        settings: Application settings. Defaults to the memory backend.

    Returns:
        Configured BaseAvailabilityCache implementation.
    """
    backend = "memory" if settings is None else settings.cache_backend

    if backend == "memory":
        from groupavail.cache.memory_store import MemoryAvailabilityCache
        return MemoryAvailabilityCache()

    raise ValueError(f"Unsupported cache backend: {backend!r}")
