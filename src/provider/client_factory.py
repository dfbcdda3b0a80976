# src/provider/client_factory.py — v1
"""Factory for provider client instantiation."""

from __future__ import annotations

import httpx

from groupavail.config.settings import Settings
from groupavail.provider.base_client import BaseAvailabilityClient


def create_provider_client(
    settings: Settings | None = None,
    http: httpx.AsyncClient | None = None,
) -> BaseAvailabilityClient:
    """Instantiate the availability provider client.

    The credential is checked on each fetch rather than here, so a client
    can be built before the token is configured.
    """
    from groupavail.provider.cronofy_client import CronofyClient

    return CronofyClient(settings=settings or Settings(), http=http)
