# src/provider/base_client.py — v1
"""Abstract availability provider client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from groupavail.core.models import AvailabilityResponse, Member
from groupavail.provider.request_builder import ProviderRequest


class BaseAvailabilityClient(ABC):
    """Unified interface for availability providers.

    Implementations issue exactly one outbound call per ``fetch`` and do
    no caching.
    """

    @abstractmethod
    async def fetch(
        self,
        request: ProviderRequest,
        original_members: list[Member],
    ) -> AvailabilityResponse:
        """Fetch slots for one batch and enrich them with member uids.

        Raises:
            ConfigurationError: If the provider credential is missing.
            ProviderError: On timeout, transport or HTTP failure.
        """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Provider identifier (e.g. cronofy)."""

    async def aclose(self) -> None:
        """Release network resources. No-op by default."""
