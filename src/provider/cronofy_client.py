# src/provider/cronofy_client.py — v1
"""Cronofy availability client implementing BaseAvailabilityClient.

POSTs one batch to /v1/availability with a bearer token and enriches
the returned slots with caller uids.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from groupavail.config.settings import Settings
from groupavail.core.models import AvailabilityResponse, Member
from groupavail.provider.base_client import BaseAvailabilityClient
from groupavail.provider.enrichment import enrich_slots
from groupavail.provider.errors import (
    ProviderConnectionError,
    ProviderHttpError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from groupavail.provider.request_builder import ProviderRequest

logger = logging.getLogger(__name__)

AVAILABILITY_PATH = "/v1/availability"
DEFAULT_TIMEOUT_S = 25.0
_MAX_ERROR_TEXT = 500


class CronofyClient(BaseAvailabilityClient):
    """Availability client for the Cronofy API."""

    def __init__(
        self,
        settings: Settings,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._timeout_s = settings.provider_timeout_seconds or DEFAULT_TIMEOUT_S
        self._http = http
        self._owns_http = http is None

    @property
    def provider_name(self) -> str:
        return "cronofy"

    @property
    def url(self) -> str:
        return f"{self._settings.provider_base_url}{AVAILABILITY_PATH}"

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout_s))
        return self._http

    async def aclose(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> CronofyClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def fetch(
        self,
        request: ProviderRequest,
        original_members: list[Member],
    ) -> AvailabilityResponse:
        # Raises ConfigurationError before any I/O
        token = self._settings.require_provider_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        t0 = time.monotonic()
        try:
            response = await self._client().post(
                self.url,
                json=request.to_payload(),
                headers=headers,
                timeout=self._timeout_s,
            )
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(self._timeout_s, self.url) from exc
        except httpx.HTTPError as exc:
            raise ProviderConnectionError(f"Provider connection failed: {exc}") from exc
        latency_ms = int((time.monotonic() - t0) * 1000)

        if not response.is_success:
            raise ProviderHttpError(response.status_code, _error_body(response))

        data = _json_object(response)
        parsed = _parse_response(data)
        logger.debug(
            "Provider returned %d slot(s) for %d member(s) in %dms",
            len(parsed.slots), len(request.subs), latency_ms,
        )

        if parsed.available_slots is None:
            return parsed
        return AvailabilityResponse(
            available_slots=enrich_slots(parsed.available_slots, original_members)
        )


def _error_body(response: httpx.Response) -> Any:
    """Parsed JSON error body when possible, otherwise truncated text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text[:_MAX_ERROR_TEXT]


def _json_object(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError as exc:
        raise ProviderResponseError("Provider returned a non-JSON body") from exc
    if not isinstance(data, dict):
        raise ProviderResponseError(
            f"Provider returned {type(data).__name__}, expected an object"
        )
    return data


def _parse_response(data: dict[str, Any]) -> AvailabilityResponse:
    if "available_slots" not in data:
        logger.warning(
            "Provider response has no available_slots (keys: %s)",
            ", ".join(sorted(data)) or "none",
        )
        return AvailabilityResponse(available_slots=None)
    try:
        return AvailabilityResponse(available_slots=data["available_slots"] or [])
    except ValidationError as exc:
        raise ProviderResponseError(f"Malformed available_slots: {exc}") from exc
