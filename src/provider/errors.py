# src/provider/errors.py — v1
"""Errors surfaced by availability provider clients.

No client retries on its own; retry policy belongs to the caller.
"""

from __future__ import annotations

from typing import Any


class ProviderError(Exception):
    """Base error for availability provider failures."""


class ProviderTimeoutError(ProviderError, TimeoutError):
    """Provider call exceeded its timeout. Treated as a failed call."""

    def __init__(self, timeout_s: float, url: str):
        self.timeout_s = timeout_s
        self.url = url
        super().__init__(f"Provider request to {url} timed out after {timeout_s}s")


class ProviderConnectionError(ProviderError):
    """Transport-level failure before any response was received."""


class ProviderHttpError(ProviderError):
    """Provider answered with a non-success status."""

    def __init__(self, status: int, body: Any = None):
        self.status = status
        self.body = body
        super().__init__(f"Provider API error: {status}")


class ProviderResponseError(ProviderError):
    """Provider answered 2xx with a body that is not a JSON object."""
