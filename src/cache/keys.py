# src/cache/keys.py — v1
"""Cache key derivation from the shape of an availability request."""

from __future__ import annotations

import hashlib
import json
from typing import Literal

from groupavail.core.models import AvailabilityRequest

KeyScope = Literal["bucket", "query"]


def cache_key(request: AvailabilityRequest, scope: KeyScope = "bucket") -> str:
    """Return the cache partition key for a request.

    ``bucket`` scope keys on the horizon bucket alone (``"DAY"``).
    ``query`` scope adds a fingerprint of the query periods and duration
    buffer (``"DAY:3f2a..."``) so different query shapes never share slots.
    """
    bucket = request.cache_bucket.value
    if scope == "bucket":
        return bucket
    if scope == "query":
        return f"{bucket}:{query_fingerprint(request)}"
    raise ValueError(f"Unsupported cache key scope: {scope!r}")


def query_fingerprint(request: AvailabilityRequest) -> str:
    """SHA-256 (16 hex chars) over canonical JSON of periods + duration buffer."""
    canonical = json.dumps(
        {
            "query_periods": [p.model_dump(mode="json") for p in request.query_periods],
            "duration_buffer": request.duration_buffer.model_dump(mode="json"),
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
