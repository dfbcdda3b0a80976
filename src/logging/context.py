# src/logging/context.py — v1
"""Contextual logging support: attach request_id, bucket_key, batch to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per aggregation request.
_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_bucket_key: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "bucket_key", default=None
)
_batch: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "batch", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    bucket_key: str | None = None
    batch: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        bucket_key=_bucket_key.get(),
        batch=_batch.get(),
    )


def set_request_context(request_id: str, bucket_key: str) -> None:
    """Set request-level context (called once per aggregation)."""
    _request_id.set(request_id)
    _bucket_key.set(bucket_key)


def set_batch_context(index: int, total: int) -> None:
    """Set batch-level context inside a provider fetch task."""
    _batch.set(f"{index + 1}/{total}")


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _bucket_key.set(None)
    _batch.set(None)
