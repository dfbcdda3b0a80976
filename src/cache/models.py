# src/cache/models.py — v1
"""Cache domain model: CacheEntry."""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, Field

from groupavail.core.models import Slot


class CacheEntry(BaseModel):
    """Aggregated slots for one cache key plus the subs they account for.

    ``covered_subs`` must always describe exactly the members whose
    availability produced ``slots``; both are replaced together.
    """

    bucket_key: str
    slots: list[Slot] = Field(default_factory=list)
    covered_subs: frozenset[str] = Field(default_factory=frozenset)
    created_at: datetime
    ttl_seconds: float = Field(gt=0)

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(seconds=self.ttl_seconds)

    def is_expired(self, now: datetime) -> bool:
        return now - self.created_at > timedelta(seconds=self.ttl_seconds)
