# src/aggregation/models.py — v1
"""Aggregation result model."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from groupavail.core.models import Slot

CacheOutcome = Literal["hit", "partial", "miss"]


class AggregationResult(BaseModel):
    """Slots returned for one request and how the cache produced them."""

    request_id: str
    bucket_key: str
    outcome: CacheOutcome
    slots: list[Slot] = Field(default_factory=list)
    covered_subs: list[str] = Field(default_factory=list)
    fetched_subs: list[str] = Field(default_factory=list)
    provider_calls: int = 0
    duration_ms: int = 0
