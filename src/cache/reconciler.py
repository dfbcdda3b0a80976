# src/cache/reconciler.py — v1
"""Decide what a cache entry is missing for a roster, and merge new results in."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from groupavail.cache.models import CacheEntry
from groupavail.core.models import AvailabilityResponse, Member, Slot


class CacheEntryValidationError(Exception):
    """Cache entry is structurally unusable for reconciliation."""


def validate_entry(entry: CacheEntry) -> None:
    """Check invariants pydantic cannot enforce on constructed/copied entries.

    Raises:
        CacheEntryValidationError: If covered_subs or slots are malformed.
    """
    subs = entry.covered_subs
    if not isinstance(subs, (set, frozenset)):
        raise CacheEntryValidationError(
            f"covered_subs is {type(subs).__name__}, expected a set"
        )
    if not all(isinstance(s, str) and s for s in subs):
        raise CacheEntryValidationError("covered_subs contains non-string or empty values")
    if not isinstance(entry.slots, list):
        raise CacheEntryValidationError(
            f"slots is {type(entry.slots).__name__}, expected a list"
        )


def missing_members(entry: CacheEntry | None, requested: list[Member]) -> list[Member]:
    """Requested members whose sub the entry does not cover, in request order.

    With no entry every requested member is missing.

    Raises:
        CacheEntryValidationError: If the entry is malformed.
    """
    if not requested:
        return []
    if entry is None:
        return list(requested)
    validate_entry(entry)
    return [m for m in requested if m.sub not in entry.covered_subs]


def extract_covered_subs(results: Iterable[AvailabilityResponse]) -> set[str]:
    """Every sub appearing in a participant list of any slot of any response."""
    covered: set[str] = set()
    for response in results:
        covered |= response.participant_subs
    return covered


def new_entry(
    bucket_key: str,
    slots: list[Slot],
    covered_subs: Iterable[str],
    now: datetime,
    ttl_seconds: float,
) -> CacheEntry:
    """Entry for a full miss."""
    return CacheEntry(
        bucket_key=bucket_key,
        slots=list(slots),
        covered_subs=frozenset(covered_subs),
        created_at=now,
        ttl_seconds=ttl_seconds,
    )


def merge_entry(
    entry: CacheEntry,
    new_slots: list[Slot],
    new_subs: Iterable[str],
    now: datetime,
    ttl_seconds: float,
) -> CacheEntry:
    """Concatenate slots and union subs into a fresh entry.

    No slot deduplication: each batch's slots stand on their own. Merging
    nothing leaves slots and covered_subs unchanged.
    """
    return CacheEntry(
        bucket_key=entry.bucket_key,
        slots=[*entry.slots, *new_slots],
        covered_subs=frozenset(entry.covered_subs) | frozenset(new_subs),
        created_at=now,
        ttl_seconds=ttl_seconds,
    )
