# src/core/models.py — v1
"""Domain models shared across batching, provider calls, cache and aggregation.

Member, QueryPeriod, DurationBuffer, CacheBucket, AvailabilityRequest,
ParticipantRef, Slot, AvailabilityResponse.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CacheBucket(str, Enum):
    """Coarse look-ahead horizon, used only to partition the cache."""

    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"


class Member(BaseModel):
    """A participant whose calendars are checked.

    ``sub`` is the provider's stable subject id and the only identity used
    for comparisons. ``uid`` is caller-assigned and never sent to the provider.
    """

    sub: str = Field(min_length=1)
    calendar_ids: list[str] = Field(default_factory=list)
    uid: str | None = None


class QueryPeriod(BaseModel):
    """Window over which availability is sought, passed to the provider verbatim."""

    model_config = ConfigDict(extra="allow")

    start: str
    end: str


class DurationBuffer(BaseModel):
    """Meeting length and padding applied to every participant."""

    duration_minutes: int = Field(ge=1)
    buffer_before_minutes: int = Field(default=0, ge=0)
    buffer_after_minutes: int = Field(default=0, ge=0)


class AvailabilityRequest(BaseModel):
    """A validated request handed to the aggregator by the boundary layer."""

    members: list[Member] = Field(min_length=1)
    query_periods: list[QueryPeriod] = Field(min_length=1)
    duration_buffer: DurationBuffer
    cache_bucket: CacheBucket

    @model_validator(mode="after")
    def validate_unique_subs(self) -> AvailabilityRequest:
        seen: set[str] = set()
        duplicates: list[str] = []
        for member in self.members:
            if member.sub in seen:
                duplicates.append(member.sub)
            seen.add(member.sub)
        if duplicates:
            raise ValueError(f"duplicate member sub(s): {', '.join(sorted(set(duplicates)))}")
        return self

    @property
    def subs(self) -> list[str]:
        return [m.sub for m in self.members]


class ParticipantRef(BaseModel):
    """Participant of a returned slot, with the caller's uid after enrichment."""

    sub: str
    calendar_id: str | None = None
    uid: str | None = None


class Slot(BaseModel):
    """Candidate meeting time returned by the provider."""

    start: str
    end: str
    participants: list[ParticipantRef] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    """Parsed provider response for one batch.

    ``available_slots`` is None when the provider omitted the field, which
    signals an error or no-availability condition rather than a parse failure.
    """

    available_slots: list[Slot] | None = None

    @property
    def slots(self) -> list[Slot]:
        return self.available_slots or []

    @property
    def participant_subs(self) -> set[str]:
        return {p.sub for slot in self.slots for p in slot.participants}
