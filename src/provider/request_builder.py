# src/provider/request_builder.py — v1
"""Build the provider's availability payload for one batch of members."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from groupavail.core.models import DurationBuffer, Member, QueryPeriod

DEFAULT_MAX_RESULTS = 512


class ProviderMember(BaseModel):
    """Member as sent to the provider. Has no uid field."""

    sub: str
    calendar_ids: list[str] = Field(default_factory=list)
    managed_availability: bool = True


class ParticipantGroup(BaseModel):
    members: list[ProviderMember]
    required: Literal["all"] = "all"


class ProviderRequest(BaseModel):
    """Availability request body for a single batch."""

    participants: list[ParticipantGroup]
    query_periods: list[QueryPeriod]
    required_duration_minutes: int
    buffer_before_minutes: int
    buffer_after_minutes: int
    max_results: int = DEFAULT_MAX_RESULTS
    response_format: Literal["slots"] = "slots"

    @property
    def subs(self) -> list[str]:
        return [m.sub for group in self.participants for m in group.members]

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body expected by the provider endpoint."""
        groups = []
        for group in self.participants:
            members = []
            for m in group.members:
                member: dict[str, Any] = {"sub": m.sub}
                if m.calendar_ids:
                    member["calendar_ids"] = list(m.calendar_ids)
                member["managed_availability"] = m.managed_availability
                members.append(member)
            groups.append({"members": members, "required": group.required})

        return {
            "participants": groups,
            "query_periods": [p.model_dump(mode="json") for p in self.query_periods],
            "required_duration": {"minutes": self.required_duration_minutes},
            "buffer": {
                "before": {"minutes": self.buffer_before_minutes},
                "after": {"minutes": self.buffer_after_minutes},
            },
            "max_results": self.max_results,
            "response_format": self.response_format,
        }


def build_request(
    batch: list[Member],
    periods: list[QueryPeriod],
    duration_buffer: DurationBuffer,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> ProviderRequest:
    """Convert a batch of members and query parameters into a ProviderRequest.

    Each member is rebuilt from ``sub`` and ``calendar_ids`` only, so
    caller-side fields such as ``uid`` cannot reach the provider.
    """
    members = [
        ProviderMember(sub=m.sub, calendar_ids=list(m.calendar_ids))
        for m in batch
    ]
    return ProviderRequest(
        participants=[ParticipantGroup(members=members)],
        query_periods=[p.model_copy(deep=True) for p in periods],
        required_duration_minutes=duration_buffer.duration_minutes,
        buffer_before_minutes=duration_buffer.buffer_before_minutes,
        buffer_after_minutes=duration_buffer.buffer_after_minutes,
        max_results=max_results,
    )
