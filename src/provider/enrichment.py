# src/provider/enrichment.py — v1
"""Attach caller-side uids to the participants of provider slots."""

from __future__ import annotations

from typing import Iterable

from groupavail.core.models import Member, ParticipantRef, Slot


def build_uid_lookup(members: Iterable[Member]) -> dict[str, str]:
    """Map sub -> uid for members that carry both."""
    return {m.sub: m.uid for m in members if m.sub and m.uid}


def enrich_slots(slots: list[Slot] | None, original_members: Iterable[Member]) -> list[Slot]:
    """Return new slots whose participants carry the matching member uid.

    Records are rebuilt field by field. Participants with an unknown sub
    get ``uid=None``.
    """
    lookup = build_uid_lookup(original_members)
    return [
        Slot(
            start=slot.start,
            end=slot.end,
            participants=[
                ParticipantRef(
                    sub=p.sub,
                    calendar_id=p.calendar_id,
                    uid=lookup.get(p.sub),
                )
                for p in slot.participants
            ],
        )
        for slot in slots or []
    ]
