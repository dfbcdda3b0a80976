# src/batch/batcher.py — v1
"""Split a member roster into provider-sized batches."""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

DEFAULT_BATCH_SIZE = 5


def batch_members(members: Sequence[T], size: int = DEFAULT_BATCH_SIZE) -> list[list[T]]:
    """Split members into consecutive groups of at most ``size``.

    Input order is preserved and only the last group may be smaller.
    An empty roster yields no batches.

    Raises:
        ValueError: If size is not positive.
    """
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    return [list(members[i:i + size]) for i in range(0, len(members), size)]
