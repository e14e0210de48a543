"""
Half-open interval overlap checks for a user's time slots.

Two intervals [s1, e1) and [s2, e2) overlap iff s1 < e2 and s2 < e1, so a
slot ending at 11:00 never conflicts with one starting at 11:00.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime
    id: Optional[UUID] = None

    def overlaps(self, other: "Interval") -> bool:
        return self.start < other.end and other.start < self.end


def find_overlapping(
    existing: Iterable[Interval],
    candidate: Interval,
    exclude_id: Optional[UUID] = None,
) -> Optional[Interval]:
    """Return the first interval in ``existing`` that overlaps ``candidate``.

    The interval whose id equals ``exclude_id`` is skipped, which is how an
    update is validated against everything except the slot being updated.
    """
    for interval in existing:
        if exclude_id is not None and interval.id == exclude_id:
            continue
        if interval.overlaps(candidate):
            return interval
    return None


def overlaps(
    existing: Iterable[Interval],
    candidate: Interval,
    exclude_id: Optional[UUID] = None,
) -> bool:
    return find_overlapping(existing, candidate, exclude_id) is not None
