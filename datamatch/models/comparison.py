from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

"""Reconciliation result models.

DiffEntry is the unit of output of the reconciler; ComparisonResult is the
aggregate handed to the SQL emitter and the summary renderers.
"""

__all__ = [
    "AttributeDiff",
    "ComparisonResult",
    "DiffEntry",
    "DiffStatus",
]


class DiffStatus(Enum):
    """Classification of one key across the two datasets.

    - UPDATE_ATTR_A: present on both sides, only attribute A differs
    - UPDATE_ATTR_B: present on both sides, only attribute B differs
    - UPDATE_BOTH: present on both sides, both attributes differ
    - NEW: present only in the left (source) dataset
    - UNCHANGED_OR_REMOVED: present only in the right (current) dataset
    """
    UPDATE_ATTR_A = "update-attrA"
    UPDATE_ATTR_B = "update-attrB"
    UPDATE_BOTH = "update-both"
    NEW = "new"
    UNCHANGED_OR_REMOVED = "unchanged-or-removed"

    @property
    def is_pending_update(self) -> bool:
        return self is not DiffStatus.UNCHANGED_OR_REMOVED


@dataclass(frozen=True)
class AttributeDiff:
    left: str
    right: str
    needs_update: bool


@dataclass(frozen=True)
class DiffEntry:
    key: str
    attribute_a: AttributeDiff
    attribute_b: AttributeDiff
    status: DiffStatus


@dataclass(frozen=True)
class ComparisonResult:
    """Aggregate reconciliation output.

    ``total`` is the raw sum of both datasets' record counts (matched pairs
    are counted twice); ``distinct_keys`` gives the de-duplicated population.
    """
    matching: int
    non_matching: int
    total: int
    differences: list[DiffEntry] = field(default_factory=list)
    left_name: str = ""
    right_name: str = ""
    circuit: str = ""  # left dataset's processed sheet
    left_records: int = 0
    right_records: int = 0

    @property
    def distinct_keys(self) -> int:
        return self.matching + self.non_matching

    @property
    def pending_updates(self) -> list[DiffEntry]:
        return [d for d in self.differences if d.status.is_pending_update]

    def count_by_status(self) -> dict[DiffStatus, int]:
        counts = Counter(d.status for d in self.differences)
        return {status: counts.get(status, 0) for status in DiffStatus}
