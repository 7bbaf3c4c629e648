from __future__ import annotations

import logging

from ..models.comparison import AttributeDiff, ComparisonResult, DiffEntry, DiffStatus
from ..models.dataset import Dataset, Record
from .keys import normalize_key

"""Two-dataset reconciliation.

Records are matched by normalized key. The left dataset is the source of
truth (the spreadsheet the operator wants applied), the right dataset is the
current state exported from the database.

Output order: left keys in left row order, then right-only keys in right row
order (dicts keep insertion order).
"""

logger = logging.getLogger(__name__)


def index_records(records: list[Record]) -> dict[str, Record]:
    """Key -> record map; last row wins on duplicate keys, empty keys dropped."""
    index: dict[str, Record] = {}
    for record in records:
        key = normalize_key(record.id)
        if not key:
            continue
        index[key] = record
    return index


def _classify(a_differs: bool, b_differs: bool) -> DiffStatus:
    if a_differs and b_differs:
        return DiffStatus.UPDATE_BOTH
    if a_differs:
        return DiffStatus.UPDATE_ATTR_A
    return DiffStatus.UPDATE_ATTR_B


def compare_datasets(left: Dataset, right: Dataset) -> ComparisonResult:
    """Classify every key of both datasets.

    - key in both, attributes equal: counted as matching, no DiffEntry
    - key in both, any attribute differs: update-attrA / update-attrB / update-both
    - key only in left: new
    - key only in right: unchanged-or-removed (empty left values)
    """
    left_map = index_records(left.records)
    right_map = index_records(right.records)

    differences: list[DiffEntry] = []
    matching = 0

    for key, l_rec in left_map.items():
        l_a = l_rec.attribute_a or ""
        l_b = l_rec.attribute_b or ""
        r_rec = right_map.get(key)
        if r_rec is None:
            differences.append(
                DiffEntry(
                    key=key,
                    attribute_a=AttributeDiff(left=l_a, right="", needs_update=bool(l_a)),
                    attribute_b=AttributeDiff(left=l_b, right="", needs_update=bool(l_b)),
                    status=DiffStatus.NEW,
                )
            )
            continue

        r_a = r_rec.attribute_a or ""
        r_b = r_rec.attribute_b or ""
        a_differs = l_a != r_a
        b_differs = l_b != r_b
        if not (a_differs or b_differs):
            matching += 1
            continue
        differences.append(
            DiffEntry(
                key=key,
                attribute_a=AttributeDiff(left=l_a, right=r_a, needs_update=a_differs),
                attribute_b=AttributeDiff(left=l_b, right=r_b, needs_update=b_differs),
                status=_classify(a_differs, b_differs),
            )
        )

    for key, r_rec in right_map.items():
        if key in left_map:
            continue
        differences.append(
            DiffEntry(
                key=key,
                attribute_a=AttributeDiff(left="", right=r_rec.attribute_a or "", needs_update=False),
                attribute_b=AttributeDiff(left="", right=r_rec.attribute_b or "", needs_update=False),
                status=DiffStatus.UNCHANGED_OR_REMOVED,
            )
        )

    distinct = len(left_map) + sum(1 for k in right_map if k not in left_map)
    result = ComparisonResult(
        matching=matching,
        non_matching=distinct - matching,
        total=len(left.records) + len(right.records),
        differences=differences,
        left_name=left.source_name,
        right_name=right.source_name,
        circuit=left.processed_sheet,
        left_records=len(left.records),
        right_records=len(right.records),
    )
    logger.info(
        "comparison done matching=%d non_matching=%d differences=%d",
        result.matching, result.non_matching, len(differences),
    )
    return result
