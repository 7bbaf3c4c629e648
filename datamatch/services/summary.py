from __future__ import annotations

from ..models.comparison import ComparisonResult, DiffStatus
from ..models.processing_result import BatchResult

"""Summary rendering.

render_summary_line() produces the machine-greppable SUMMARY line logged at
the end of a comparison; the *_message() functions produce the free-text
notes the operator forwards to the people who apply the scripts.
"""

STATUS_LABELS = {
    DiffStatus.UPDATE_ATTR_A: "polygon update",
    DiffStatus.UPDATE_ATTR_B: "cell update",
    DiffStatus.UPDATE_BOTH: "polygon + cell update",
    DiffStatus.NEW: "new in source",
    DiffStatus.UNCHANGED_OR_REMOVED: "only in current",
}


def render_summary_line(result: ComparisonResult, update_count: int | None = None) -> str:
    """Render the SUMMARY line for a comparison.

    Format:
    SUMMARY left={n} right={n} matching={n} non_matching={n} differences={n}
    updates={n} total={n}

    ``update_count`` is the number of UPDATE statements actually emitted;
    when omitted the number of pending differences is used.

    >>> r = ComparisonResult(matching=1, non_matching=2, total=5, left_records=3, right_records=2)
    >>> render_summary_line(r, update_count=1)
    'SUMMARY left=3 right=2 matching=1 non_matching=2 differences=0 updates=1 total=5'
    """
    updates = update_count if update_count is not None else len(result.pending_updates)
    return (
        f"SUMMARY left={result.left_records} "
        f"right={result.right_records} "
        f"matching={result.matching} "
        f"non_matching={result.non_matching} "
        f"differences={len(result.differences)} "
        f"updates={updates} "
        f"total={result.total}"
    )


def render_summary_message(result: ComparisonResult, *, update_count: int | None = None) -> str:
    """Free-text summary of a comparison for a human recipient."""
    updates = update_count if update_count is not None else len(result.pending_updates)
    counts = result.count_by_status()
    lines = [
        f"Comparison summary for circuit {result.circuit or 'N/A'}",
        "",
        f"Source file: {result.left_name or 'N/A'} ({result.left_records} records)",
        f"Current file: {result.right_name or 'N/A'} ({result.right_records} records)",
        "",
        f"Records processed: {result.total}",
        f"Identifiers compared: {result.distinct_keys}",
        f"Matching: {result.matching}",
        f"With differences: {result.non_matching}",
    ]
    for status, label in STATUS_LABELS.items():
        if counts[status]:
            lines.append(f"  - {label}: {counts[status]}")
    lines.extend(["", f"UPDATE statements generated: {updates}"])
    return "\n".join(lines) + "\n"


def render_batch_message(batch: BatchResult) -> str:
    """Free-text summary of a combine/validate run over SQL files."""
    lines = [
        f"Files processed: {batch.processed}",
        f"Identifiers to validate: {batch.total_keys}",
        f"Circuits: {', '.join(batch.circuits) if batch.circuits else 'none'}",
        "",
    ]
    for f in batch.files:
        lines.append(f"  - {f.name} ({f.circuit}): {len(f.keys)} identifiers")
    skipped = [s.file_name for s in batch.file_stats if s.status == "skipped"]
    if skipped:
        lines.extend(["", f"Skipped files: {', '.join(skipped)}"])
    return "\n".join(lines) + "\n"
