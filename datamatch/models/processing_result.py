from __future__ import annotations

from dataclasses import dataclass, field

from .error_record import ErrorRecord
from .sql_source import SqlSourceFile

"""Batch result models for the SQL file path.

FileStat tracks one input file; BatchResult aggregates a whole
combine/validate run and feeds the batch summary message.
"""


@dataclass(frozen=True)
class FileStat:
    """Per-file outcome (internal helper for BatchResult)."""
    file_name: str
    status: str  # processed/skipped
    key_count: int
    circuit: str | None = None


@dataclass(frozen=True)
class BatchResult:
    """Aggregated result of processing a batch of SQL files."""
    files: list[SqlSourceFile]
    file_stats: list[FileStat]
    elapsed_seconds: float
    errors: list[ErrorRecord] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.files)

    @property
    def skipped(self) -> int:
        return sum(1 for s in self.file_stats if s.status == "skipped")

    @property
    def total_keys(self) -> int:
        return sum(len(f.keys) for f in self.files)

    @property
    def circuits(self) -> list[str]:
        # 出現順を維持して重複除去
        return list(dict.fromkeys(f.circuit for f in self.files))
