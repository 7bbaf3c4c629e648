from __future__ import annotations

from dataclasses import dataclass, field

"""Dataset domain models for the spreadsheet comparison tool.

A Dataset is one processed upload: the records extracted from the sheet the
selector chose (or the operator picked), plus the metadata needed to explain
that choice. Re-selecting a sheet produces a new Dataset; nothing here is
mutated after construction.
"""

__all__ = [
    "ColumnMapping",
    "Dataset",
    "Record",
]


@dataclass(frozen=True)
class Record:
    """One logical entity read from a data row.

    ``id`` is already normalized (see services.keys.normalize_key). It may be
    empty when the row had no usable identifier; the reconciler drops such
    records before matching.
    """
    row_number: int  # 1-based spreadsheet row (header = 1)
    id: str
    attribute_a: str  # 空文字 = 値なし
    attribute_b: str
    raw_fields: dict[str, str] = field(default_factory=dict)  # header -> raw text (display only)


@dataclass(frozen=True)
class ColumnMapping:
    """Header names mapped to the three logical fields (None = not found)."""
    id: str | None = None
    attribute_a: str | None = None
    attribute_b: str | None = None

    @property
    def missing_fields(self) -> list[str]:
        return [name for name in ("id", "attribute_a", "attribute_b") if getattr(self, name) is None]


@dataclass(frozen=True)
class Dataset:
    """One uploaded file after decoding, sheet selection and field mapping."""
    source_name: str
    size_bytes: int
    records: list[Record]
    processed_sheet: str
    available_sheets: list[str]
    columns: list[str] = field(default_factory=list)
    column_mapping: ColumnMapping = field(default_factory=ColumnMapping)
    detection_method: str = "first_sheet"
    warnings: list[str] = field(default_factory=list)  # advisory validation messages

    @property
    def record_count(self) -> int:
        return len(self.records)

    @property
    def size_label(self) -> str:
        return f"{self.size_bytes / 1024 / 1024:.2f} MB"

    @property
    def valid_records(self) -> list[Record]:
        return [r for r in self.records if r.id]

    def keys(self) -> list[str]:
        """Non-empty identifiers in row order (duplicates kept)."""
        return [r.id for r in self.records if r.id]
