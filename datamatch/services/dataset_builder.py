from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path

from ..excel.reader import read_workbook
from ..excel.selector import SheetSelection, map_columns, select_sheet
from ..models.config_models import AppConfig
from ..models.dataset import ColumnMapping, Dataset, Record
from .keys import clean_value, normalize_key

"""Dataset builder: decoder + selector + normalizer in one call.

build_dataset() is the pure ``bytes -> Dataset`` entry point used by the CLI
and by ComparisonSession. Validation runs at the end and only produces
advisory warnings; it never prevents a Dataset from being returned.
"""

logger = logging.getLogger(__name__)


def canonical_headers(raw_headers: list[str]) -> list[str]:
    """Trim header text once; name blank headers and de-duplicate repeats.

    Blank headers become ``Column_<n>`` (1-based position) and repeated names
    get a ``_<k>`` suffix so that every raw field keeps its own key.
    """
    headers: list[str] = []
    seen: Counter[str] = Counter()
    for index, raw in enumerate(raw_headers, start=1):
        name = raw.strip() or f"Column_{index}"
        seen[name] += 1
        if seen[name] > 1:
            name = f"{name}_{seen[name]}"
        headers.append(name)
    return headers


def _is_blank_row(row: list[str]) -> bool:
    return not any(cell.strip() for cell in row)


def build_records(
    headers: list[str],
    rows: list[list[str]],
    mapping: ColumnMapping,
    null_sentinels: frozenset[str],
) -> list[Record]:
    """Turn data rows into Records (fully blank rows are skipped)."""
    def index_of(name: str | None) -> int | None:
        return headers.index(name) if name is not None else None

    id_idx = index_of(mapping.id)
    a_idx = index_of(mapping.attribute_a)
    b_idx = index_of(mapping.attribute_b)

    def cell(row: list[str], idx: int | None) -> str:
        if idx is None or idx >= len(row):
            return ""
        return clean_value(row[idx], null_sentinels)

    records: list[Record] = []
    # header = row 1, first data row = row 2
    for offset, row in enumerate(rows, start=2):
        if _is_blank_row(row):
            continue
        raw_fields = {h: (row[i].strip() if i < len(row) else "") for i, h in enumerate(headers)}
        records.append(
            Record(
                row_number=offset,
                id=normalize_key(cell(row, id_idx)),
                attribute_a=cell(row, a_idx),
                attribute_b=cell(row, b_idx),
                raw_fields=raw_fields,
            )
        )
    return records


def validate_records(records: list[Record], mapping: ColumnMapping) -> list[str]:
    """Advisory checks on a built record list.

    Returns human readable issue strings; an empty list means nothing to
    report.
    """
    issues: list[str] = []
    if not records:
        issues.append("file contains no data rows")
        return issues

    if mapping.id is None:
        issues.append("no identifier column detected")
    if mapping.attribute_a is None:
        issues.append("no polygon code column detected")
    if mapping.attribute_b is None:
        issues.append("no cell code column detected")

    valid = [r for r in records if r.id]
    if not valid:
        issues.append("no valid identifiers found (all rows are empty or N/A)")
    elif len(valid) < len(records):
        issues.append(f"{len(records) - len(valid)} rows have an invalid or empty identifier")

    dupes = sum(count - 1 for count in Counter(r.id for r in valid).values() if count > 1)
    if dupes:
        issues.append(f"{dupes} duplicate identifiers (last row wins)")
    return issues


def build_dataset(
    content: bytes,
    source_name: str,
    *,
    sheet_name: str | None = None,
    config: AppConfig | None = None,
) -> Dataset:
    """Decode ``content`` and build a Dataset.

    Args:
        content: raw file bytes
        source_name: original file name (also selects the CSV decoder)
        sheet_name: operator override; skips automatic sheet selection
        config: keyword vocabularies and null sentinels (defaults if None)

    Raises:
        DecodeError: content cannot be decoded, or ``sheet_name`` is unknown
    """
    config = config or AppConfig()
    workbook = read_workbook(content, source_name)

    if sheet_name is not None:
        workbook.sheet(sheet_name)  # SheetNotFoundError if unknown
        selection = SheetSelection(sheet_name=sheet_name, method="manual")
    else:
        selection = select_sheet(workbook, config.keywords)

    sheet = workbook.sheet(selection.sheet_name)
    headers = canonical_headers(sheet.header)
    mapping = map_columns(headers, config.keywords)
    records = build_records(headers, sheet.data_rows, mapping, config.null_sentinels)
    warnings = validate_records(records, mapping)

    logger.info(
        "dataset built file=%s sheet=%s method=%s records=%d",
        source_name, selection.sheet_name, selection.method, len(records),
    )
    for w in warnings:
        logger.warning("dataset %s: %s", source_name, w)

    return Dataset(
        source_name=source_name,
        size_bytes=len(content),
        records=records,
        processed_sheet=selection.sheet_name,
        available_sheets=list(workbook.sheet_names),
        columns=headers,
        column_mapping=mapping,
        detection_method=selection.method,
        warnings=warnings,
    )


def load_dataset(
    path: Path,
    *,
    sheet_name: str | None = None,
    config: AppConfig | None = None,
) -> Dataset:
    """Read a spreadsheet from disk and build a Dataset from it."""
    return build_dataset(path.read_bytes(), path.name, sheet_name=sheet_name, config=config)
