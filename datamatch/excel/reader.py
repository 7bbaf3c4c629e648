from __future__ import annotations

import io
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

import pandas as pd

"""Workbook decoder.

Turns uploaded spreadsheet bytes into named sheets of text cells. Every cell
is read as text (dtype=str, no NA detection) so identifiers stored as text
keep their leading zeros: 031517 must never become 31517 here.

CSV exports (the usual shape of a database query result) decode into a
single sheet named after the file.
"""

__all__ = [
    "DecodeError",
    "SheetData",
    "SheetNotFoundError",
    "SheetPreview",
    "Workbook",
    "preview_sheet",
    "read_workbook",
]


class DecodeError(Exception):
    """Raised when uploaded content cannot be decoded into at least one sheet."""

class SheetNotFoundError(DecodeError):
    """Raised when a sheet name is not present in the workbook."""


@dataclass
class SheetData:
    sheet_name: str
    rows: list[list[str]]  # row-major text grid, row 0 = header candidates

    @property
    def header(self) -> list[str]:
        return self.rows[0] if self.rows else []

    @property
    def data_rows(self) -> list[list[str]]:
        return self.rows[1:]


@dataclass
class Workbook:
    source_name: str
    sheet_names: list[str]
    sheets: dict[str, SheetData] = field(default_factory=dict)

    def sheet(self, name: str) -> SheetData:
        try:
            return self.sheets[name]
        except KeyError:
            raise SheetNotFoundError(
                f"sheet '{name}' not found in '{self.source_name}' (available: {self.sheet_names})"
            ) from None


@dataclass(frozen=True)
class SheetPreview:
    sheet_name: str
    headers: list[str]
    sample_rows: list[list[str]]
    total_rows: int  # data rows, header excluded
    has_data: bool


def read_workbook(content: bytes, source_name: str = "") -> Workbook:
    """Decode raw spreadsheet bytes into a Workbook.

    Parameters
    ----------
    content: uploaded file bytes (must be non-empty)
    source_name: original file name; a ``.csv`` suffix selects the CSV decoder

    Raises
    ------
    DecodeError: empty content, zero sheets, or a corrupt/unsupported file
    """
    if not content:
        raise DecodeError(f"'{source_name or '<upload>'}' is empty")

    if PurePath(source_name).suffix.lower() == ".csv":
        frames = _read_csv(content, source_name)
    else:
        frames = _read_excel(content, source_name)

    if not frames:
        raise DecodeError(f"'{source_name or '<upload>'}' contains no sheets")

    sheets = {name: SheetData(sheet_name=name, rows=_frame_to_grid(df)) for name, df in frames.items()}
    return Workbook(source_name=source_name, sheet_names=list(frames.keys()), sheets=sheets)


def _read_excel(content: bytes, source_name: str) -> dict[str, pd.DataFrame]:
    try:
        xls = pd.ExcelFile(io.BytesIO(content))
        # ヘッダなしで生読み; 文字列のまま保持 (数値変換・NA 変換なし)
        return {
            str(name): xls.parse(name, header=None, dtype=str, keep_default_na=False, na_filter=False)
            for name in xls.sheet_names
        }
    except Exception as e:
        raise DecodeError(f"cannot parse workbook '{source_name or '<upload>'}': {e}") from e


def _read_csv(content: bytes, source_name: str) -> dict[str, pd.DataFrame]:
    sheet_name = PurePath(source_name).stem or "Sheet1"
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            df = pd.read_csv(
                io.BytesIO(content),
                header=None,
                dtype=str,
                keep_default_na=False,
                na_filter=False,
                encoding=encoding,
            )
        except UnicodeDecodeError:
            continue
        except Exception as e:
            raise DecodeError(f"cannot parse csv '{source_name}': {e}") from e
        return {sheet_name: df}
    raise DecodeError(f"cannot decode csv '{source_name}': unsupported text encoding")


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    return str(value)


def _frame_to_grid(df: pd.DataFrame) -> list[list[str]]:
    rows = [[_cell_text(v) for v in raw] for raw in df.itertuples(index=False, name=None)]
    # Trailing fully blank rows carry no data
    while rows and not any(cell.strip() for cell in rows[-1]):
        rows.pop()
    return rows


def preview_sheet(workbook: Workbook, sheet_name: str, sample_size: int = 3) -> SheetPreview:
    """Header row plus the first few data rows of one sheet."""
    sheet = workbook.sheet(sheet_name)
    data_rows = sheet.data_rows
    return SheetPreview(
        sheet_name=sheet_name,
        headers=list(sheet.header),
        sample_rows=[list(r) for r in data_rows[:sample_size]],
        total_rows=len(data_rows),
        has_data=bool(data_rows),
    )
