from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from ..models.config_models import KeywordConfig
from ..models.dataset import ColumnMapping
from .reader import SheetData, Workbook

"""Sheet and column auto-detection.

Workbooks exported by the field teams mix the real data sheet with summary
sheets, pivot tables and blank placeholders ("Hoja1", "Sheet2", "3"). The
selector picks the sheet most likely to hold the dataset with an ordered list
of rules (first match wins), then maps header text to the three logical
fields by keyword.

Neither selection nor mapping raises: the worst case is the first sheet with
every field unmapped, which the dataset builder reports as a warning.
"""

__all__ = [
    "SheetSelection",
    "is_generic_sheet_name",
    "is_valid_sheet",
    "map_columns",
    "select_sheet",
]

logger = logging.getLogger(__name__)

GENERIC_NAME_WORDS = ("hoja", "sheet")
_BARE_INTEGER = re.compile(r"^\d+$")

# Minimum grid shape for content detection
MIN_ROWS = 3
MIN_HEADER_CELLS = 3
MIN_KEYWORD_FIELDS = 2
DATA_PROBE_ROWS = 4  # rows checked for content after the header


@dataclass(frozen=True)
class SheetSelection:
    sheet_name: str
    method: str  # valid_content / specific_name_validated / specific_name / second_sheet / first_sheet / manual


def _matches(cell: str, keywords: Iterable[str]) -> bool:
    text = cell.lower()
    return any(k in text for k in keywords)


def _find_header(headers: list[str], keywords: Iterable[str]) -> str | None:
    keywords = tuple(k.lower() for k in keywords)
    for h in headers:
        if h and _matches(h, keywords):
            return h
    return None


def is_generic_sheet_name(name: str) -> bool:
    """True for placeholder names: a bare integer or containing 'hoja'/'sheet'."""
    lowered = name.lower()
    return bool(_BARE_INTEGER.match(name.strip())) or any(w in lowered for w in GENERIC_NAME_WORDS)


def _row_width(row: list[str]) -> int:
    """Cells up to the last non-blank one; blanks in between still count."""
    width = len(row)
    while width and not row[width - 1].strip():
        width -= 1
    return width


def is_valid_sheet(sheet: SheetData, keywords: KeywordConfig) -> bool:
    """Content test: enough keyword columns in the header and real data below it."""
    rows = sheet.rows
    if len(rows) < MIN_ROWS:
        return False
    header = rows[0]
    if _row_width(header) < MIN_HEADER_CELLS:
        return False

    found = sum(
        1
        for vocabulary in (keywords.id, keywords.attribute_a, keywords.attribute_b)
        if _find_header(header, vocabulary) is not None
    )
    if found < MIN_KEYWORD_FIELDS:
        return False

    for row in rows[1 : 1 + DATA_PROBE_ROWS]:
        if any(cell.strip() for cell in row):
            return True
    return False


def select_sheet(workbook: Workbook, keywords: KeywordConfig | None = None) -> SheetSelection:
    """Pick the sheet holding the dataset.

    Rules, in priority order:
    1. valid_content: first sheet passing the content test
    2. specific_name_validated: first non-generic name passing the content test
    3. specific_name: first non-generic name, content not checked
    4. second_sheet: the second sheet when there is more than one
    5. first_sheet: the first sheet
    """
    keywords = keywords or KeywordConfig()
    names = workbook.sheet_names

    def valid(name: str) -> bool:
        return is_valid_sheet(workbook.sheets[name], keywords)

    rules: list[tuple[str, Callable[[str], bool]]] = [
        ("valid_content", valid),
        ("specific_name_validated", lambda n: not is_generic_sheet_name(n) and valid(n)),
        ("specific_name", lambda n: not is_generic_sheet_name(n)),
    ]
    for method, predicate in rules:
        for name in names:
            if predicate(name):
                logger.debug("sheet selected name=%s method=%s", name, method)
                return SheetSelection(sheet_name=name, method=method)

    if len(names) > 1:
        return SheetSelection(sheet_name=names[1], method="second_sheet")
    return SheetSelection(sheet_name=names[0], method="first_sheet")


def map_columns(headers: list[str], keywords: KeywordConfig | None = None) -> ColumnMapping:
    """Map header text to id / attribute_a / attribute_b (first keyword hit wins)."""
    keywords = keywords or KeywordConfig()
    mapping = ColumnMapping(
        id=_find_header(headers, keywords.id),
        attribute_a=_find_header(headers, keywords.attribute_a),
        attribute_b=_find_header(headers, keywords.attribute_b),
    )
    logger.debug("column mapping detected: %s", mapping)
    return mapping
