from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pandas as pd

from ..models.config_models import DEFAULT_NULL_SENTINELS

"""Key normalization.

Identifiers are fixed-width 6-digit codes. Spreadsheet and database round
trips regularly turn them into integers and drop the leading zeros, so every
boundary that reads an id (either dataset, or a raw key list) must pass it
through normalize_key before comparing.
"""

__all__ = [
    "KEY_WIDTH",
    "clean_value",
    "normalize_key",
]

KEY_WIDTH = 6


def normalize_key(value: Any) -> str:
    """Canonicalize an identifier.

    >>> normalize_key("517")
    '000517'
    >>> normalize_key(" 031517 ")
    '031517'
    >>> normalize_key("1234567")
    '1234567'
    >>> normalize_key("AB12")
    'AB12'
    """
    if value is None:
        return ""
    text = str(value).strip()
    # str.isdigit() は全角数字等も True になるため ASCII に限定
    if text and text.isascii() and text.isdigit() and len(text) < KEY_WIDTH:
        return text.zfill(KEY_WIDTH)
    return text


def clean_value(value: Any, null_sentinels: Iterable[str] = DEFAULT_NULL_SENTINELS) -> str:
    """Trim a cell and blank out null markers exported by the source database."""
    if value is None:
        return ""
    if not isinstance(value, str) and pd.isna(value):
        return ""
    text = str(value).strip()
    if text.upper() in {s.upper() for s in null_sentinels}:
        return ""
    return text
