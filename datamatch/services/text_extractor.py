from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import PurePath

from ..models.sql_source import KeyRef, SqlSourceFile
from .keys import normalize_key

"""Identifier extraction from raw SQL source files.

Field teams hand over one .sql file per circuit, each full of statements
such as ``UPDATE ... WHERE instalacao = '031517';``. This module pulls the
circuit tag out of the file name and the identifiers out of the WHERE
clauses, and concatenates the files into a single combined script.
"""

__all__ = [
    "UNKNOWN_CIRCUIT",
    "UnsupportedFileError",
    "extract_circuit",
    "extract_keys",
    "key_refs",
    "parse_sql_file",
    "render_combined_file",
]

logger = logging.getLogger(__name__)

UNKNOWN_CIRCUIT = "CIRCUITO_DESCONOCIDO"
CIRCUIT_FALLBACK_LENGTH = 15
BANNER = "-- ==========================================="

# Ordered, first match wins
CIRCUIT_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(LPRA\d+)", re.IGNORECASE),
    re.compile(r"(PALA\d+)", re.IGNORECASE),
    re.compile(r"CT\s*X\s*POLIGONOS\s+([A-Z]+\d+)", re.IGNORECASE),
    re.compile(r"([A-Z]{4}\d{3})", re.IGNORECASE),
)


class UnsupportedFileError(Exception):
    """Raised for uploads that are not .sql files."""


def extract_circuit(file_name: str) -> str:
    """Circuit tag from a file name, e.g. ``CT X POLIGONOS LPRA110.sql`` -> ``LPRA110``."""
    for pattern in CIRCUIT_PATTERNS:
        match = pattern.search(file_name)
        if match:
            return match.group(1) or UNKNOWN_CIRCUIT
    stem = re.sub(r"\.sql$", "", file_name, flags=re.IGNORECASE)
    return stem[:CIRCUIT_FALLBACK_LENGTH] or UNKNOWN_CIRCUIT


def _key_pattern(key_column: str) -> re.Pattern[str]:
    return re.compile(
        rf"WHERE\s+{re.escape(key_column)}\s*=\s*['\"`]?([^'\"`;\s]+)['\"`]?",
        re.IGNORECASE,
    )


def extract_keys(content: str, key_column: str = "instalacao") -> list[str]:
    """Every ``WHERE <key_column> = 'value'`` value, in order, normalized."""
    keys = [normalize_key(m.group(1)) for m in _key_pattern(key_column).finditer(content)]
    return [k for k in keys if k]


def parse_sql_file(name: str, content: str, key_column: str = "instalacao") -> SqlSourceFile:
    """Build a SqlSourceFile from an uploaded file's name and text.

    Raises:
        UnsupportedFileError: ``name`` does not have a .sql suffix
    """
    if PurePath(name).suffix.lower() != ".sql":
        raise UnsupportedFileError(f"{name} is not a .sql file")
    keys = extract_keys(content, key_column)
    circuit = extract_circuit(name)
    logger.debug("parsed %s circuit=%s keys=%d", name, circuit, len(keys))
    return SqlSourceFile(
        name=name,
        size_bytes=len(content.encode("utf-8")),
        content=content,
        keys=keys,
        circuit=circuit,
    )


def key_refs(files: list[SqlSourceFile]) -> list[KeyRef]:
    """Flatten all files' keys, tagging each with its file's circuit."""
    return [KeyRef(key=k, group=f.circuit) for f in files for k in f.keys]


def render_combined_file(files: list[SqlSourceFile], *, generated_at: datetime | None = None) -> str:
    """Concatenate every file's raw text behind per-file banner comments."""
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    parts = [
        BANNER,
        "-- COMBINED SQL FILE",
        f"-- Generated: {stamp}",
        f"-- Total files: {len(files)}",
        BANNER,
        "",
    ]
    for index, f in enumerate(files, start=1):
        parts.extend(
            [
                f"-- FILE {index}: {f.name}",
                f"-- CIRCUIT: {f.circuit}",
                f"-- KEYS: {len(f.keys)}",
                BANNER,
                f.content,
                "",
            ]
        )
    return "\n".join(parts) + "\n"
