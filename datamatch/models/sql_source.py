from __future__ import annotations

from dataclasses import dataclass

"""Models for the SQL text-file path (combine + validation scripts)."""

__all__ = [
    "KeyRef",
    "SqlSourceFile",
]


@dataclass(frozen=True)
class SqlSourceFile:
    """One uploaded SQL file with the identifiers found in its WHERE clauses."""
    name: str
    size_bytes: int
    content: str
    keys: list[str]  # normalized, in order of appearance
    circuit: str  # tag derived from the file name


@dataclass(frozen=True)
class KeyRef:
    """An identifier plus the source group (circuit or file) it came from."""
    key: str
    group: str
