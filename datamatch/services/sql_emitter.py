from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models.comparison import ComparisonResult, DiffEntry
from ..models.config_models import AppConfig, TargetTable
from ..models.dataset import Dataset
from ..models.sql_source import KeyRef

"""SQL script rendering.

Pure text templating (jinja2); nothing here connects to a database. Three
scripts are produced:

- query script: fetch the current attributes of the source keys
- update script: one UPDATE per pending difference
- validation script: existence check for a flat key list

Key lists longer than IN_CLAUSE_LIMIT are split into chunks joined with
UNION ALL, and the validation script then also carries a temp-table variant
that has no IN-list limit at all.
"""

__all__ = [
    "IN_CLAUSE_LIMIT",
    "EmptyKeySetError",
    "GroupSlice",
    "GroupTotal",
    "KeyChunk",
    "chunk_keys",
    "group_totals",
    "render_query_script",
    "render_update_script",
    "render_validation_script",
    "sql_quote",
    "sql_value",
    "update_statements",
]

logger = logging.getLogger(__name__)

# Upstream engine limit on IN-list size (ORA-01795). Not configurable.
IN_CLAUSE_LIMIT = 1000

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"

T = TypeVar("T")


class EmptyKeySetError(Exception):
    """Raised when a query/validation script is requested for zero keys."""


@dataclass(frozen=True)
class GroupSlice:
    group: str
    refs: list[KeyRef]


@dataclass(frozen=True)
class GroupTotal:
    group: str
    keys: int  # distinct keys expected for the group


@dataclass(frozen=True)
class KeyChunk:
    index: int  # 1-based
    start: int  # 1-based position of the first key in the full list
    end: int
    refs: list[KeyRef]
    groups: list[GroupSlice]  # one SELECT per source group, in first-seen order


def sql_quote(value: object) -> str:
    """Single-quoted SQL literal with embedded quotes doubled."""
    text = "" if value is None else str(value)
    return "'" + text.replace("'", "''") + "'"


def sql_value(value: object) -> str:
    """Attribute literal: bare when all ASCII digits, quoted otherwise."""
    text = "" if value is None else str(value)
    if text.isascii() and text.isdigit():
        return text
    return sql_quote(text)


def chunk_keys(items: Sequence[T], size: int = IN_CLAUSE_LIMIT) -> list[list[T]]:
    """Split ``items`` into consecutive chunks of at most ``size``."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=False,
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["quote"] = sql_quote
    env.filters["sql_value"] = sql_value
    return env


_env: Environment | None = None


def _get_env() -> Environment:
    global _env
    if _env is None:
        _env = _environment()
    return _env


def _timestamp(generated_at: datetime | None) -> str:
    return (generated_at or datetime.now()).strftime(TIMESTAMP_FMT)


def _split_by_group(refs: list[KeyRef]) -> list[GroupSlice]:
    by_group: dict[str, list[KeyRef]] = {}
    for ref in refs:
        by_group.setdefault(ref.group, []).append(ref)
    return [GroupSlice(group=g, refs=members) for g, members in by_group.items()]


def group_totals(refs: Sequence[KeyRef]) -> list[GroupTotal]:
    """Distinct keys per source group, in first-seen group order.

    A key repeated inside one group counts once; the same key under two
    groups counts for each of them.
    """
    seen: dict[str, set[str]] = {}
    for ref in refs:
        seen.setdefault(ref.group, set()).add(ref.key)
    return [GroupTotal(group=g, keys=len(keys)) for g, keys in seen.items()]


def _build_chunks(refs: list[KeyRef]) -> list[KeyChunk]:
    chunks: list[KeyChunk] = []
    for i, part in enumerate(chunk_keys(refs)):
        start = i * IN_CLAUSE_LIMIT + 1
        chunks.append(
            KeyChunk(
                index=i + 1,
                start=start,
                end=start + len(part) - 1,
                refs=part,
                groups=_split_by_group(part),
            )
        )
    return chunks


def update_statements(result: ComparisonResult, target: TargetTable) -> list[str]:
    """UPDATE statements for every pending difference.

    Only attributes flagged ``needs_update`` with a non-empty source value get
    a SET item; an entry with no SET item produces no statement.
    """
    statements: list[str] = []
    for entry in result.pending_updates:
        stmt = _update_statement(entry, target)
        if stmt is not None:
            statements.append(stmt)
    return statements


def _update_statement(entry: DiffEntry, target: TargetTable) -> str | None:
    assignments: list[str] = []
    if entry.attribute_a.needs_update and entry.attribute_a.left:
        assignments.append(f"{target.attribute_a_column} = {sql_value(entry.attribute_a.left)}")
    if entry.attribute_b.needs_update and entry.attribute_b.left:
        assignments.append(f"{target.attribute_b_column} = {sql_value(entry.attribute_b.left)}")
    if not assignments:
        return None
    return (
        f"UPDATE {target.qualified_name} SET {', '.join(assignments)} "
        f"WHERE {target.key_column} = {sql_quote(entry.key)};"
    )


def render_update_script(
    result: ComparisonResult,
    target: TargetTable | None = None,
    *,
    generated_at: datetime | None = None,
) -> str:
    """Render the full update script (header, statements, footer)."""
    target = target or TargetTable()
    statements = update_statements(result, target)
    logger.info("update script statements=%d circuit=%s", len(statements), result.circuit)
    return _get_env().get_template("update_script.sql.j2").render(
        target=target,
        result=result,
        circuit=result.circuit or "CIRCUIT",
        statements=statements,
        pending=len(result.pending_updates),
        generated_at=_timestamp(generated_at),
    )


def render_validation_script(
    refs: Sequence[KeyRef],
    config: AppConfig | None = None,
    *,
    generated_at: datetime | None = None,
    file_count: int | None = None,
) -> str:
    """Existence-check script for a flat key list.

    Raises:
        EmptyKeySetError: ``refs`` is empty
    """
    if not refs:
        raise EmptyKeySetError("no identifiers to validate")
    config = config or AppConfig()
    target = config.target
    refs = list(refs)
    chunks = _build_chunks(refs)
    chunked = len(chunks) > 1
    if chunked:
        logger.warning(
            "%d keys exceed the IN-list limit of %d; split into %d chunks",
            len(refs), IN_CLAUSE_LIMIT, len(chunks),
        )
    return _get_env().get_template("validation_script.sql.j2").render(
        target=target,
        refs=refs,
        chunks=chunks,
        chunked=chunked,
        totals=group_totals(refs),
        limit=IN_CLAUSE_LIMIT,
        temp_table=config.temp_table,
        dialect=config.dialect,
        file_count=file_count,
        generated_at=_timestamp(generated_at),
    )


def render_query_script(
    dataset: Dataset,
    target: TargetTable | None = None,
    *,
    generated_at: datetime | None = None,
) -> str:
    """Script fetching the current DB attributes of the dataset's keys.

    Raises:
        EmptyKeySetError: the dataset has no non-empty identifiers
    """
    target = target or TargetTable()
    keys = list(dict.fromkeys(dataset.keys()))
    if not keys:
        raise EmptyKeySetError(f"no identifiers found in '{dataset.source_name}'")
    group = dataset.processed_sheet
    refs = [KeyRef(key=k, group=group) for k in keys]
    chunks = _build_chunks(refs)
    return _get_env().get_template("query_script.sql.j2").render(
        target=target,
        dataset=dataset,
        keys=keys,
        chunks=chunks,
        chunked=len(chunks) > 1,
        limit=IN_CLAUSE_LIMIT,
        generated_at=_timestamp(generated_at),
    )
