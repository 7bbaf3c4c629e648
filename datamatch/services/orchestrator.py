from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from pathlib import Path

from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import AppConfig
from ..models.error_record import ErrorRecord
from ..models.processing_result import BatchResult, FileStat
from ..models.sql_source import SqlSourceFile
from .progress import ProgressTracker
from .text_extractor import UnsupportedFileError, parse_sql_file

"""Batch orchestration for the SQL file path.

Each file is handled in isolation: an unsupported or unreadable file is
skipped with a WARN line and an ErrorRecord, and the batch continues with the
remaining files.
"""

logger = logging.getLogger(__name__)


class ProcessingError(Exception):
    """Fatal batch error (bad input directory)."""


def scan_sql_files(directory: Path) -> list[Path]:
    """List .sql files in ``directory`` (non-recursive, sorted by name).

    Raises:
        ProcessingError: directory missing or unreadable
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")
    try:
        return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == ".sql")
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e



def expand_sql_paths(paths: Iterable[Path]) -> list[Path]:
    """Replace each directory in ``paths`` by its .sql files, in place.

    Files (and missing paths) pass through unchanged so that the batch
    reports them per file.

    Raises:
        ProcessingError: a directory could not be listed
    """
    expanded: list[Path] = []
    for path in paths:
        if path.is_dir():
            found = scan_sql_files(path)
            logger.info("%s: %d .sql files", path, len(found))
            expanded.extend(found)
        else:
            expanded.append(path)
    return expanded


def _read_text(path: Path) -> str:
    raw = path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        # 旧エディタ出力 (cp1252/latin-1) 対策
        return raw.decode("latin-1")


def _process_single_file(
    path: Path, key_column: str, error_log: ErrorLogBuffer
) -> SqlSourceFile | None:
    try:
        content = _read_text(path)
        return parse_sql_file(path.name, content, key_column)
    except UnsupportedFileError as e:
        logger.warning("skipped %s: %s", path.name, e)
        error_log.append(ErrorRecord.create(path.name, "extract", "UNSUPPORTED_FILE_TYPE", str(e)))
    except OSError as e:
        logger.warning("skipped %s: cannot read file: %s", path.name, e)
        error_log.append(ErrorRecord.create(path.name, "read", "FILE_READ_ERROR", str(e)))
    return None


def process_sql_files(
    paths: list[Path],
    config: AppConfig | None = None,
    *,
    key_column: str | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> BatchResult:
    """Parse a batch of SQL files.

    Args:
        paths: files in the order they should appear in the combined output
        config: supplies the default key column
        key_column: overrides the configured key column for extraction
        error_log: receives one ErrorRecord per skipped file

    Returns:
        BatchResult with the parsed files and per-file stats
    """
    config = config or AppConfig()
    key_column = key_column or config.target.key_column
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    errors_before = len(error_log)
    start = time.perf_counter()

    files: list[SqlSourceFile] = []
    stats: list[FileStat] = []
    with ProgressTracker(len(paths), description="Reading SQL files") as progress:
        for path in paths:
            progress.start_file(path)
            parsed = _process_single_file(path, key_column, error_log)
            if parsed is None:
                stats.append(FileStat(file_name=path.name, status="skipped", key_count=0))
            else:
                files.append(parsed)
                stats.append(
                    FileStat(file_name=path.name, status="processed", key_count=len(parsed.keys), circuit=parsed.circuit)
                )
            progress.finish_file(processed=len(files), skipped=len(stats) - len(files))

    elapsed = time.perf_counter() - start
    logger.info(
        "batch done processed=%d skipped=%d keys=%d",
        len(files), len(stats) - len(files), sum(len(f.keys) for f in files),
    )
    return BatchResult(
        files=files,
        file_stats=stats,
        elapsed_seconds=elapsed,
        errors=error_log.records[errors_before:],
    )
