from __future__ import annotations

import argparse
import sys
from datetime import datetime
from pathlib import Path

from datamatch.config.loader import ConfigError, load_config
from datamatch.excel.reader import DecodeError, preview_sheet, read_workbook
from datamatch.excel.selector import select_sheet
from datamatch.logging.error_log import ErrorLogBuffer
from datamatch.logging.init import log_summary, setup_logging
from datamatch.models.config_models import AppConfig
from datamatch.models.error_record import ErrorRecord
from datamatch.services.dataset_builder import load_dataset
from datamatch.services.export import script_filename, write_script
from datamatch.services.orchestrator import ProcessingError, expand_sql_paths, process_sql_files
from datamatch.services.session import CURRENT, SOURCE, ComparisonSession
from datamatch.services.sql_emitter import EmptyKeySetError, render_validation_script, update_statements
from datamatch.services.summary import render_batch_message, render_summary_line
from datamatch.services.text_extractor import key_refs, render_combined_file

"""CLI entrypoint.

Subcommands:
- inspect: show sheets, the auto-selected sheet, the column mapping and a preview
- query:   source spreadsheet -> script fetching the current DB state
- compare: source + current spreadsheets -> update script + SUMMARY line
- combine: SQL files or directories -> combined file + validation script
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="datamatch", description="Spreadsheet comparison and SQL script generator")
    p.add_argument("--config", type=Path, default=None, help="YAML config (default: config/datamatch.yml if present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--error-log", action="store_true", help="Write rejected files to logs/errors-*.log")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("inspect", help="Show sheets, detected sheet, column mapping and preview")
    s.add_argument("file", type=Path)
    s.add_argument("--sheet", help="Sheet to preview instead of the detected one")

    s = sub.add_parser("query", help="Generate the query script for a source spreadsheet")
    s.add_argument("file", type=Path)
    s.add_argument("--sheet", help="Use this sheet instead of the detected one")
    s.add_argument("--out-dir", type=Path)

    s = sub.add_parser("compare", help="Compare source and current spreadsheets, write the update script")
    s.add_argument("source", type=Path)
    s.add_argument("current", type=Path)
    s.add_argument("--source-sheet")
    s.add_argument("--current-sheet")
    s.add_argument("--out-dir", type=Path)
    s.add_argument("--message", action="store_true", help="Print the summary message for the recipient")

    s = sub.add_parser("combine", help="Combine SQL files and write a validation script")
    s.add_argument("files", type=Path, nargs="+", help="SQL files, or directories whose .sql files are read in name order")
    s.add_argument("--out-dir", type=Path)
    s.add_argument("--key-column", help="Column name used in the WHERE clauses (default: target.key_column)")
    return p.parse_args(argv)


def _out_dir(args: argparse.Namespace, cfg: AppConfig) -> Path:
    return args.out_dir if args.out_dir is not None else Path(cfg.output_directory)


def _reject(logger, error_log: ErrorLogBuffer, path: Path, error: Exception) -> None:
    logger.error(f"{path.name}: {error}")
    error_log.append(ErrorRecord.create(path.name, "decode", "DECODE_ERROR", str(error)))


def _inspect(args: argparse.Namespace, cfg: AppConfig, logger, error_log: ErrorLogBuffer) -> int:
    try:
        workbook = read_workbook(args.file.read_bytes(), args.file.name)
        dataset = load_dataset(args.file, sheet_name=args.sheet, config=cfg)
    except (DecodeError, OSError) as e:
        _reject(logger, error_log, args.file, e)
        return EXIT_FATAL

    selection = select_sheet(workbook, cfg.keywords)
    print(f"FILE: {dataset.source_name} ({dataset.size_label})")
    print(f"  sheets: {dataset.available_sheets}")
    print(f"  detected: {selection.sheet_name} ({selection.method})")
    print(f"  processed: {dataset.processed_sheet} ({dataset.detection_method})")
    mapping = dataset.column_mapping
    print(f"  mapping: id={mapping.id} polygon={mapping.attribute_a} cell={mapping.attribute_b}")
    print(f"  records: {dataset.record_count} (valid ids: {len(dataset.valid_records)})")
    preview = preview_sheet(workbook, dataset.processed_sheet)
    print(f"  headers: {preview.headers}")
    for row in preview.sample_rows:
        print(f"    {row}")
    for w in dataset.warnings:
        logger.warning(f"{dataset.source_name}: {w}")
    return EXIT_SUCCESS


def _query(args: argparse.Namespace, cfg: AppConfig, logger, error_log: ErrorLogBuffer) -> int:
    session = ComparisonSession(cfg)
    try:
        dataset = session.load_path(SOURCE, args.file, sheet_name=args.sheet)
    except (DecodeError, OSError) as e:
        _reject(logger, error_log, args.file, e)
        return EXIT_FATAL
    try:
        script = session.query_script()
    except EmptyKeySetError as e:
        logger.error(f"query: {e}")
        return EXIT_FATAL
    path = write_script(script, _out_dir(args, cfg), script_filename("query", dataset.processed_sheet))
    logger.info(f"query script: {path} keys={len(set(dataset.keys()))}")
    return EXIT_SUCCESS


def _compare(args: argparse.Namespace, cfg: AppConfig, logger, error_log: ErrorLogBuffer) -> int:
    session = ComparisonSession(cfg)
    failed = False
    for side, path, sheet in ((SOURCE, args.source, args.source_sheet), (CURRENT, args.current, args.current_sheet)):
        try:
            ds = session.load_path(side, path, sheet_name=sheet)
            logger.info(f"{side}: {ds.source_name} sheet={ds.processed_sheet} ({ds.detection_method}) records={ds.record_count}")
        except (DecodeError, OSError) as e:
            # 片方の失敗は他方に影響させない (両方を報告してから終了)
            _reject(logger, error_log, path, e)
            failed = True
    if failed:
        return EXIT_FATAL

    result = session.compare()
    script = session.update_script()
    path = write_script(script, _out_dir(args, cfg), script_filename("update", result.circuit))
    logger.info(f"update script: {path}")

    statements = update_statements(result, cfg.target)
    # ラベルはフォーマッタが付けるので本文のみ渡す
    log_summary(render_summary_line(result, update_count=len(statements)).removeprefix("SUMMARY "))
    if args.message:
        print(session.summary_message())
    return EXIT_SUCCESS


def _combine(args: argparse.Namespace, cfg: AppConfig, logger, error_log: ErrorLogBuffer) -> int:
    try:
        paths = expand_sql_paths(args.files)
    except ProcessingError as e:
        logger.error(f"combine: {e}")
        return EXIT_FATAL
    batch = process_sql_files(paths, cfg, key_column=args.key_column, error_log=error_log)
    if not batch.files:
        logger.error("combine: no .sql files could be processed")
        return EXIT_FATAL

    out_dir = _out_dir(args, cfg)
    now = datetime.now()
    combined = render_combined_file(batch.files, generated_at=now)
    write_script(combined, out_dir, script_filename("combined", when=now.date()))
    try:
        validation = render_validation_script(key_refs(batch.files), cfg, generated_at=now, file_count=batch.processed)
    except EmptyKeySetError as e:
        logger.error(f"validation: {e}")
        return EXIT_FATAL
    write_script(validation, out_dir, script_filename("validation", when=now.date()))

    print(render_batch_message(batch))
    log_summary(f"files={batch.processed + batch.skipped} processed={batch.processed} skipped={batch.skipped} keys={batch.total_keys}")
    return EXIT_PARTIAL_FAILURE if batch.skipped else EXIT_SUCCESS


COMMANDS = {
    "inspect": _inspect,
    "query": _query,
    "compare": _compare,
    "combine": _combine,
}


def main(argv: list[str] | None = None) -> int:
    # NOTE: None のときのみシステム引数を読む ([] を渡したテストで pytest の引数が混入しないように)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer()
    try:
        return COMMANDS[args.command](args, cfg, logger, error_log)
    finally:
        if args.error_log:
            written = error_log.flush()
            if written is not None:
                logger.info(f"error log: {written}")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
