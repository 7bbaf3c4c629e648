from __future__ import annotations

from pathlib import Path

import pytest

from datamatch.cli.__main__ import main as cli_main


def test_cli_requires_command(capsys):
    with pytest.raises(SystemExit) as ei:
        cli_main([])
    assert ei.value.code == 2


def test_cli_inspect(source_xlsx: Path, capsys):
    code = cli_main(["inspect", str(source_xlsx)])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: LPRA110_source.xlsx" in out
    assert "sheets: ['Hoja1', 'LPRA110']" in out
    assert "detected: LPRA110 (valid_content)" in out
    assert "mapping: id=instalacao polygon=cod_poligono cell=cod_celda" in out
    assert "records: 3 (valid ids: 3)" in out


def test_cli_inspect_manual_sheet_warns(source_xlsx: Path, capsys):
    code = cli_main(["inspect", str(source_xlsx), "--sheet", "Hoja1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "processed: Hoja1 (manual)" in out
    assert "WARN LPRA110_source.xlsx: file contains no data rows" in out


def test_cli_inspect_unknown_sheet(source_xlsx: Path, capsys):
    code = cli_main(["inspect", str(source_xlsx), "--sheet", "Nope"])
    assert code == 1
    assert "ERROR LPRA110_source.xlsx: sheet 'Nope' not found" in capsys.readouterr().out


def test_cli_query_writes_script(source_xlsx: Path, temp_workdir: Path, capsys):
    code = cli_main(["query", str(source_xlsx), "--out-dir", "out"])
    out = capsys.readouterr().out
    assert code == 0
    (script,) = (temp_workdir / "out").glob("query_LPRA110_*.sql")
    assert "-- Keys to query: 3" in script.read_text(encoding="utf-8")
    assert "keys=3" in out


def test_cli_query_without_keys(excel_file, capsys):
    empty = excel_file("empty.xlsx", {"S": [["instalacao", "cod_poligono", "cod_celda"]]})
    code = cli_main(["query", str(empty)])
    assert code == 1
    assert "ERROR query: no identifiers found" in capsys.readouterr().out


def test_cli_compare_message(source_xlsx: Path, current_xlsx: Path, capsys):
    code = cli_main(["compare", str(source_xlsx), str(current_xlsx), "--message"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY left=3 right=3 matching=1 non_matching=3 differences=3 updates=2 total=6" in out
    assert "Comparison summary for circuit LPRA110" in out


def test_cli_debug_flag(source_xlsx: Path, capsys):
    assert cli_main(["--debug", "inspect", str(source_xlsx)]) == 0
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG sheet selected name=LPRA110 method=valid_content" in out


def test_cli_uses_output_directory_from_config(write_config: Path, source_xlsx: Path, temp_workdir: Path):
    assert cli_main(["query", str(source_xlsx)]) == 0
    assert list((temp_workdir / "output").glob("query_*.sql"))
