from __future__ import annotations

from pathlib import Path

from datamatch.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS
from datamatch.cli.__main__ import main as cli_main

"""Exit code contract: 0 = success, 1 = fatal, 2 = partial failure (combine only)."""


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_PARTIAL_FAILURE) == (0, 1, 2)


def test_exit_code_fatal_config(temp_workdir: Path, source_xlsx: Path, capsys):
    # 明示指定の config が存在しない → exit 1
    code = cli_main(["--config", "config/missing.yml", "inspect", str(source_xlsx)])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_exit_code_fatal_invalid_config(temp_workdir: Path, source_xlsx: Path, capsys):
    (temp_workdir / "config" / "datamatch.yml").write_text("dialect: mysql\n", encoding="utf-8")
    assert cli_main(["inspect", str(source_xlsx)]) == 1
    assert "config validation failed" in capsys.readouterr().out


def test_exit_code_success_compare(source_xlsx: Path, current_xlsx: Path):
    assert cli_main(["compare", str(source_xlsx), str(current_xlsx)]) == 0


def test_exit_code_fatal_missing_input(temp_workdir: Path, current_xlsx: Path, capsys):
    code = cli_main(["compare", str(temp_workdir / "nope.xlsx"), str(current_xlsx)])
    assert code == 1
    out = capsys.readouterr().out
    assert "ERROR nope.xlsx:" in out
    assert "SUMMARY" not in out


def test_exit_code_both_inputs_reported(temp_workdir: Path, capsys):
    code = cli_main(["compare", str(temp_workdir / "a.xlsx"), str(temp_workdir / "b.xlsx")])
    assert code == 1
    out = capsys.readouterr().out
    assert "ERROR a.xlsx:" in out
    assert "ERROR b.xlsx:" in out


def test_exit_code_partial_combine(temp_workdir: Path):
    data = temp_workdir / "data"
    (data / "LPRA110.sql").write_text("WHERE instalacao = '1';", encoding="utf-8")
    (data / "readme.txt").write_text("x", encoding="utf-8")
    assert cli_main(["combine", str(data / "LPRA110.sql"), str(data / "readme.txt")]) == 2


def test_exit_code_fatal_combine_nothing_usable(temp_workdir: Path):
    data = temp_workdir / "data"
    (data / "readme.txt").write_text("x", encoding="utf-8")
    assert cli_main(["combine", str(data / "readme.txt")]) == 1


def test_exit_code_fatal_combine_no_keys(temp_workdir: Path, capsys):
    data = temp_workdir / "data"
    (data / "LPRA110.sql").write_text("SELECT 1;", encoding="utf-8")
    assert cli_main(["combine", str(data / "LPRA110.sql")]) == 1
    assert "ERROR validation: no identifiers to validate" in capsys.readouterr().out
