from __future__ import annotations

import re
from pathlib import Path

from datamatch.cli.__main__ import main as cli_main

"""End-to-end: several per-circuit SQL files -> combined file + validation script."""


def _sql(n: int, start: int = 1) -> str:
    return "".join(
        f"UPDATE EDESURFLX_SGD.UTRANSFORMADORA_LT SET cod_poligono = 1 WHERE instalacao = '{i}';\n"
        for i in range(start, start + n)
    )


def test_combine_small_batch(temp_workdir: Path, capsys):
    data = temp_workdir / "data"
    a = data / "CT X POLIGONOS LPRA110.sql"
    b = data / "CT X POLIGONOS PALA002.sql"
    a.write_text(_sql(3), encoding="utf-8")
    b.write_text(_sql(2, start=100), encoding="utf-8")

    code = cli_main(["combine", str(a), str(b), "--out-dir", "out"])
    out = capsys.readouterr().out
    assert code == 0
    assert "Files processed: 2" in out
    assert "Identifiers to validate: 5" in out
    assert "SUMMARY files=2 processed=2 skipped=0 keys=5" in out

    (combined,) = (temp_workdir / "out").glob("combined_*.sql")
    text = combined.read_text(encoding="utf-8")
    assert text.index("-- FILE 1: CT X POLIGONOS LPRA110.sql") < text.index("-- FILE 2: CT X POLIGONOS PALA002.sql")
    assert "-- CIRCUIT: PALA002" in text

    (validation,) = (temp_workdir / "out").glob("validation_*.sql")
    script = validation.read_text(encoding="utf-8")
    assert "-- Files processed: 2" in script
    assert "-- Keys to validate: 5" in script
    assert "'LPRA110' AS source_group" in script
    assert "'PALA002' AS source_group" in script
    assert "CASE\n        WHEN instalacao IN" not in script
    assert "'000100',  -- PALA002" in script
    assert "TEMPORARY TABLE" not in script


def test_combine_large_batch_is_chunked(temp_workdir: Path, write_config: Path):
    data = temp_workdir / "data"
    a = data / "LPRA110.sql"
    b = data / "PALA002.sql"
    a.write_text(_sql(900), encoding="utf-8")
    b.write_text(_sql(600, start=5000), encoding="utf-8")

    assert cli_main(["combine", str(a), str(b)]) == 0
    (validation,) = (temp_workdir / "output").glob("validation_*.sql")
    script = validation.read_text(encoding="utf-8")
    assert "-- CHUNK 1 (1-1000)" in script
    assert "-- CHUNK 2 (1001-1500)" in script
    for body in re.findall(r"IN \(\n(.*?)\n\s*\)", script, flags=re.DOTALL):
        assert len(re.findall(r"'\d{6}'", body)) <= 1000
    # config の dialect: oracle
    assert "CREATE GLOBAL TEMPORARY TABLE TEMP_INSTALACIONES" in script
    assert script.count("INSERT INTO TEMP_INSTALACIONES VALUES") == 1500


def test_combine_reads_directory(temp_workdir: Path, capsys):
    data = temp_workdir / "data"
    (data / "b_PALA002.sql").write_text(_sql(2, start=100), encoding="utf-8")
    (data / "a_LPRA110.sql").write_text(_sql(3), encoding="utf-8")
    (data / "notes.txt").write_text("not sql", encoding="utf-8")

    code = cli_main(["combine", str(data), "--out-dir", "out"])
    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY files=2 processed=2 skipped=0 keys=5" in out

    (combined,) = (temp_workdir / "out").glob("combined_*.sql")
    text = combined.read_text(encoding="utf-8")
    assert text.index("-- FILE 1: a_LPRA110.sql") < text.index("-- FILE 2: b_PALA002.sql")


def test_combine_empty_directory_is_fatal(temp_workdir: Path, capsys):
    empty = temp_workdir / "empty"
    empty.mkdir()
    assert cli_main(["combine", str(empty)]) == 1
    assert "ERROR combine: no .sql files could be processed" in capsys.readouterr().out
