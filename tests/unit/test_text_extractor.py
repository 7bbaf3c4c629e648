from __future__ import annotations

from datetime import datetime

import pytest

from datamatch.models.sql_source import KeyRef
from datamatch.services.text_extractor import (
    UNKNOWN_CIRCUIT,
    UnsupportedFileError,
    extract_circuit,
    extract_keys,
    key_refs,
    parse_sql_file,
    render_combined_file,
)

SQL = """-- circuito LPRA110
UPDATE EDESURFLX_SGD.UTRANSFORMADORA_LT SET cod_poligono = 1001 WHERE instalacao = '31517';
UPDATE EDESURFLX_SGD.UTRANSFORMADORA_LT SET cod_poligono = 1002 where INSTALACAO='031518';
UPDATE EDESURFLX_SGD.UTRANSFORMADORA_LT SET cod_celda = 'B2' WHERE instalacao = 42;
UPDATE EDESURFLX_SGD.UTRANSFORMADORA_LT SET cod_celda = 'B2' WHERE instalacao = "A-77";
SELECT * FROM t WHERE other = '999999';
"""


@pytest.mark.parametrize(
    "name,expected",
    [
        ("CT X POLIGONOS LPRA110.sql", "LPRA110"),
        ("update_pala002_final.sql", "pala002"),
        ("CT X POLIGONOS ZZ9.sql", "ZZ9"),
        ("ABCD123 cambios.sql", "ABCD123"),
        ("cambios_varios_del_mes.sql", "cambios_varios_"),
        (".sql", UNKNOWN_CIRCUIT),
    ],
)
def test_extract_circuit(name, expected):
    assert extract_circuit(name) == expected


def test_extract_keys_in_order_normalized():
    assert extract_keys(SQL) == ["031517", "031518", "000042", "A-77"]


def test_extract_keys_custom_column():
    assert extract_keys(SQL, key_column="other") == ["999999"]


def test_extract_keys_none_found():
    assert extract_keys("SELECT 1;") == []


def test_parse_sql_file():
    f = parse_sql_file("CT X POLIGONOS LPRA110.sql", SQL)
    assert f.circuit == "LPRA110"
    assert f.keys == ["031517", "031518", "000042", "A-77"]
    assert f.content == SQL
    assert f.size_bytes == len(SQL.encode("utf-8"))


def test_parse_sql_file_rejects_other_types():
    with pytest.raises(UnsupportedFileError):
        parse_sql_file("notes.txt", SQL)


def test_key_refs_tag_group():
    a = parse_sql_file("LPRA110.sql", "WHERE instalacao = '1';")
    b = parse_sql_file("PALA002.sql", "WHERE instalacao = '2'; WHERE instalacao = '1';")
    assert key_refs([a, b]) == [
        KeyRef("000001", "LPRA110"),
        KeyRef("000002", "PALA002"),
        KeyRef("000001", "PALA002"),
    ]


def test_render_combined_file():
    a = parse_sql_file("LPRA110.sql", "WHERE instalacao = '1';")
    b = parse_sql_file("PALA002.sql", "-- vacío")
    text = render_combined_file([a, b], generated_at=datetime(2026, 1, 2, 3, 4, 5))
    lines = text.splitlines()
    assert lines[1] == "-- COMBINED SQL FILE"
    assert "-- Generated: 2026-01-02 03:04:05" in lines
    assert "-- Total files: 2" in lines
    i = lines.index("-- FILE 1: LPRA110.sql")
    assert lines[i + 1 : i + 3] == ["-- CIRCUIT: LPRA110", "-- KEYS: 1"]
    assert lines[i + 4] == "WHERE instalacao = '1';"
    j = lines.index("-- FILE 2: PALA002.sql")
    assert j > i
    assert lines[j + 2] == "-- KEYS: 0"
    assert lines[j + 4] == "-- vacío"
