# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from datamatch.logging.init import reset_logging

HEADER = ["instalacao", "cod_poligono", "cod_celda", "observacion"]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _fresh_logging():
    # setup_logging() はプロセス内でキャッシュされるため毎テストでリセット
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """target:
  database: SGDPRO
  schema: EDESURFLX_SGD
  table: UTRANSFORMADORA_LT
  key_column: instalacao
  attribute_a_column: cod_poligono
  attribute_b_column: cod_celda
temp_table: TEMP_INSTALACIONES
dialect: oracle
null_sentinels: ["N/A", "NULL", "UNDEFINED", "-"]
output_directory: ./output
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "datamatch.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_excel(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    """Write a real .xlsx with one worksheet per entry (rows written as-is, no header row added)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture()
def excel_bytes(tmp_path: Path):
    """Factory: sheets -> .xlsx bytes (for the bytes-in APIs)."""
    def _build(sheets: dict[str, list[list[object]]], name: str = "book.xlsx") -> bytes:
        return make_excel(tmp_path / name, sheets).read_bytes()
    return _build


@pytest.fixture()
def source_rows() -> list[list[object]]:
    """Source (left) dataset: the attributes the operator wants applied."""
    return [
        HEADER,
        ["031517", "1001", "A1", ""],
        ["031518", "1002", "B2", ""],
        ["031519", "1003", "C3", "nuevo"],
    ]


@pytest.fixture()
def current_rows() -> list[list[object]]:
    """Current (right) dataset: DB export, leading zeros already lost."""
    return [
        HEADER[:3],
        ["31517", "1001", "A1"],
        ["31518", "9999", "B2"],
        ["40000", "7", "Z9"],
    ]


@pytest.fixture()
def source_xlsx(temp_workdir: Path, source_rows) -> Path:
    return make_excel(
        temp_workdir / "data" / "LPRA110_source.xlsx",
        {"Hoja1": [["resumen"]], "LPRA110": source_rows},
    )


@pytest.fixture()
def current_xlsx(temp_workdir: Path, current_rows) -> Path:
    return make_excel(temp_workdir / "data" / "current.xlsx", {"Sheet1": current_rows})


@pytest.fixture()
def excel_file(temp_workdir: Path):
    """Factory: write ``data/<name>`` with the given sheets and return its path."""
    def _build(name: str, sheets: dict[str, list[list[object]]]) -> Path:
        return make_excel(temp_workdir / "data" / name, sheets)
    return _build
