from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the comparison tool.

These are the typed domain view of the YAML configuration; the loader in
datamatch.config.loader validates the raw document and builds them.
"""

DEFAULT_ID_KEYWORDS = ("matricula", "matrícula", "instalacao", "instalacion", "codigo", "id")
DEFAULT_ATTRIBUTE_A_KEYWORDS = ("poligono", "polígono", "cod_poligono")
DEFAULT_ATTRIBUTE_B_KEYWORDS = ("celda", "cod_celda")
DEFAULT_NULL_SENTINELS = frozenset({"N/A", "NULL", "UNDEFINED"})


@dataclass(frozen=True)
class TargetTable:
    """Names emitted verbatim into generated SQL.

    The operator expects these exactly as configured; nothing in the emitter
    changes their case or quoting.
    """
    database: str = "SGDPRO"
    schema: str = "EDESURFLX_SGD"
    table: str = "UTRANSFORMADORA_LT"
    key_column: str = "instalacao"
    attribute_a_column: str = "cod_poligono"
    attribute_b_column: str = "cod_celda"

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}" if self.schema else self.table


@dataclass(frozen=True)
class KeywordConfig:
    """Header keyword vocabularies used by the sheet/column selector."""
    id: tuple[str, ...] = DEFAULT_ID_KEYWORDS
    attribute_a: tuple[str, ...] = DEFAULT_ATTRIBUTE_A_KEYWORDS
    attribute_b: tuple[str, ...] = DEFAULT_ATTRIBUTE_B_KEYWORDS


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    target: TargetTable = field(default_factory=TargetTable)
    keywords: KeywordConfig = field(default_factory=KeywordConfig)
    temp_table: str = "TEMP_INSTALACIONES"
    dialect: str = "generic"  # generic | oracle (temp table DDL only)
    null_sentinels: frozenset[str] = DEFAULT_NULL_SENTINELS  # 大文字化済
    output_directory: str = "./output"
