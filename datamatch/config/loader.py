from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import SchemaError

from ..models.config_models import AppConfig, KeywordConfig, TargetTable

"""Config loader.

Responsibilities:
- Load the YAML config (config/datamatch.yml by default)
- Validate it against config_schema.json (unknown keys are rejected)
- Apply defaults for every omitted section

A missing *default* config file is not an error: the built-in defaults are
used. A config path given explicitly by the operator must exist.
"""

DEFAULT_CONFIG_PATH = Path("config/datamatch.yml")
SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


class ConfigError(Exception):
    pass


@functools.cache
def _schema_validator() -> jsonschema.Draft7Validator:
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.Draft7Validator.check_schema(schema)
    except (json.JSONDecodeError, SchemaError) as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    return jsonschema.Draft7Validator(schema)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Check ``data`` against config_schema.json.

    Every violation is reported, each prefixed with its location in the
    document (``target.table: ...``), so one run shows all mistakes.
    """
    problems = [
        f"{'.'.join(str(p) for p in err.absolute_path) or '<root>'}: {err.message}"
        for err in sorted(_schema_validator().iter_errors(data), key=lambda e: list(map(str, e.absolute_path)))
    ]
    if problems:
        raise ConfigError("config validation failed: " + "; ".join(problems))


def build_config(data: dict[str, Any]) -> AppConfig:
    """Build AppConfig from an already validated mapping."""
    defaults = AppConfig()

    target_raw = data.get("target")
    target = defaults.target
    if target_raw:
        target = TargetTable(
            database=target_raw.get("database", ""),
            schema=target_raw.get("schema", ""),
            table=target_raw["table"],
            key_column=target_raw["key_column"],
            attribute_a_column=target_raw["attribute_a_column"],
            attribute_b_column=target_raw["attribute_b_column"],
        )

    kw_raw = data.get("keywords") or {}
    keywords = KeywordConfig(
        id=tuple(kw_raw.get("id", defaults.keywords.id)),
        attribute_a=tuple(kw_raw.get("attribute_a", defaults.keywords.attribute_a)),
        attribute_b=tuple(kw_raw.get("attribute_b", defaults.keywords.attribute_b)),
    )

    sentinels = defaults.null_sentinels
    if "null_sentinels" in data:
        # 大文字化して保持 (比較は大文字で行う)
        sentinels = frozenset(s.strip().upper() for s in data["null_sentinels"])

    return AppConfig(
        target=target,
        keywords=keywords,
        temp_table=data.get("temp_table", defaults.temp_table),
        dialect=data.get("dialect", defaults.dialect),
        null_sentinels=sentinels,
        output_directory=data.get("output_directory", defaults.output_directory),
    )


def load_config(path: Path | None = None) -> AppConfig:
    """Load and validate configuration.

    Args:
        path: explicit config path; None means DEFAULT_CONFIG_PATH, which may
            be absent

    Raises:
        ConfigError: explicit file missing, invalid YAML, or schema violation
    """
    explicit = path is not None
    path = path if path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        if explicit:
            raise ConfigError(f"config file not found: {path}")
        return AppConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)
    return build_config(data)
