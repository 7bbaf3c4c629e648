"""Domain models for the spreadsheet comparison and SQL generation tool.

This package contains the dataclasses shared by the reader, the reconciler,
the SQL emitter and the CLI.
"""

from .comparison import AttributeDiff, ComparisonResult, DiffEntry, DiffStatus
from .config_models import AppConfig, KeywordConfig, TargetTable
from .dataset import ColumnMapping, Dataset, Record
from .sql_source import KeyRef, SqlSourceFile

__all__ = [
    # Configuration models
    "AppConfig",
    "KeywordConfig",
    "TargetTable",
    # Dataset models
    "ColumnMapping",
    "Dataset",
    "Record",
    # Reconciliation models
    "AttributeDiff",
    "ComparisonResult",
    "DiffEntry",
    "DiffStatus",
    # SQL file path
    "KeyRef",
    "SqlSourceFile",
]
