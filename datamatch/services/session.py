from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..models.comparison import ComparisonResult
from ..models.config_models import AppConfig
from ..models.dataset import Dataset
from .dataset_builder import build_dataset
from .reconciler import compare_datasets
from .sql_emitter import render_query_script, render_update_script, update_statements
from .summary import render_summary_message

"""Comparison session: the operator's working state, held explicitly.

A session owns at most two uploads ("source" = left, "current" = right), the
bytes they were decoded from (so a sheet can be re-selected without
re-reading the file) and the last comparison. Datasets are never edited in
place: changing a sheet builds a new Dataset, and any change to either side
discards the comparison.
"""

logger = logging.getLogger(__name__)

SOURCE = "source"
CURRENT = "current"
SIDES = (SOURCE, CURRENT)


class SessionError(Exception):
    """Raised when an operation needs state the session does not have."""


@dataclass(frozen=True)
class _Upload:
    content: bytes
    name: str
    dataset: Dataset


class ComparisonSession:
    def __init__(self, config: AppConfig | None = None) -> None:
        self.config = config or AppConfig()
        self._uploads: dict[str, _Upload] = {}
        self._comparison: ComparisonResult | None = None

    @staticmethod
    def _check_side(side: str) -> None:
        if side not in SIDES:
            raise ValueError(f"unknown side '{side}' (expected one of {SIDES})")

    def dataset(self, side: str) -> Dataset | None:
        self._check_side(side)
        upload = self._uploads.get(side)
        return upload.dataset if upload else None

    @property
    def source(self) -> Dataset | None:
        return self.dataset(SOURCE)

    @property
    def current(self) -> Dataset | None:
        return self.dataset(CURRENT)

    @property
    def comparison(self) -> ComparisonResult | None:
        return self._comparison

    def load(self, side: str, content: bytes, name: str, *, sheet_name: str | None = None) -> Dataset:
        """Decode an upload into ``side``.

        On DecodeError the previous state of the session is left untouched.
        """
        self._check_side(side)
        dataset = build_dataset(content, name, sheet_name=sheet_name, config=self.config)
        self._uploads[side] = _Upload(content=content, name=name, dataset=dataset)
        self._comparison = None
        return dataset

    def load_path(self, side: str, path: Path, *, sheet_name: str | None = None) -> Dataset:
        return self.load(side, path.read_bytes(), path.name, sheet_name=sheet_name)

    def change_sheet(self, side: str, sheet_name: str) -> Dataset:
        """Rebuild ``side`` from its cached bytes using an operator-chosen sheet."""
        self._check_side(side)
        upload = self._uploads.get(side)
        if upload is None:
            raise SessionError(f"no {side} file loaded")
        return self.load(side, upload.content, upload.name, sheet_name=sheet_name)

    def compare(self) -> ComparisonResult:
        if self.source is None or self.current is None:
            raise SessionError("both source and current files must be loaded before comparing")
        self._comparison = compare_datasets(self.source, self.current)
        return self._comparison

    def _require_comparison(self) -> ComparisonResult:
        if self._comparison is None:
            raise SessionError("no comparison available; run compare() first")
        return self._comparison

    def update_script(self, *, generated_at: datetime | None = None) -> str:
        return render_update_script(self._require_comparison(), self.config.target, generated_at=generated_at)

    def query_script(self, *, generated_at: datetime | None = None) -> str:
        if self.source is None:
            raise SessionError("load the source file first")
        return render_query_script(self.source, self.config.target, generated_at=generated_at)

    def summary_message(self) -> str:
        result = self._require_comparison()
        return render_summary_message(result, update_count=len(update_statements(result, self.config.target)))

    def clear(self, side: str | None = None) -> None:
        """Discard one side (or everything); the comparison is always dropped."""
        if side is None:
            self._uploads.clear()
        else:
            self._check_side(side)
            self._uploads.pop(side, None)
        self._comparison = None
        logger.debug("session cleared side=%s", side or "all")
