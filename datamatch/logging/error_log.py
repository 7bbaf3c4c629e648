from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Error log for rejected uploads.

Records are buffered for the whole run and appended as JSON Lines to a single
file per run, ``logs/errors-<UTC stamp>.log``. A run without rejections
leaves no file behind.
"""

__all__ = [
    "ErrorLogBuffer",
    "ErrorRecord",
]

logger = logging.getLogger(__name__)

LOGS_DIR = Path("logs")


class ErrorLogBuffer:
    def __init__(self, logs_dir: Path = LOGS_DIR) -> None:
        self.logs_dir = logs_dir
        self._pending: list[ErrorRecord] = []
        self._target: Path | None = None  # 初回参照時に確定し、以降の flush は同じファイルへ追記

    @property
    def file_path(self) -> Path:
        if self._target is None:
            self._target = self.logs_dir / datetime.now(UTC).strftime("errors-%Y%m%d-%H%M%S.log")
        return self._target

    @property
    def records(self) -> list[ErrorRecord]:
        return self._pending.copy()

    def append(self, record: ErrorRecord) -> None:
        self._pending.append(record)

    def __len__(self) -> int:
        return len(self._pending)

    def flush(self) -> Path | None:
        """Append pending records to the run's log file and clear the buffer.

        Returns the log path, or None when there was nothing to write.
        """
        if not self._pending:
            return None
        target = self.file_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("a", encoding="utf-8") as fh:
            fh.writelines(f"{r.to_json_line()}\n" for r in self._pending)
        logger.debug("error log %s: +%d records", target, len(self._pending))
        self._pending.clear()
        return target
