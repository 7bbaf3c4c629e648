from __future__ import annotations

import json
from dataclasses import dataclass, fields
from datetime import UTC, datetime

"""Rejected-upload record.

One line of the error log. The key set is fixed so that wrapper scripts can
read the log with any JSON Lines reader:

    {"timestamp": ..., "file": ..., "stage": ..., "error_type": ..., "message": ...}
"""

__all__ = [
    "ErrorRecord",
    "utc_stamp",
]


def utc_stamp(now: datetime | None = None) -> str:
    """ISO8601 UTC with a ``Z`` suffix and microseconds.

    >>> utc_stamp(datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC))
    '2026-01-02T03:04:05.000000Z'
    """
    moment = (now or datetime.now(UTC)).astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@dataclass(frozen=True)
class ErrorRecord:
    timestamp: str
    file: str  # upload name without directory
    stage: str  # decode / read / extract
    error_type: str  # DECODE_ERROR / FILE_READ_ERROR / UNSUPPORTED_FILE_TYPE
    message: str

    @classmethod
    def create(cls, file: str, stage: str, error_type: str, message: str) -> ErrorRecord:
        return cls(
            timestamp=utc_stamp(),
            file=file,
            stage=stage,
            error_type=error_type.upper(),
            message=message.strip(),
        )

    def to_dict(self) -> dict[str, str]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_json_line(self) -> str:
        # 非 ASCII のファイル名 (polígono.xlsx 等) はそのまま出力
        return json.dumps(self.to_dict(), ensure_ascii=False)
