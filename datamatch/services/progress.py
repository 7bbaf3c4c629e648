from __future__ import annotations

import sys
from pathlib import PurePath

from tqdm import tqdm

"""Per-file progress bar for SQL batches (terminal only).

When stdout is redirected (CI, ``> run.log``) no bar is created and every
method is a no-op, so the labeled log lines stay free of control sequences.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


def _make_bar(total: int, description: str) -> tqdm:
    return tqdm(total=total, desc=description, unit="file", leave=True, ncols=80, ascii=True)


class ProgressTracker:
    def __init__(self, total_files: int, *, description: str = "Reading files") -> None:
        self.description = description
        self.position = 0  # 1-based index of the file being read
        self.pbar: tqdm | None = _make_bar(total_files, description) if is_tty_enabled() else None

    @property
    def enabled(self) -> bool:
        return self.pbar is not None

    def start_file(self, file_path: PurePath) -> None:
        self.position += 1
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, **counters: int) -> None:
        """Advance the bar; ``counters`` (processed=, skipped=, ...) are shown after it."""
        if self.pbar is None:
            return
        self.pbar.update(1)
        self.pbar.set_description(self.description)
        if counters:
            self.pbar.set_postfix(counters)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
