from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path

"""Export of generated scripts.

"Download" in this tool means writing one in-memory string to a .sql file in
the output directory. File names carry the script kind, an optional label
(circuit) and the date.
"""

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w.-]+")


def script_filename(kind: str, label: str | None = None, when: date | None = None) -> str:
    """``<kind>[_<label>]_<YYYY-MM-DD>.sql`` with unsafe characters replaced."""
    stamp = (when or date.today()).isoformat()
    parts = [kind]
    if label:
        parts.append(_UNSAFE_CHARS.sub("_", label.strip()).strip("_") or "CIRCUIT")
    parts.append(stamp)
    return "_".join(parts) + ".sql"


def write_script(text: str, directory: Path, filename: str) -> Path:
    """Write ``text`` to ``directory/filename`` (directory created if needed)."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / filename
    path.write_text(text, encoding="utf-8")
    logger.info("wrote %s (%d bytes)", path, len(text.encode("utf-8")))
    return path
