"""
File export helpers for the archive and forecast outputs.

All functions write to disk and return the written ``Path``. Parent
directories are created when missing.

Writes go to a sibling ``*.tmp`` file which is then renamed over the
destination: the destination either holds the complete content or does not
exist at all.
"""

from __future__ import annotations

import csv
import io
import json
import os
from pathlib import Path
from typing import Any, Iterable, Sequence


def _atomic_write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()
    return path


def export_to_json(data: Any, path: Path) -> Path:
    """Write ``data`` to a pretty-printed UTF-8 JSON file.

    Non-ASCII characters (Icelandic screen names) are written as-is rather
    than as ``\\u`` escapes.

    Args:
        data: JSON-serializable object.
        path: Destination file path.

    Returns:
        ``path`` as written.
    """
    text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    return _atomic_write_text(path, text)


def render_csv(rows: Iterable[Sequence[Any]]) -> str:
    """Render rows as CSV text with ``\\n`` line endings.

    Minimal quoting: a field is quoted only when it contains a comma, a
    double quote or a line break, and embedded quotes are doubled. The
    returned text ends with a newline.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def export_to_csv(rows: Iterable[Sequence[Any]], path: Path) -> Path:
    """Write ``rows`` (header first) to a UTF-8 CSV file.

    Args:
        rows: Row sequences; the first one is the header.
        path: Destination file path.

    Returns:
        ``path`` as written.
    """
    return _atomic_write_text(path, render_csv(rows))
