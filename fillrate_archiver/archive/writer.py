"""
Daily archive persistence — one JSON record and one CSV per UTC date.

File layout::

    logs/
      2024/
        03/
          2024-03-01.json   (ArchiveRecord, rows in feed first-seen order)
          2024-03-01.csv    (date,screen,fill_rate; rows in Icelandic collation)

The two artifacts order rows differently: the JSON keeps the feed's screen
order, the CSV is sorted by Icelandic collation.

Write order is JSON first, then CSV. The JSON file's existence is the
"already archived" marker checked by ``ArchiveStage``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any

from fillrate_archiver.archive.collation import icelandic_sort_key
from fillrate_archiver.models.archive import (
    ArchiveMeta,
    ArchiveRecord,
    ArchiveRow,
    compact_number,
)
from fillrate_archiver.models.feed import DailySnapshot
from fillrate_archiver.reporting.export import export_to_csv, export_to_json

logger = logging.getLogger(__name__)

CSV_HEADER = ("date", "screen", "fill_rate")
DEFAULT_SOLD_OUT_THRESHOLD = 0.934


@dataclass(frozen=True)
class ArchivePaths:
    json_path: Path
    csv_path: Path

    def exists(self) -> bool:
        """True when the day is already archived (the JSON artifact exists)."""
        return self.json_path.exists()


def build_archive_paths(logs_dir: str | Path, day: date) -> ArchivePaths:
    """Build ``<logs_dir>/YYYY/MM/YYYY-MM-DD.{json,csv}`` for ``day``.

    Example::

        build_archive_paths("logs", date(2024, 3, 1)).json_path
        # → Path("logs/2024/03/2024-03-01.json")
    """
    out_dir = Path(logs_dir) / f"{day.year:04d}" / f"{day.month:02d}"
    stem = day.isoformat()
    return ArchivePaths(
        json_path=out_dir / f"{stem}.json",
        csv_path=out_dir / f"{stem}.csv",
    )


def sold_out_note(threshold: float = DEFAULT_SOLD_OUT_THRESHOLD) -> str:
    return f"Values are 0..1 fill rates; >={threshold:g} considered 'sold out' by UI."


def build_archive_record(
    snapshot: DailySnapshot,
    generated_at: Any,
    source_urls: list[str],
    archived_at: str,
    sold_out_threshold: float = DEFAULT_SOLD_OUT_THRESHOLD,
) -> ArchiveRecord:
    """Assemble the JSON record for one day's snapshot.

    Args:
        snapshot: The day's values in canonical screen order.
        generated_at: The feed's ``generated_at``, passed through unchanged.
        source_urls: Every configured source URL, in fallback order.
        archived_at: ISO timestamp of this archive run.
        sold_out_threshold: Fill rate at or above which the UI shows "sold out".
    """
    rows = [ArchiveRow(screen=screen, fill_rate=value) for screen, value in snapshot.rows]
    return ArchiveRecord(
        date=snapshot.date,
        generated_at=generated_at,
        count=len(rows),
        rows=rows,
        meta=ArchiveMeta(
            note=sold_out_note(sold_out_threshold),
            source_urls=list(source_urls),
            archived_at_utc=archived_at,
        ),
    )


def format_fill_rate(value: float) -> str:
    """Shortest text for a fill rate: ``0.5``, ``1`` (not ``1.0``), ``0.1234``."""
    return repr(compact_number(float(value)))


def build_csv_rows(snapshot: DailySnapshot) -> list[tuple[str, str, str]]:
    """Header plus one ``(date, screen, fill_rate)`` row per screen.

    Rows are sorted with Icelandic collation, not the snapshot's canonical
    order.
    """
    rows: list[tuple[str, str, str]] = [CSV_HEADER]
    for screen in sorted(snapshot.values, key=icelandic_sort_key):
        rows.append((snapshot.date, screen, format_fill_rate(snapshot.values[screen])))
    return rows


def write_archive(
    paths: ArchivePaths,
    record: ArchiveRecord,
    csv_rows: list[tuple[str, str, str]],
) -> ArchivePaths:
    """Write the JSON record, then the CSV.

    The CSV write does not start until the JSON file is fully in place.

    Raises:
        OSError: On directory creation or write failure.
    """
    export_to_json(record.model_dump(mode="json"), paths.json_path)
    logger.info("Wrote %s", paths.json_path)

    export_to_csv(csv_rows, paths.csv_path)
    logger.info("Wrote %s", paths.csv_path)
    return paths
