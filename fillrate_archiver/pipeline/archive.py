"""
ArchiveStage — write today's fill-rate snapshot to ``logs/YYYY/MM/``.

Steps:
  1. Check    — if ``YYYY-MM-DD.json`` already exists, finish with status
                ``skipped`` without touching either artifact.
  2. Fetch    — published feed via the source fallback chain, normalize it
                and slice it to the target date.
  3. Write    — JSON record, then CSV.

"Today" is the process's UTC calendar date. When the feed has no values for
that date yet, an empty snapshot (``count: 0``) is still written so the gap
shows up in the archive.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

import httpx

from fillrate_archiver.archive.writer import (
    build_archive_paths,
    build_archive_record,
    build_csv_rows,
    write_archive,
)
from fillrate_archiver.config import AppConfig
from fillrate_archiver.ingestion.source_client import fetch_json_with_fallback
from fillrate_archiver.models.meta import RunMetadata
from fillrate_archiver.pipeline.base import PipelineStage
from fillrate_archiver.pipeline.extract import snapshot_for_date
from fillrate_archiver.pipeline.normalize import normalize_feed
from fillrate_archiver.utils.logging import bind_run_context
from fillrate_archiver.utils.time_utils import iso_timestamp, utc_today

logger = logging.getLogger(__name__)


class ArchiveStage(PipelineStage):
    """Archive one day's snapshot, at most once per date.

    Returns the number of screens written (0 when skipped).

    Args:
        config: Application config (source URLs, logs dir, threshold).
        http_client: Optional ``httpx.Client`` for the feed fetch.
        logs_dir: Overrides ``config.archive.logs_dir``.
    """

    stage_name = "archive"

    def __init__(
        self,
        config: AppConfig,
        http_client: Optional[httpx.Client] = None,
        logs_dir: Optional[str] = None,
    ) -> None:
        super().__init__(config)
        self.http_client = http_client
        self.logs_dir = logs_dir or config.archive.logs_dir

    def _execute(self, run: RunMetadata, target_date: Optional[date] = None) -> int:
        day = target_date or utc_today()
        iso = day.isoformat()
        run.target_date = iso
        bind_run_context(target_date=iso)

        paths = build_archive_paths(self.logs_dir, day)
        if paths.exists():
            logger.info("Snapshot already exists: %s", paths.json_path)
            run.status = "skipped"
            return 0

        urls = list(self.config.sources.urls)
        raw = fetch_json_with_fallback(
            urls,
            http_client=self.http_client,
            timeout=self.config.sources.timeout_seconds,
        )
        canonical = normalize_feed(raw)
        run.rows_skipped = canonical.rows_skipped + canonical.days_skipped

        snapshot = snapshot_for_date(canonical, iso)
        if snapshot.count == 0:
            logger.warning(
                "Feed has no fill-rate values for %s (feed dates: %s); "
                "archiving an empty snapshot",
                iso, ", ".join(canonical.dates[:3]) or "none",
            )

        record = build_archive_record(
            snapshot,
            generated_at=canonical.source_generated_at,
            source_urls=urls,
            archived_at=iso_timestamp(),
            sold_out_threshold=self.config.archive.sold_out_threshold,
        )
        write_archive(paths, record, build_csv_rows(snapshot))
        return snapshot.count
