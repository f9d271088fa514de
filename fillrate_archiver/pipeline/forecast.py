"""
ForecastStage — build the 30-day fill-rate feed from the Broadsign API.

For each date from UTC today through ``horizon_days - 1`` days ahead, and for
each screen in the configured roster (in roster order), one fill-rate request
is made. Requests run strictly in sequence over a single vendor session.

Per-screen failures (HTTP errors, undecodable bodies) become error rows with
``fill_rate: 0`` and the loop carries on. ``AuthenticationError`` is not a
per-screen failure: it aborts the run.

Output (``forecast.output_path``, default ``public/fillrate-next30.json``)
is the feed later consumed by ``ArchiveStage``.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import httpx

from fillrate_archiver.config import AppConfig, ScreenConfig
from fillrate_archiver.ingestion.broadsign_client import BroadsignClient
from fillrate_archiver.models.forecast import ForecastDay, ForecastFeed, ForecastRow
from fillrate_archiver.models.meta import RunMetadata
from fillrate_archiver.pipeline.base import PipelineStage
from fillrate_archiver.reporting.export import export_to_json
from fillrate_archiver.utils.logging import bind_run_context
from fillrate_archiver.utils.time_utils import forecast_dates, iso_timestamp, utc_today

logger = logging.getLogger(__name__)


def fetch_forecast_day(
    client: BroadsignClient,
    iso_date: str,
    screens: list[ScreenConfig],
) -> ForecastDay:
    """Fetch every screen's fill rate for one date, in roster order."""
    rows: list[ForecastRow] = []
    for screen in screens:
        try:
            fill = client.fetch_fill_for_screen(screen.id, iso_date)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("%s %s: %s", iso_date, screen.name, exc)
            rows.append(
                ForecastRow(id=screen.id, du_name=screen.name, fill_rate=0, error=str(exc))
            )
            continue
        logger.info(
            "%s %s: %.3f (%d items)", iso_date, screen.name, fill.fill, fill.count
        )
        rows.append(
            ForecastRow(
                id=screen.id,
                du_name=screen.name,
                fill_rate=fill.fill,
                rows_seen=fill.count,
            )
        )
    return ForecastDay(date=iso_date, rows=rows)


class ForecastStage(PipelineStage):
    """Generate the forecast feed and write it to disk.

    Returns the number of forecast rows written (dates × screens).

    Args:
        config: Application config (vendor credentials, roster, output path).
        http_client: Optional ``httpx.Client`` for the vendor API.
    """

    stage_name = "forecast"

    def __init__(
        self,
        config: AppConfig,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        super().__init__(config)
        self.http_client = http_client

    def _execute(
        self,
        run: RunMetadata,
        days: Optional[int] = None,
        start: Optional[date] = None,
        output_path: Optional[str] = None,
    ) -> int:
        self.config.vendor.require_credentials()
        self.config.require_screens()

        start = start or utc_today()
        run.target_date = start.isoformat()
        bind_run_context(target_date=run.target_date)
        dates = forecast_dates(start, days or self.config.forecast.horizon_days)
        screens = list(self.config.screens)
        vendor = self.config.vendor

        result: list[ForecastDay] = []
        with BroadsignClient(
            vendor.base_url,
            vendor.email,
            vendor.password.get_secret_value(),
            fill_rate_path=vendor.fill_rate_path,
            http_client=self.http_client,
            timeout=vendor.timeout_seconds,
        ) as client:
            for day in dates:
                result.append(fetch_forecast_day(client, day.isoformat(), screens))

        feed = ForecastFeed(generated_at=iso_timestamp(), result=result)
        out_path = Path(output_path or self.config.forecast.output_path)
        export_to_json(feed.to_feed_dict(), out_path)
        logger.info("Wrote %s", out_path)

        return sum(day.count for day in result)
