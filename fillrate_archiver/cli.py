"""
Fill-rate archiver — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate configuration (missing credentials fail here, before any request).
  4. Run the pipeline stage.
  5. Report result to stdout; any failure exits with code 1.

Install and run::

    pip install -e .
    fillrate-archiver --help
    fillrate-archiver validate-config
    fillrate-archiver generate-forecast
    fillrate-archiver archive-snapshot
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="fillrate-archiver",
    help="Digital-signage fill-rate forecast generator and daily archiver.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from fillrate_archiver.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from fillrate_archiver.utils.logging import configure_logging
    configure_logging(config.logging)


def _parse_date_or_exit(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        typer.echo(f"[ERROR] Invalid date '{value}'. Expected YYYY-MM-DD.", err=True)
        raise typer.Exit(code=1)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields (password masked).",
    ),
) -> None:
    """Validate the configuration and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Source URLs:      {len(config.sources.urls)} configured")
    typer.echo(f"  Vendor base URL:  {config.vendor.base_url or '(not set)'}")
    typer.echo(f"  Screens:          {len(config.screens)}")
    typer.echo(f"  Forecast output:  {config.forecast.output_path}")
    typer.echo(f"  Forecast days:    {config.forecast.horizon_days}")
    typer.echo(f"  Archive dir:      {config.archive.logs_dir}")
    typer.echo(f"  Log level:        {config.logging.level}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(mode="json"), indent=2, ensure_ascii=False))

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("generate-forecast")
def generate_forecast(
    days: Optional[int] = typer.Option(
        None,
        "--days",
        min=1,
        help="Number of days to forecast, starting today (UTC). Default from config.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output JSON path (default: config forecast.output_path).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate config and print what would run without calling the API.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Fetch per-screen fill rates from Broadsign and write the forecast feed.

    \b
    Credential setup (.env, gitignored):
      BROADSIGN_BASE=...
      BROADSIGN_EMAIL=...
      BROADSIGN_PASSWORD=...
    """
    from fillrate_archiver.config import ConfigurationError
    from fillrate_archiver.pipeline.forecast import ForecastStage

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        config.vendor.require_credentials()
        config.require_screens()
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    n_days = days or config.forecast.horizon_days
    out_path = output or config.forecast.output_path
    typer.echo(
        f"generate-forecast | days={n_days} | screens={len(config.screens)} | output={out_path}"
    )

    if dry_run:
        typer.echo(f"[DRY RUN] Would make {n_days * len(config.screens)} fill-rate requests.")
        return

    try:
        run = ForecastStage(config).run(days=n_days, output_path=out_path)
    except Exception as exc:
        typer.echo(f"[ERROR] Forecast generation failed: {exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Rows written: {run.rows_processed}")
    typer.echo(f"[OK] Wrote {out_path}")


@app.command("archive-snapshot")
def archive_snapshot(
    target_date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date to archive (YYYY-MM-DD). Default: today (UTC).",
    ),
    logs_dir: Optional[str] = typer.Option(
        None,
        "--logs-dir",
        help="Archive root directory (default: config archive.logs_dir).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Print the target paths without fetching or writing.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Archive the day's fill-rate snapshot as JSON + CSV.

    Safe to run repeatedly: if the day's JSON already exists nothing is
    fetched or written and the command exits 0.

    \b
    Source setup (.env, gitignored):
      SOURCE_URL_PRIMARY=...
      SOURCE_URL_FALLBACK_1=...   (optional)
      SOURCE_URL_FALLBACK_2=...   (optional)
    """
    from fillrate_archiver.archive.writer import build_archive_paths
    from fillrate_archiver.config import ConfigurationError
    from fillrate_archiver.pipeline.archive import ArchiveStage
    from fillrate_archiver.utils.time_utils import utc_today

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    day = _parse_date_or_exit(target_date)

    try:
        config.sources.require_urls()
    except ConfigurationError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    root = logs_dir or config.archive.logs_dir
    paths = build_archive_paths(root, day or utc_today())
    typer.echo(f"archive-snapshot | json={paths.json_path} | csv={paths.csv_path}")

    if dry_run:
        typer.echo(f"[DRY RUN] Would try {len(config.sources.urls)} source URL(s).")
        return

    try:
        run = ArchiveStage(config, logs_dir=root).run(target_date=day)
    except Exception as exc:
        typer.echo(f"[ERROR] Archival failed: {exc}", err=True)
        raise typer.Exit(code=1)

    if run.status == "skipped":
        typer.echo(f"[OK] Snapshot already exists: {paths.json_path}")
        return

    typer.echo(f"  Screens archived: {run.rows_processed}")
    if run.rows_skipped:
        typer.echo(f"  Feed rows skipped: {run.rows_skipped}")
    typer.echo("[OK] Snapshot archived.")


if __name__ == "__main__":
    app()
