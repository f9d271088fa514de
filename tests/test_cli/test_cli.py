"""
Tests for fillrate_archiver/cli.py via typer's ``CliRunner``.

Each test writes its own TOML config under ``tmp_path`` and passes it with
``--config``. Network access is replaced by monkeypatching the fetch
function the archive stage imports.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import fillrate_archiver.cli as cli_module
import fillrate_archiver.config as config_module
import fillrate_archiver.pipeline.archive as archive_module
from fillrate_archiver.cli import app

runner = CliRunner()

_ENV_VARS = (
    "SOURCE_URL_PRIMARY",
    "SOURCE_URL_FALLBACK_1",
    "SOURCE_URL_FALLBACK_2",
    "BROADSIGN_BASE",
    "BROADSIGN_EMAIL",
    "BROADSIGN_PASSWORD",
    "FILLRATE_ARCHIVE_DIR",
    "FILLRATE_FORECAST_OUTPUT",
    "FILLRATE_LOG_LEVEL",
    "FILLRATE_DEBUG",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "_find_project_root", lambda: tmp_path)
    monkeypatch.setattr(cli_module, "_configure_logging", lambda config: None)


def _write_config(tmp_path: Path, urls: list[str] | None = None) -> str:
    urls = urls if urls is not None else ["https://feeds.example.com/f.json"]
    logs_dir = (tmp_path / "logs").as_posix()
    body = (
        "[sources]\n"
        f"urls = {json.dumps(urls)}\n\n"
        "[archive]\n"
        f'logs_dir = "{logs_dir}"\n\n'
        "[[screens]]\n"
        "id = 237870\n"
        'name = "Akureyri #1"\n'
    )
    path = tmp_path / "test.toml"
    path.write_text(body, encoding="utf-8")
    return str(path)


class TestValidateConfig:
    def test_ok(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", _write_config(tmp_path)])
        assert result.exit_code == 0, result.output
        assert "[OK] Config valid." in result.output
        assert "Screens:          1" in result.output

    def test_full_masks_password(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BROADSIGN_PASSWORD", "hunter2")
        result = runner.invoke(
            app, ["validate-config", "--full", "--config", _write_config(tmp_path)]
        )
        assert result.exit_code == 0, result.output
        assert "hunter2" not in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "x.toml")])
        assert result.exit_code == 1
        assert "[ERROR]" in result.output


class TestGenerateForecast:
    def test_missing_credentials_exit_1(self, tmp_path):
        result = runner.invoke(app, ["generate-forecast", "--config", _write_config(tmp_path)])
        assert result.exit_code == 1
        assert "Missing environment variables" in result.output
        assert "BROADSIGN_PASSWORD" in result.output

    def test_dry_run(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BROADSIGN_BASE", "https://direct.example.com")
        monkeypatch.setenv("BROADSIGN_EMAIL", "ops@example.com")
        monkeypatch.setenv("BROADSIGN_PASSWORD", "hunter2")
        result = runner.invoke(
            app,
            ["generate-forecast", "--days", "3", "--dry-run", "--config", _write_config(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert "Would make 3 fill-rate requests" in result.output


class TestArchiveSnapshot:
    def test_no_source_urls_exit_1(self, tmp_path):
        result = runner.invoke(
            app, ["archive-snapshot", "--config", _write_config(tmp_path, urls=[])]
        )
        assert result.exit_code == 1
        assert "No source URLs configured" in result.output

    def test_invalid_date_exit_1(self, tmp_path):
        result = runner.invoke(
            app,
            ["archive-snapshot", "--date", "2024-02-30", "--config", _write_config(tmp_path)],
        )
        assert result.exit_code == 1
        assert "Invalid date" in result.output

    def test_archives_snapshot(self, tmp_path, monkeypatch, sample_feed):
        monkeypatch.setattr(
            archive_module, "fetch_json_with_fallback", lambda urls, **kw: sample_feed
        )
        result = runner.invoke(
            app,
            ["archive-snapshot", "--date", "2024-03-01", "--config", _write_config(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert "Screens archived: 3" in result.output
        assert "Feed rows skipped: 2" in result.output
        assert (tmp_path / "logs" / "2024" / "03" / "2024-03-01.csv").exists()

    def test_existing_snapshot_is_skipped(self, tmp_path, monkeypatch):
        def fail(urls, **kw):
            raise AssertionError("feed must not be fetched")

        monkeypatch.setattr(archive_module, "fetch_json_with_fallback", fail)
        json_path = tmp_path / "logs" / "2024" / "03" / "2024-03-01.json"
        json_path.parent.mkdir(parents=True)
        json_path.write_text("{}", encoding="utf-8")

        result = runner.invoke(
            app,
            ["archive-snapshot", "--date", "2024-03-01", "--config", _write_config(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert "already exists" in result.output

    def test_fetch_failure_exit_1(self, tmp_path, monkeypatch):
        from fillrate_archiver.ingestion.source_client import AllSourcesFailedError

        def fail(urls, **kw):
            raise AllSourcesFailedError([(urls[0], "HTTP 500")])

        monkeypatch.setattr(archive_module, "fetch_json_with_fallback", fail)
        result = runner.invoke(
            app,
            ["archive-snapshot", "--date", "2024-03-01", "--config", _write_config(tmp_path)],
        )
        assert result.exit_code == 1
        assert "All sources failed" in result.output
        assert not (tmp_path / "logs" / "2024" / "03" / "2024-03-01.json").exists()

    def test_dry_run_writes_nothing(self, tmp_path):
        result = runner.invoke(
            app,
            ["archive-snapshot", "--date", "2024-03-01", "--dry-run",
             "--config", _write_config(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert "2024-03-01.json" in result.output
        assert not (tmp_path / "logs").exists()
