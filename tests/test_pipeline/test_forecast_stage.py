"""
Tests for fillrate_archiver/pipeline/forecast.py — ForecastStage.

The vendor API is simulated with ``httpx.MockTransport``. The ``app_config``
fixture has three screens and ``horizon_days=2``.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import httpx
import pytest

from fillrate_archiver.config import ConfigurationError, VendorConfig
from fillrate_archiver.ingestion.broadsign_client import AuthenticationError
from fillrate_archiver.pipeline.forecast import ForecastStage
from fillrate_archiver.pipeline.normalize import normalize_feed

START = date(2024, 3, 1)
SESSION = [("set-cookie", "session=ok; Path=/")]


def _vendor(fills: dict[int, float], failing: frozenset = frozenset(), calls=None):
    """Handler answering each screen with ``fills[id]`` split over two items."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/login":
            return httpx.Response(200, headers=SESSION)
        body = json.loads(request.content)
        screen_id = body["screen_ids"][0]
        if calls is not None:
            calls.append((body["start_date"], screen_id))
        if screen_id in failing:
            return httpx.Response(502, text="bad gateway")
        half = fills[screen_id] / 2
        items = [{"fill_pressure": half}, {"fill_pressure": half}]
        return httpx.Response(200, json={"data": {"proposal_items": items}})

    return handler


FILLS = {237870: 0.5, 404813: 0.25, 235466: 1.5}


class TestForecastStage:
    def test_requests_in_date_then_roster_order(self, app_config, mock_client):
        calls: list[tuple[str, int]] = []
        client = mock_client(_vendor(FILLS, calls=calls))

        run = ForecastStage(app_config, http_client=client).run(start=START)

        assert run.status == "success"
        assert run.rows_processed == 6
        assert calls == [
            ("2024-03-01", 237870),
            ("2024-03-01", 404813),
            ("2024-03-01", 235466),
            ("2024-03-02", 237870),
            ("2024-03-02", 404813),
            ("2024-03-02", 235466),
        ]

    def test_output_feed_shape(self, app_config, mock_client):
        client = mock_client(_vendor(FILLS))
        ForecastStage(app_config, http_client=client).run(start=START)

        feed = json.loads(Path(app_config.forecast.output_path).read_text(encoding="utf-8"))
        assert feed["generated_at"].endswith("Z")
        assert [day["date"] for day in feed["result"]] == ["2024-03-01", "2024-03-02"]
        day = feed["result"][0]
        assert day["count"] == 3
        assert day["rows"][0] == {
            "id": 237870,
            "du_name": "Akureyri #1",
            "fill_rate": 0.5,
            "rows_seen": 2,
        }
        # 0.75 + 0.75 is clamped
        assert day["rows"][2]["fill_rate"] == 1
        assert isinstance(day["rows"][2]["fill_rate"], int)

    def test_screen_failure_becomes_error_row(self, app_config, mock_client):
        client = mock_client(_vendor(FILLS, failing=frozenset({404813})))

        run = ForecastStage(app_config, http_client=client).run(start=START, days=1)

        assert run.status == "success"
        feed = json.loads(Path(app_config.forecast.output_path).read_text(encoding="utf-8"))
        rows = feed["result"][0]["rows"]
        assert [r["id"] for r in rows] == [237870, 404813, 235466]
        failed = rows[1]
        assert failed["fill_rate"] == 0
        assert isinstance(failed["fill_rate"], int)
        assert "502" in failed["error"]
        assert "rows_seen" not in failed
        assert "error" not in rows[0]

    def test_days_and_output_overrides(self, app_config, mock_client, tmp_path):
        out = tmp_path / "custom" / "feed.json"
        client = mock_client(_vendor(FILLS))

        run = ForecastStage(app_config, http_client=client).run(
            start=START, days=3, output_path=str(out)
        )

        assert run.rows_processed == 9
        feed = json.loads(out.read_text(encoding="utf-8"))
        assert len(feed["result"]) == 3
        assert not Path(app_config.forecast.output_path).exists()

    def test_output_is_archive_input(self, app_config, mock_client):
        ForecastStage(app_config, http_client=mock_client(_vendor(FILLS))).run(start=START)

        raw = json.loads(Path(app_config.forecast.output_path).read_text(encoding="utf-8"))
        canonical = normalize_feed(raw)
        assert canonical.screens == ["Akureyri #1", "Austurstræti", "Höfðabakki #1"]
        assert canonical.map["Austurstræti"]["2024-03-02"] == 0.25


class TestForecastStageFailures:
    def test_repeated_401_aborts_run(self, app_config, mock_client):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/login":
                return httpx.Response(200, headers=SESSION)
            return httpx.Response(401)

        with pytest.raises(AuthenticationError):
            ForecastStage(app_config, http_client=mock_client(handler)).run(start=START)
        assert not Path(app_config.forecast.output_path).exists()

    def test_missing_credentials_fail_before_any_request(self, app_config, mock_client):
        config = app_config.model_copy(update={"vendor": VendorConfig()})

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(ConfigurationError, match="BROADSIGN_EMAIL"):
            ForecastStage(config, http_client=mock_client(handler)).run(start=START)

    def test_empty_roster_fails(self, app_config, mock_client):
        config = app_config.model_copy(update={"screens": []})

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(ConfigurationError):
            ForecastStage(config, http_client=mock_client(handler)).run(start=START)
