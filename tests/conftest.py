"""
Shared pytest fixtures for the fill-rate archiver test suite.

Provides:
  - ``app_config``: an ``AppConfig`` with credentials, two source URLs, a
    three-screen roster and the archive rooted in ``tmp_path``.
  - ``sample_feed``: a small feed in the published ``{result: [...]}`` shape.
  - ``mock_client``: factory for ``httpx.Client`` objects backed by
    ``httpx.MockTransport`` so no test touches the network.
"""

from __future__ import annotations

from typing import Callable, Iterator

import httpx
import pytest

from fillrate_archiver.config import (
    AppConfig,
    ArchiveConfig,
    ForecastConfig,
    ScreenConfig,
    SourcesConfig,
    VendorConfig,
)

PRIMARY_URL = "https://feeds.example.com/fillrate-next30.json"
FALLBACK_URL = "https://mirror.example.com/fillrate-next30.json"
VENDOR_BASE = "https://direct.example.com"


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """A fully populated config whose outputs all land under ``tmp_path``."""
    return AppConfig(
        sources=SourcesConfig(urls=[PRIMARY_URL, FALLBACK_URL]),
        vendor=VendorConfig(
            base_url=VENDOR_BASE,
            email="ops@example.com",
            password="hunter2",
        ),
        screens=[
            ScreenConfig(id=237870, name="Akureyri #1"),
            ScreenConfig(id=404813, name="Austurstræti"),
            ScreenConfig(id=235466, name="Höfðabakki #1"),
        ],
        forecast=ForecastConfig(
            output_path=str(tmp_path / "public" / "fillrate-next30.json"),
            horizon_days=2,
        ),
        archive=ArchiveConfig(logs_dir=str(tmp_path / "logs")),
    )


@pytest.fixture
def sample_feed() -> dict:
    """Two days, three screens, one bad value and one blank name."""
    return {
        "generated_at": "2024-03-01T05:00:00.000Z",
        "result": [
            {
                "date": "2024-03-01",
                "count": 3,
                "rows": [
                    {"id": 1, "du_name": "Zeta", "fill_rate": 0.5, "rows_seen": 2},
                    {"id": 2, "du_name": "Alpha", "fill_rate": 0.2, "rows_seen": 1},
                    {"id": 3, "du_name": "Miðbær", "fill_rate": 0.9, "rows_seen": 4},
                ],
            },
            {
                "date": "2024-03-02",
                "count": 3,
                "rows": [
                    {"id": 1, "du_name": "Zeta", "fill_rate": "bad"},
                    {"id": 2, "du_name": "  ", "fill_rate": 0.3},
                    {"id": 3, "du_name": "Miðbær", "fill_rate": 1},
                ],
            },
        ],
    }


@pytest.fixture
def mock_client() -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], httpx.Client]]:
    """Return a factory building an ``httpx.Client`` around a request handler."""
    clients: list[httpx.Client] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()
