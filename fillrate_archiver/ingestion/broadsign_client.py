"""
Broadsign Direct reporting API client — cookie session with one re-login.

Credential setup (.env, gitignored):
  BROADSIGN_BASE=https://direct.broadsign.com
  BROADSIGN_EMAIL=ops@example.com
  BROADSIGN_PASSWORD=...

Session lifecycle::

    UNAUTHENTICATED --login()--> AUTHENTICATED --401--> EXPIRED --login()--> AUTHENTICATED

  - ``login()`` posts the form-encoded credentials to ``{base}/login`` and keeps
    the ``session=...`` cookie from ``Set-Cookie``.
  - A request answered with 401 expires the session, logs in again and is
    retried exactly once. A second consecutive 401 raises
    ``AuthenticationError``; it is never retried again.

Fill-rate endpoint::

    POST /api/v1/reporting/fill_rate_breakdown
      {"start_date": "2024-03-01", "end_date": "2024-03-01",
       "start_time": "00:00:00", "end_time": "23:59:59",
       "time_interval": "day", "inventory_type": "digital",
       "screen_ids": [237870]}
    → {"data": {"proposal_items": [{"fill_pressure": 0.12, ...}, ...]}}
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Optional

import httpx

from fillrate_archiver.models.forecast import ScreenFill

logger = logging.getLogger(__name__)


class AuthenticationError(RuntimeError):
    """Login failed, or the API kept answering 401 after a fresh login."""


class SessionState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


@dataclass
class VendorSession:
    """The one piece of mutable state shared by every request in a run."""

    state: SessionState = SessionState.UNAUTHENTICATED
    cookie: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    def authenticate(self, cookie: str) -> None:
        self.cookie = cookie
        self.state = SessionState.AUTHENTICATED

    def expire(self) -> None:
        self.cookie = None
        self.state = SessionState.EXPIRED


def build_fill_rate_payload(date: str, screen_id: int) -> dict[str, Any]:
    """Request body for one screen over one whole day."""
    return {
        "start_date": date,
        "end_date": date,
        "start_time": "00:00:00",
        "end_time": "23:59:59",
        "time_interval": "day",
        "inventory_type": "digital",
        "screen_ids": [screen_id],
    }


def extract_proposal_items(resp: Any) -> list[Any]:
    """Return ``data.proposal_items`` or top-level ``proposal_items``, else ``[]``."""
    if not isinstance(resp, dict):
        return []
    data = resp.get("data")
    if isinstance(data, dict) and isinstance(data.get("proposal_items"), list):
        return data["proposal_items"]
    if isinstance(resp.get("proposal_items"), list):
        return resp["proposal_items"]
    return []


def _pressure(item: Any) -> float:
    """``fill_pressure`` as a float; anything non-numeric counts as 0."""
    value = item.get("fill_pressure") if isinstance(item, dict) else None
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def compute_fill(items: list[Any]) -> float:
    """Sum of item fill pressures, clamped to ``[0, 1]``."""
    return min(1.0, max(0.0, sum(_pressure(item) for item in items)))


def _session_cookie(resp: httpx.Response) -> Optional[str]:
    for header in resp.headers.get_list("set-cookie"):
        pair = header.split(";", 1)[0].strip()
        if pair.lower().startswith("session="):
            return pair
    return None


class BroadsignClient:
    """Client for the Broadsign Direct reporting API.

    Usage::

        with BroadsignClient(base_url, email, password) as client:
            fill = client.fetch_fill_for_screen(237870, "2024-03-01")

    Args:
        base_url: API root, e.g. ``https://direct.broadsign.com``.
        email: Account e-mail used for ``/login``.
        password: Account password used for ``/login``.
        fill_rate_path: Path of the fill-rate breakdown endpoint.
        http_client: Optional pre-built ``httpx.Client`` (tests inject one
            backed by ``httpx.MockTransport``). Closed by ``close()`` only
            when this instance created it.
        timeout: Per-request timeout in seconds for the self-built client.
    """

    def __init__(
        self,
        base_url: str,
        email: str,
        password: str,
        fill_rate_path: str = "/api/v1/reporting/fill_rate_breakdown",
        http_client: Optional[httpx.Client] = None,
        timeout: float = 60.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.email = email
        self.password = password
        self.fill_rate_path = fill_rate_path
        self.session = VendorSession()
        self._owns_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)

    def __enter__(self) -> "BroadsignClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._http.close()

    # ── Session management ─────────────────────────────────────────────────────

    def login(self) -> None:
        """Authenticate and store the session cookie.

        Raises:
            AuthenticationError: If the response carries no ``session`` cookie.
        """
        resp = self._http.post(
            f"{self.base_url}/login",
            data={"email": self.email, "password": self.password},
        )
        cookie = _session_cookie(resp)
        if cookie is None:
            raise AuthenticationError(f"Login failed ({resp.status_code})")
        self.session.authenticate(cookie)
        logger.info("Logged in to Broadsign at %s", self.base_url)

    def _send(self, path: str, payload: dict[str, Any]) -> httpx.Response:
        return self._http.post(
            f"{self.base_url}{path}",
            json=payload,
            headers={"Cookie": self.session.cookie or ""},
        )

    def post_json(self, path: str, payload: dict[str, Any]) -> Any:
        """POST ``payload`` as JSON and return the decoded response body.

        Raises:
            AuthenticationError: On login failure or a second consecutive 401.
            httpx.HTTPStatusError: On any other non-2xx response.
        """
        if not self.session.is_authenticated:
            self.login()

        resp = self._send(path, payload)
        if resp.status_code == 401:
            logger.warning("Session expired on %s; logging in again", path)
            self.session.expire()
            self.login()
            resp = self._send(path, payload)
            if resp.status_code == 401:
                self.session.expire()
                raise AuthenticationError(
                    f"Unauthorized on {path} after re-login; giving up."
                )

        resp.raise_for_status()
        return resp.json()

    # ── Reporting ──────────────────────────────────────────────────────────────

    def fetch_fill_for_screen(self, screen_id: int, date: str) -> ScreenFill:
        """Fetch the day's fill rate for one screen.

        Args:
            screen_id: Broadsign display unit ID.
            date: ISO date string.

        Returns:
            ``ScreenFill`` with the clamped fill and the proposal item count.
        """
        resp = self.post_json(self.fill_rate_path, build_fill_rate_payload(date, screen_id))
        items = extract_proposal_items(resp)
        return ScreenFill(screen_id=screen_id, fill=compute_fill(items), count=len(items))
