"""
Published-feed client — fetch JSON from the first candidate URL that answers.

Candidates are tried strictly in order. Each attempt:
  - appends a cache-busting ``_=<epoch ms>`` query parameter,
  - sends ``Cache-Control: no-cache, no-store`` and ``Pragma: no-cache``,
  - fails on a transport error, a non-2xx status or an undecodable body.

A failed attempt is recorded and the next candidate is tried. There are no
per-candidate retries and no backoff. When every candidate fails,
``AllSourcesFailedError`` carries each URL with its failure reason, in
attempt order.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store",
    "Pragma": "no-cache",
    "Accept": "application/json",
}


class AllSourcesFailedError(RuntimeError):
    """Raised when no candidate source returned a usable JSON body.

    Attributes:
        failures: ``(url, reason)`` pairs in attempt order.
    """

    def __init__(self, failures: list[tuple[str, str]]) -> None:
        self.failures = list(failures)
        detail = " | ".join(f"{url}: {reason}" for url, reason in self.failures)
        super().__init__(f"All sources failed: {detail}")


def _cache_buster() -> str:
    return str(int(time.time() * 1000))


def _fetch_one(client: httpx.Client, url: str) -> Any:
    """Fetch and decode one candidate. Raises on any failure."""
    target = httpx.URL(url).copy_add_param("_", _cache_buster())
    resp = client.get(target, headers=NO_CACHE_HEADERS)
    if not resp.is_success:
        raise httpx.HTTPStatusError(
            f"HTTP {resp.status_code}", request=resp.request, response=resp
        )
    return resp.json()


def fetch_json_with_fallback(
    urls: list[str],
    http_client: Optional[httpx.Client] = None,
    timeout: float = 30.0,
) -> Any:
    """Return the parsed JSON body of the first candidate that succeeds.

    Args:
        urls: Candidate feed URLs in fallback order.
        http_client: Optional pre-built client (tests inject one backed by
            ``httpx.MockTransport``). A client is created and closed here
            when omitted.
        timeout: Per-request timeout in seconds for the self-built client.

    Returns:
        The decoded JSON body.

    Raises:
        AllSourcesFailedError: If every candidate failed (or ``urls`` is empty).
    """
    failures: list[tuple[str, str]] = []
    client = http_client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        for url in urls:
            try:
                body = _fetch_one(client, url)
            except httpx.HTTPStatusError as exc:
                failures.append((url, str(exc)))
            except httpx.HTTPError as exc:
                failures.append((url, f"{type(exc).__name__}: {exc}"))
            except ValueError as exc:
                failures.append((url, f"Invalid JSON: {exc}"))
            else:
                logger.info(
                    "Fetched feed from %s (attempt %d of %d)",
                    url, len(failures) + 1, len(urls),
                )
                return body
            logger.warning("Source failed: %s (%s)", url, failures[-1][1])
    finally:
        if http_client is None:
            client.close()

    raise AllSourcesFailedError(failures)
