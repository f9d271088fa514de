"""
Feed normalization — reshape an untrusted feed into a ``CanonicalSnapshotSet``.

Expected envelope::

    {"generated_at": "...", "result": [{"date": "2024-03-01",
                                        "rows": [{"du_name": "A", "fill_rate": 0.5}, ...]}]}

Only the envelope is validated strictly: a missing or non-list ``result``
raises ``FeedShapeError`` and nothing is normalized. Below that, malformed
input is filtered rather than rejected:

  - a day-record whose ``date`` does not parse is skipped entirely (no date
    entry, no screens), counted in ``days_skipped``;
  - a row with a blank ``du_name`` is skipped, counted in ``rows_skipped``;
  - a row whose ``fill_rate`` is not a finite number is skipped, counted in
    ``rows_skipped``; its screen name is still recorded in ``screens``.

Repeated (screen, date) pairs are last-write-wins.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, timezone
from typing import Any, Optional

from fillrate_archiver.models.feed import CanonicalSnapshotSet

logger = logging.getLogger(__name__)

SCREEN_FIELD = "du_name"
VALUE_FIELD = "fill_rate"


class FeedShapeError(ValueError):
    """Raised when the feed is not a ``{"result": [...]}`` object."""


def parse_feed_date(value: Any) -> Optional[date]:
    """Parse a day-record's ``date`` into a UTC calendar date.

    Accepts ``date``/``datetime`` objects and ISO-8601 strings (plain dates or
    datetimes, ``Z`` suffix allowed). Aware datetimes are converted to UTC;
    naive ones are taken as UTC.

    Returns:
        The calendar date, or ``None`` if the value is not a parseable date.
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def parse_screen_name(value: Any) -> str:
    """Trimmed string form of the identifier; ``""`` for missing values."""
    if value is None:
        return ""
    return str(value).strip()


def parse_fill_value(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` if it is not one.

    Numbers and numeric strings are accepted. Booleans, ``None``, blank
    strings, NaN and infinities are rejected.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def normalize_feed(raw: Any) -> CanonicalSnapshotSet:
    """Normalize a raw feed into the canonical ``{dates, screens, map}`` form.

    Args:
        raw: Decoded feed JSON.

    Returns:
        ``CanonicalSnapshotSet`` with skip counters filled in.

    Raises:
        FeedShapeError: If ``raw`` has no list under ``result``.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("result"), list):
        raise FeedShapeError("Unsupported JSON shape, expected {result:[...]}")

    dates: list[str] = []
    screens: list[str] = []
    seen: set[str] = set()
    values: dict[str, dict[str, float]] = {}
    rows_skipped = 0
    days_skipped = 0

    for day in raw["result"]:
        parsed = parse_feed_date(day.get("date")) if isinstance(day, dict) else None
        if parsed is None:
            days_skipped += 1
            continue
        iso = parsed.isoformat()
        dates.append(iso)

        rows = day.get("rows")
        if not isinstance(rows, list):
            continue

        for rec in rows:
            if not isinstance(rec, dict):
                rows_skipped += 1
                continue
            name = parse_screen_name(rec.get(SCREEN_FIELD))
            if not name:
                rows_skipped += 1
                continue
            if name not in seen:
                seen.add(name)
                screens.append(name)
            value = parse_fill_value(rec.get(VALUE_FIELD))
            if value is None:
                rows_skipped += 1
                continue
            values.setdefault(name, {})[iso] = value

    if rows_skipped or days_skipped:
        logger.info(
            "Normalized feed | days=%d screens=%d | skipped rows=%d days=%d",
            len(dates), len(screens), rows_skipped, days_skipped,
        )

    return CanonicalSnapshotSet(
        dates=dates,
        screens=screens,
        map=values,
        source_generated_at=raw.get("generated_at"),
        rows_skipped=rows_skipped,
        days_skipped=days_skipped,
    )
