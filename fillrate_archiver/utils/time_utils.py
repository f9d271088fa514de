"""
Time and date helpers.

Everything in this project runs on UTC: the archive's "today" is the UTC
calendar date of the process, and every timestamp written to disk is an
ISO-8601 UTC string with a ``Z`` suffix.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Return the current UTC datetime with timezone info.

    Prefer this over ``datetime.utcnow()`` (which returns naive datetimes).
    """
    return datetime.now(tz=timezone.utc)


def utc_today(now: Optional[datetime] = None) -> date:
    """Return the UTC calendar date of ``now`` (default: the current instant)."""
    now = now or utcnow()
    if now.tzinfo is None:
        return now.date()
    return now.astimezone(timezone.utc).date()


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """Format ``moment`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC.

    Millisecond precision, matching the timestamps the published feed
    already carries in ``generated_at``.
    """
    moment = moment or utcnow()
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


def date_range(start: date, end: date, step_days: int = 1) -> list[date]:
    """Generate a list of dates from ``start`` to ``end`` (inclusive).

    Args:
        start: First date in the range.
        end: Last date in the range (inclusive).
        step_days: Step size in days (default 1).

    Returns:
        List of date objects.

    Raises:
        ValueError: If ``end < start`` or ``step_days < 1``.
    """
    if end < start:
        raise ValueError(f"end ({end}) must be >= start ({start}).")
    if step_days < 1:
        raise ValueError(f"step_days must be >= 1, got {step_days}.")

    result: list[date] = []
    current = start
    while current <= end:
        result.append(current)
        current += timedelta(days=step_days)
    return result


def forecast_dates(start: date, days: int) -> list[date]:
    """Return ``days`` consecutive dates beginning at ``start``.

    Raises:
        ValueError: If ``days < 1``.
    """
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}.")
    return date_range(start, start + timedelta(days=days - 1))
