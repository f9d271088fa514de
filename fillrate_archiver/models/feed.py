"""
Feed-side models: the normalized snapshot set and the per-date slice of it.

``CanonicalSnapshotSet`` is what the normalizer produces from an untrusted
feed. ``screens`` is in first-seen order across the feed's day-records, and
every consumer that needs stable output ordering iterates it rather than the
keys of ``map``.

``DailySnapshot`` is the one-date view written by the archive stage. A screen
missing from ``values`` means the feed had no value for it on that date; gaps
are never filled with zero.

Both models are frozen — a snapshot is computed once per run and never
mutated afterwards.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class CanonicalSnapshotSet(BaseModel):
    """Normalized ``{dates, screens, map}`` structure.

    Attributes:
        dates: ISO ``YYYY-MM-DD`` strings, one per valid day-record, in feed
            order. Duplicates are kept.
        screens: Distinct screen names in first-seen order.
        map: ``screen -> iso_date -> fill rate``. Last write wins for a
            repeated (screen, date) pair.
        source_generated_at: The feed's own ``generated_at``, passed through.
        rows_skipped: Rows dropped for a blank name or non-numeric value.
        days_skipped: Day-records dropped for an unparsable date.
    """

    model_config = ConfigDict(frozen=True)

    dates: list[str] = []
    screens: list[str] = []
    map: dict[str, dict[str, float]] = {}
    source_generated_at: Any = None
    rows_skipped: int = 0
    days_skipped: int = 0


class DailySnapshot(BaseModel):
    """Fill rate per screen for exactly one date, in canonical screen order."""

    model_config = ConfigDict(frozen=True)

    date: str
    values: dict[str, float] = {}

    @property
    def count(self) -> int:
        return len(self.values)

    @property
    def rows(self) -> list[tuple[str, float]]:
        return list(self.values.items())
