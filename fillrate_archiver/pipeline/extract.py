"""Slice a ``CanonicalSnapshotSet`` down to one date."""

from __future__ import annotations

from fillrate_archiver.models.feed import CanonicalSnapshotSet, DailySnapshot


def snapshot_for_date(canonical: CanonicalSnapshotSet, iso_date: str) -> DailySnapshot:
    """Return the fill rate of every screen that has a value on ``iso_date``.

    Screens are visited in canonical first-seen order, so the result's
    ``values`` dict serializes in a stable order. Screens with no value for
    the date are left out, never filled with zero; an empty snapshot means
    the feed had not reported that date yet.
    """
    values: dict[str, float] = {}
    for screen in canonical.screens:
        by_date = canonical.map.get(screen, {})
        if iso_date in by_date:
            values[screen] = by_date[iso_date]
    return DailySnapshot(date=iso_date, values=values)
