"""
Forecast output models — the 30-day feed written by the forecast stage.

This is the document the archive stage later consumes as its feed, so the
shape is fixed::

    {
      "generated_at": "2024-03-01T05:00:00.000Z",
      "result": [
        {
          "date": "2024-03-01",
          "count": 42,
          "rows": [
            {"id": 237870, "du_name": "Akureyri #1", "fill_rate": 0.41, "rows_seen": 3},
            {"id": 338148, "du_name": "Akureyri #2", "fill_rate": 0, "error": "HTTP 502"}
          ]
        }
      ]
    }

A row carries either ``rows_seen`` (fetch succeeded) or ``error`` (it did not);
``to_feed_dict()`` drops whichever one is unset.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from fillrate_archiver.models.archive import FillRate


class ScreenFill(BaseModel):
    """Fill rate for one screen on one date, as derived from the vendor API.

    Attributes:
        screen_id: Broadsign display unit ID.
        fill: Sum of ``fill_pressure`` over proposal items, clamped to [0, 1].
        count: Number of proposal items the response contained.
    """

    model_config = ConfigDict(frozen=True)

    screen_id: int
    fill: float
    count: int


class ForecastRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    du_name: str
    fill_rate: FillRate
    rows_seen: Optional[int] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def validate_outcome(self) -> "ForecastRow":
        if (self.rows_seen is None) == (self.error is None):
            raise ValueError("Exactly one of rows_seen or error must be set.")
        return self


class ForecastDay(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    rows: list[ForecastRow]

    @property
    def count(self) -> int:
        return len(self.rows)


class ForecastFeed(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_at: str
    result: list[ForecastDay]

    def to_feed_dict(self) -> dict[str, Any]:
        """Serialize to the published feed shape (``count`` included per day)."""
        return {
            "generated_at": self.generated_at,
            "result": [
                {
                    "date": day.date,
                    "count": day.count,
                    "rows": [row.model_dump(exclude_none=True) for row in day.rows],
                }
                for day in self.result
            ],
        }
