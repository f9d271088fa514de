"""
Archive artifact model — the JSON record written to ``logs/YYYY/MM/YYYY-MM-DD.json``.

Field names are the on-disk contract read by downstream analytics, so they
stay snake_case and match the published JSON exactly::

    {
      "date": "2024-03-01",
      "generated_at": "2024-03-01T05:00:00.000Z",
      "count": 1,
      "rows": [{"screen": "A", "fill_rate": 0.5}],
      "meta": {
        "note": "Values are 0..1 fill rates; >=0.934 considered 'sold out' by UI.",
        "source_urls": ["https://..."],
        "archived_at_utc": "2024-03-01T23:50:00.000Z"
      }
    }
"""

from __future__ import annotations

from typing import Annotated, Any, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator


def compact_number(value: Union[int, float]) -> Union[int, float]:
    """Integral values as ``int`` so they serialize as ``1`` rather than ``1.0``."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


FillRate = Annotated[Union[int, float], AfterValidator(compact_number)]


class ArchiveRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    screen: str
    fill_rate: FillRate


class ArchiveMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    note: str
    source_urls: list[str]
    archived_at_utc: str


class ArchiveRecord(BaseModel):
    """One day's archived snapshot.

    ``rows`` keeps the canonical first-seen screen order of the feed.
    """

    model_config = ConfigDict(frozen=True)

    date: str
    generated_at: Any = None
    count: int
    rows: list[ArchiveRow]
    meta: ArchiveMeta

    @model_validator(mode="after")
    def validate_count(self) -> "ArchiveRecord":
        if self.count != len(self.rows):
            raise ValueError(
                f"count ({self.count}) must equal the number of rows ({len(self.rows)})."
            )
        return self
