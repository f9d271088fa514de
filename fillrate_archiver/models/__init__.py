"""
Pydantic models shared across ingestion, pipeline and archive code.

Submodules:
  feed      — CanonicalSnapshotSet, DailySnapshot
  archive   — ArchiveRecord (on-disk JSON artifact)
  forecast  — ScreenFill, ForecastFeed (vendor fetch output)
  meta      — RunMetadata (run audit record)
"""
