"""
Run metadata — the audit record of one pipeline execution.

``RunMetadata`` is the only model in the system that is NOT frozen: its
``status``, ``rows_processed``, ``rows_skipped``, ``error_message`` and
``finished_at`` fields are updated as the stage executes.

``config_snapshot`` stores the ``AppConfig`` used for the run. The vendor
password is a ``SecretStr`` and is dumped masked.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

VALID_PIPELINE_STAGES = frozenset({"forecast", "archive"})
VALID_RUN_STATUSES = frozenset({"started", "success", "failed", "skipped"})


class RunMetadata(BaseModel):
    """Pipeline execution audit record.

    Attributes:
        run_slug: UUID4 string uniquely identifying this run.
        pipeline_stage: Which stage produced this run record.
        status: ``started`` until the stage finishes, then ``success``,
            ``skipped`` (idempotent no-op) or ``failed``.
        target_date: ISO date the run was about, if any.
        config_snapshot: ``AppConfig.model_dump()`` at run start time.
        rows_processed: Records written (screens archived, forecast rows).
        rows_skipped: Feed rows or day-records dropped during normalization.
        error_message: Error description if ``status == "failed"``.
        started_at: UTC datetime when the run began.
        finished_at: UTC datetime when the run completed or failed.
    """

    model_config = ConfigDict(frozen=False)

    run_slug: str
    pipeline_stage: str
    status: str = "started"
    target_date: Optional[str] = None
    config_snapshot: dict[str, Any]
    rows_processed: int = 0
    rows_skipped: int = 0
    error_message: Optional[str] = None
    started_at: datetime
    finished_at: Optional[datetime] = None

    @field_validator("pipeline_stage")
    @classmethod
    def validate_pipeline_stage(cls, v: str) -> str:
        if v not in VALID_PIPELINE_STAGES:
            raise ValueError(
                f"Unknown pipeline_stage '{v}'. Must be one of {sorted(VALID_PIPELINE_STAGES)}."
            )
        return v

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in VALID_RUN_STATUSES:
            raise ValueError(
                f"Unknown status '{v}'. Must be one of {sorted(VALID_RUN_STATUSES)}."
            )
        return v
