"""
Abstract base class for the pipeline stages.

Every stage follows the same contract:
  1. Receive ``AppConfig`` at construction.
  2. ``run(**kwargs)`` is the sole public API.
  3. ``run()`` creates a ``RunMetadata`` record, calls ``_execute()``,
     and finalizes the record with its status.
  4. ``_execute()`` is the stage-specific implementation (overridden by subclasses).

Status transitions::

    started → success    (_execute returned normally)
    started → skipped    (_execute set it, e.g. the day is already archived)
    started → failed     (_execute raised; the exception is re-raised)

Stages never swallow exceptions; the CLI turns them into exit code 1.

Usage::

    class MyStage(PipelineStage):
        stage_name = "archive"

        def _execute(self, run: RunMetadata, **kwargs) -> int:
            return 42

    run = MyStage(config=app_config).run()
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from uuid import uuid4

from fillrate_archiver.config import AppConfig
from fillrate_archiver.models.meta import RunMetadata
from fillrate_archiver.utils.logging import run_context
from fillrate_archiver.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class PipelineStage(ABC):
    """Abstract base for pipeline stages.

    Subclasses must:
      1. Set ``stage_name`` class variable.
      2. Implement ``_execute(run, **kwargs) -> int``.

    Attributes:
        stage_name: String identifier matching a valid ``RunMetadata.pipeline_stage``.
        config: The application configuration for this run.
    """

    stage_name: str  # Override in subclass

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    def run(self, **kwargs) -> RunMetadata:
        """Execute this pipeline stage.

        Args:
            **kwargs: Stage-specific keyword arguments passed to ``_execute()``.

        Returns:
            ``RunMetadata`` with final ``status``, ``rows_processed``
            and ``finished_at`` set.

        Raises:
            Exception: Re-raises any exception from ``_execute()`` after
                recording ``status='failed'`` in the run record.
        """
        run = RunMetadata(
            run_slug=str(uuid4()),
            pipeline_stage=self.stage_name,
            config_snapshot=self.config.model_dump(mode="json"),
            started_at=utcnow(),
        )

        with run_context(stage=self.stage_name, run_slug=run.run_slug):
            logger.info("Stage [%s] starting | run_slug=%s", self.stage_name, run.run_slug)

            try:
                rows = self._execute(run=run, **kwargs)
            except Exception as exc:
                run.status = "failed"
                run.error_message = str(exc)
                run.finished_at = utcnow()
                logger.error("Stage [%s] FAILED: %s", self.stage_name, exc)
                raise

            if run.status == "started":
                run.status = "success"
            run.rows_processed = rows
            run.finished_at = utcnow()
            logger.info("Stage [%s] %s | rows=%d", self.stage_name, run.status, rows)
        return run

    @abstractmethod
    def _execute(self, run: RunMetadata, **kwargs) -> int:
        """Stage-specific implementation.

        Args:
            run: The in-progress ``RunMetadata`` record (mutable).
            **kwargs: Stage-specific parameters.

        Returns:
            Integer count of records written.
        """
        ...
