"""
Logging setup for the fill-rate archiver.

Call ``configure_logging(config)`` once at CLI entry, before any stage runs.
Library modules only ever use ``logging.getLogger(__name__)``.

Every record passing through the configured handlers carries the context of
the stage run it belongs to:

  - ``stage``        — ``forecast`` / ``archive`` (``-`` outside a run)
  - ``run_slug``     — the ``RunMetadata.run_slug`` of the run
  - ``target_date``  — the date being archived, or the forecast start date

``PipelineStage.run()`` opens the context with ``run_context()``; stages add
the target date with ``bind_run_context()`` once they know it. Timestamps are
UTC. Text lines look like::

    2024-03-01T23:50:00Z [INFO] [archive 2024-03-01] fillrate_archiver.archive.writer: Wrote logs/...

With ``json_format = true`` each line is one JSON object::

    {"ts": "2024-03-01T23:50:00Z", "level": "INFO", "logger": "...", "msg": "...",
     "stage": "archive", "run_slug": "5b0c...", "target_date": "2024-03-01"}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Iterator

if TYPE_CHECKING:
    from fillrate_archiver.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(stage)s %(target_date)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

CONTEXT_FIELDS = ("stage", "run_slug", "target_date")

_run_context: ContextVar[dict[str, str]] = ContextVar("fillrate_run_context", default={})


@contextmanager
def run_context(**fields: str) -> Iterator[None]:
    """Attach ``fields`` to every record logged inside the ``with`` block."""
    token = _run_context.set({**_run_context.get(), **fields})
    try:
        yield
    finally:
        _run_context.reset(token)


def bind_run_context(**fields: str) -> None:
    """Add fields to the current run context (dropped when it closes)."""
    _run_context.set({**_run_context.get(), **fields})


class RunContextFilter(logging.Filter):
    """Copy the current run context onto each record, ``-`` when unset."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _run_context.get()
        for field in CONTEXT_FIELDS:
            setattr(record, field, context.get(field, "-"))
        return True


class _JsonFormatter(logging.Formatter):
    """One JSON object per line; context fields only when set."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, "-")
            if value != "-":
                payload[field] = value
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def configure_logging(config: "LoggingConfig") -> None:
    """Configure the root logger from ``AppConfig.logging``.

    Installs a stdout handler, plus a UTF-8 file handler when
    ``config.log_file`` is set, both with ``RunContextFilter``. Replaces any
    handlers already on the root logger.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = _build_formatter(config.json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    context_filter = RunContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    # httpx logs one INFO line per request
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
