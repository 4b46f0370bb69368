"""
Logging setup and structured reconcile events.

``configure_logging`` installs a single stdout handler on the
``serving_operator`` logger, in plain text or JSON (for Loki ingestion).

``ReconcileLogger`` outputs one JSON line per reconcile lifecycle event,
independent of the module loggers' format, so dashboards can count
reconciles per Instance without parsing free text.

Logged events:
- reconcile.started
- reconcile.completed
- reconcile.failed
- generation.changed
- instance.finalized

Usage:
    from serving_operator.logger import ReconcileLogger, configure_logging

    configure_logging(level="debug", fmt="json")
    events = ReconcileLogger()
    events.reconcile_started("knative-serving/knative-serving", generation=3)
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

ROOT_LOGGER = "serving_operator"

# Structured event logger; JSON to stdout for container/Loki pickup
_event_logger = logging.getLogger("serving_operator.events")
_event_logger.setLevel(logging.INFO)
_event_logger.propagate = False

if not _event_logger.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    _event_logger.addHandler(handler)


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "info", fmt: str = "text") -> logging.Logger:
    """Configure the package logger. Safe to call more than once."""
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    logger.addHandler(handler)
    return logger


class ReconcileLogger:
    """
    Structured logger for reconcile lifecycle events.

    Each entry carries ``timestamp``, ``level``, ``event``, ``service`` and
    ``instance`` plus event-specific fields.
    """

    def __init__(self, service_name: str = "serving-operator"):
        self.service_name = service_name
        self._logger = _event_logger

    def _emit(self, event: str, instance: str, level: str = "info", **extra_fields: Any) -> None:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
            "instance": instance,
        }
        entry.update({k: v for k, v in extra_fields.items() if v is not None})

        log_level = getattr(logging, level.upper(), logging.INFO)
        self._logger.log(log_level, json.dumps(entry, default=str))

    def reconcile_started(self, instance: str, generation: int) -> None:
        self._emit("reconcile.started", instance, generation=generation)

    def reconcile_completed(self, instance: str, ready: bool, duration_ms: float) -> None:
        self._emit(
            "reconcile.completed", instance, ready=ready, duration_ms=round(duration_ms, 1)
        )

    def reconcile_failed(self, instance: str, stage: str, error: Exception) -> None:
        self._emit(
            "reconcile.failed",
            instance,
            level="error",
            stage=stage,
            error_type=type(error).__name__,
            error=str(error),
        )

    def generation_changed(
        self,
        instance: str,
        change: str,
        generation: int,
        previous: Optional[int] = None,
    ) -> None:
        self._emit(
            "generation.changed",
            instance,
            change=change,
            generation=generation,
            previous_generation=previous,
        )

    def instance_finalized(self, instance: str, deleted: int, skipped: bool) -> None:
        self._emit("instance.finalized", instance, deleted_resources=deleted, teardown_skipped=skipped)
