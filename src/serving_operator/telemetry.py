"""
Reconcile telemetry.

Counts Instance changes (creation, edit, deletion) and reconcile passes
through the OpenTelemetry metrics API, and mirrors each report as an event
on the current span when one is recording. Without a configured
MeterProvider the API's no-op implementation is used, so reporting is
always safe to call.

Usage::

    reporter = ReconcileReporter()
    reporter.report_change("knative-serving/knative-serving", CREATION_CHANGE)
    reporter.report_reconcile("knative-serving", "knative-serving", 0.42)
"""

from __future__ import annotations

import logging

from opentelemetry import metrics
from opentelemetry import trace as otel_trace

logger = logging.getLogger(__name__)

CREATION_CHANGE = "creation"
EDIT_CHANGE = "edit"
DELETION_CHANGE = "deletion"

CHANGE_COUNT_METRIC = "knative_operator_knativeserving_change_count"
RECONCILE_COUNT_METRIC = "knative_operator_reconcile_count"
RECONCILE_LATENCY_METRIC = "knative_operator_reconcile_latency"


def _add_span_event(name: str, attributes: dict[str, str | int | float | bool]) -> None:
    """Add an event to the current OTel span if available."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


class ReconcileReporter:
    """Reports Instance changes and reconcile outcomes."""

    def __init__(self, reconciler: str = "knativeserving-controller"):
        self.reconciler = reconciler
        meter = metrics.get_meter("serving_operator")
        self._changes = meter.create_counter(
            CHANGE_COUNT_METRIC,
            description="Number of KnativeServing creations, edits and deletions",
        )
        self._reconciles = meter.create_counter(
            RECONCILE_COUNT_METRIC,
            description="Number of reconcile operations",
        )
        self._latency = meter.create_histogram(
            RECONCILE_LATENCY_METRIC,
            unit="ms",
            description="Latency of reconcile operations",
        )

    def report_change(self, key: str, change: str) -> None:
        attrs = {"reconciler": self.reconciler, "key": key, "change": change}
        logger.debug("Instance %s change: %s", key, change)
        self._changes.add(1, attrs)
        _add_span_event("knativeserving.change", attrs)

    def report_reconcile(self, namespace: str, name: str, duration_s: float, success: bool = True) -> None:
        key = f"{namespace}/{name}"
        attrs = {"reconciler": self.reconciler, "key": key, "success": success}
        self._reconciles.add(1, attrs)
        self._latency.record(duration_s * 1000.0, attrs)
        _add_span_event(
            "knativeserving.reconcile",
            {**attrs, "duration_ms": round(duration_s * 1000.0, 1)},
        )
