"""Prometheus metrics for Command Tracker.

Cardinality rule: command_id is NOT a Prometheus label (unbounded).
channel, outcome and eviction reason are labels (bounded).
"""

from typing import Optional

import prometheus_client

# --- Metric singletons (created on first access) ---

_metrics = {}


def _metric(name, metric_type, description, labelnames=()):
    """Get or create a Prometheus metric."""
    if name in _metrics:
        return _metrics[name]
    cls = getattr(prometheus_client, metric_type)
    m = cls(name, description, labelnames=labelnames)
    _metrics[name] = m
    return m


def invocations_total():
    return _metric(
        "command_tracker_invocations_total",
        "Counter",
        "Total command invocations received",
        labelnames=["channel", "outcome"],
    )


def ingestion_duration():
    return _metric(
        "command_tracker_ingestion_duration_seconds",
        "Histogram",
        "Time spent recording one invocation",
        labelnames=["channel"],
    )


def ingestion_failures_total():
    return _metric(
        "command_tracker_ingestion_failures_total",
        "Counter",
        "Invocations dropped because the store failed",
        labelnames=["channel"],
    )


def records_evicted_total():
    return _metric(
        "command_tracker_records_evicted_total",
        "Counter",
        "Records removed by the retention policy",
        labelnames=["reason"],
    )


# --- Helper functions for recording metrics ---

def record_invocation(channel: str, outcome: str, duration: Optional[float] = None):
    invocations_total().labels(channel=channel, outcome=outcome).inc()
    if duration is not None:
        ingestion_duration().labels(channel=channel).observe(duration)


def record_ingestion_failure(channel: str):
    ingestion_failures_total().labels(channel=channel).inc()


def record_eviction(reason: str, count: int):
    if count > 0:
        records_evicted_total().labels(reason=reason).inc(count)


def generate_metrics_text() -> str:
    """Generate Prometheus metrics text output."""
    return prometheus_client.generate_latest().decode("utf-8")
