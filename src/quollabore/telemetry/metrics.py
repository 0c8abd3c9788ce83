"""OpenTelemetry instruments for the event-emission pipeline."""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("quollabore.reporter")

ingest_events_total = _meter.create_counter(
    "ingest_events_total",
    unit="1",
    description="Events sent to the ingestion endpoint, split by event type and outcome.",
)

ingest_latency_ms = _meter.create_histogram(
    "ingest_latency_ms",
    unit="ms",
    description="Round-trip latency of a single ingestion request.",
)

ingest_log_chunks_total = _meter.create_counter(
    "ingest_log_chunks_total",
    unit="1",
    description="Failure-log segments delivered as log events.",
)

artifacts_dropped_total = _meter.create_counter(
    "artifacts_dropped_total",
    unit="1",
    description="Attachments that were not forwarded as artifacts, by reason.",
)

__all__ = [
    "artifacts_dropped_total",
    "ingest_events_total",
    "ingest_latency_ms",
    "ingest_log_chunks_total",
]
