"""Shared telemetry primitives for the reporter."""

from __future__ import annotations

from .metrics import (
    artifacts_dropped_total,
    ingest_events_total,
    ingest_latency_ms,
    ingest_log_chunks_total,
)

__all__ = [
    "artifacts_dropped_total",
    "ingest_events_total",
    "ingest_latency_ms",
    "ingest_log_chunks_total",
]
