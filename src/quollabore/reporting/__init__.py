"""Pure helpers that turn collected case data into transmittable payloads."""

from .artifacts import (
    ALLOWED_ARTIFACT_KINDS,
    ArtifactKind,
    ArtifactRef,
    FailureLogStore,
    classify_attachment,
    collect_artifacts,
)
from .chunks import chunk_text, send_big_log
from .failure import compose_failure_text, summarize_error
from .steps import build_call_log, serialize_step

__all__ = [
    "ALLOWED_ARTIFACT_KINDS",
    "ArtifactKind",
    "ArtifactRef",
    "FailureLogStore",
    "build_call_log",
    "chunk_text",
    "classify_attachment",
    "collect_artifacts",
    "compose_failure_text",
    "send_big_log",
    "serialize_step",
    "summarize_error",
]
