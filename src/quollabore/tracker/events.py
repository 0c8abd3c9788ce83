"""Builders for the JSON events accepted by the ingestion endpoint.

Every event is a flat JSON object discriminated by ``type``. Keeping the
shapes here means the tracker only decides *when* to send, never *what*
the wire format looks like.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from quollabore.config.settings import ReporterSettings
from quollabore.models import CaseHandle, Status, StepPhase, TestStep
from quollabore.reporting.artifacts import ArtifactRef

Event = Dict[str, Any]

RUN_START = "run:start"
SUITE_START = "suite:start"
CASE_START = "case:start"
CASE_UPDATE = "case:update"
LOG = "log"
ARTIFACT = "artifact"
CASE_FINISH = "case:finish"
SUITE_FINISH = "suite:finish"
RUN_FINISH = "run:finish"


def _ms(value: Optional[float]) -> Optional[int]:
    return None if value is None else int(round(value))


def run_start(settings: ReporterSettings) -> Event:
    return {
        "type": RUN_START,
        "run": {
            "provider": settings.provider,
            "project_id": settings.project_id,
            "environment": settings.environment,
            "ci_job_id": settings.ci_job_id,
            "git_branch": settings.git_branch,
            "git_commit_sha": settings.git_commit_sha,
            "git_commit_msg": settings.git_commit_msg,
            "git_actor": settings.git_actor,
            "parallel_total": settings.parallel_total,
            "status": Status.RUNNING.value,
        },
    }


def suite_start(run_id: str, file_path: str, shard_index: int) -> Event:
    return {
        "type": SUITE_START,
        "suite": {
            "run_id": run_id,
            "name": file_path,
            "file_path": file_path,
            "shard_index": shard_index,
            "status": Status.RUNNING.value,
        },
    }


def case_start(suite_id: str, case: CaseHandle) -> Event:
    return {
        "type": CASE_START,
        "test": {
            "suite_id": suite_id,
            "title": case.title,
            "full_title": case.full_title,
            "status": Status.RUNNING.value,
            "meta": {"project": case.project},
        },
    }


def case_update(case_id: str, step: TestStep, phase: StepPhase) -> Event:
    last_step: Dict[str, Any] = {"title": step.title, "category": step.category}
    if phase is StepPhase.END:
        last_step["ended"] = True
    return {"type": CASE_UPDATE, "case_id": case_id, "patch": {"last_step": last_step}}


def artifact(case_id: str, ref: ArtifactRef) -> Event:
    return {
        "type": ARTIFACT,
        "case_id": case_id,
        "artifact": {"type": ref.kind.value, "storage_path": ref.storage_path},
    }


def case_finish(
    case_id: str,
    status: Status,
    duration_ms: Optional[float],
    error: Optional[Mapping[str, Any]] = None,
) -> Event:
    event: Event = {
        "type": CASE_FINISH,
        "case_id": case_id,
        "status": status.value,
        "duration_ms": _ms(duration_ms),
    }
    if error is not None:
        event["error"] = dict(error)
    return event


def suite_finish(suite_id: str, status: Status, duration_ms: Optional[float]) -> Event:
    return {
        "type": SUITE_FINISH,
        "suite_id": suite_id,
        "status": status.value,
        "duration_ms": _ms(duration_ms),
    }


def run_finish(
    run_id: str,
    raw_status: str,
    stats: Mapping[str, Any],
    duration_ms: Optional[float] = None,
) -> Event:
    event: Event = {
        "type": RUN_FINISH,
        "run_id": run_id,
        "status": Status.PASSED.value if raw_status == Status.PASSED.value else Status.FAILED.value,
        "stats": {"status": raw_status, **stats},
    }
    if duration_ms is not None:
        event["duration_ms"] = _ms(duration_ms)
    return event


__all__ = [
    "ARTIFACT",
    "CASE_FINISH",
    "CASE_START",
    "CASE_UPDATE",
    "Event",
    "LOG",
    "RUN_FINISH",
    "RUN_START",
    "SUITE_FINISH",
    "SUITE_START",
    "artifact",
    "case_finish",
    "case_start",
    "case_update",
    "run_finish",
    "run_start",
    "suite_finish",
    "suite_start",
]
