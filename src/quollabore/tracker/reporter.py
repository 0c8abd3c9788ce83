"""Run-state tracker: maps test lifecycle callbacks onto ingestion events."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Set, Union

import httpx

from quollabore.client.http import EventSender, IngestClient
from quollabore.config.settings import ReporterSettings, load_settings
from quollabore.errors import ReporterError
from quollabore.logging.console import configure_console_logging
from quollabore.models import (
    CaseHandle,
    CaseResult,
    RunResult,
    Status,
    StepPhase,
    Stream,
    TestStep,
    classify_outcome,
)
from quollabore.reporting.artifacts import ArtifactKind, ArtifactRef, FailureLogStore, collect_artifacts
from quollabore.reporting.chunks import send_big_log
from quollabore.reporting.failure import compose_failure_text, summarize_error

from . import events

logger = logging.getLogger(__name__)

FAILURE_LOG_TITLE = "Test Failure"


def _identifier(body: Optional[Mapping[str, Any]], key: str) -> Optional[str]:
    if not body:
        return None
    value = body.get(key)
    if value is None:
        return None
    return str(value) or None


@dataclass(slots=True)
class SuiteState:
    suite_id: str
    started_at: float
    tests: int = 0
    failures: int = 0

    def final_status(self) -> Status:
        if self.failures > 0:
            return Status.FAILED
        if self.tests == 0:
            return Status.SKIPPED
        return Status.PASSED


@dataclass(slots=True)
class CaseState:
    case_id: str
    suite_key: str
    stdout: List[str] = field(default_factory=list)
    stderr: List[str] = field(default_factory=list)
    pending: Set[asyncio.Task] = field(default_factory=set)


class RunStateTracker:
    """
    Stateful bridge between a test engine and the ingestion endpoint.

    The engine calls one coroutine per lifecycle point. No method raises on
    transport problems: failures are logged through the ``quollabore`` logger
    and the run continues. Only the constructor can fail, with
    :class:`~quollabore.errors.ConfigurationError`, when credentials are missing.

    Reporting is gated on identifiers: without a run id nothing is sent, and
    per-case events require the id returned by ``case:start``.
    """

    def __init__(
        self,
        settings: Optional[ReporterSettings] = None,
        *,
        sender: Optional[EventSender] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        failure_logs: Optional[FailureLogStore] = None,
        clock: Callable[[], float] = time.monotonic,
        **options: Any,
    ) -> None:
        self.settings = settings or load_settings(**options)
        configure_console_logging([self.settings.token])

        self._ingest: Optional[IngestClient] = None
        if sender is None:
            self._ingest = IngestClient.from_settings(self.settings, client=http_client)
            sender = self._ingest
        self._sender = sender

        if failure_logs is None and self.settings.persist_failure_logs:
            failure_logs = FailureLogStore(self.settings.failure_log_dir)
        self._failure_logs = failure_logs

        self._clock = clock
        self._run_id: Optional[str] = None
        self._run_started_at: Optional[float] = None
        self._suites: Dict[str, SuiteState] = {}
        self._suite_locks: Dict[str, asyncio.Lock] = {}
        self._cases: Dict[CaseHandle, CaseState] = {}

    @property
    def run_id(self) -> Optional[str]:
        return self._run_id

    @property
    def enabled(self) -> bool:
        return self._run_id is not None

    def case_id(self, case: CaseHandle) -> Optional[str]:
        state = self._cases.get(case)
        return state.case_id if state else None

    async def _guarded(self, operation: str, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except ReporterError as exc:
            logger.error("%s failed: %s", operation, exc)
        except Exception:
            logger.exception("%s failed", operation)
        return None

    async def _emit(self, event: events.Event) -> Optional[Dict[str, Any]]:
        return await self._guarded(event["type"], self._sender.send(event))

    # ----------------------------------------------------------------- run

    async def begin_run(self) -> None:
        self._run_started_at = self._clock()
        body = await self._emit(events.run_start(self.settings))
        self._run_id = _identifier(body, "run_id")
        if self._run_id is None:
            if body is not None:
                logger.error("%s failed: response carried no run_id", events.RUN_START)
            logger.warning("reporting disabled for this run")
            return
        logger.debug("run started: %s", self._run_id)

    async def end_run(self, result: RunResult) -> None:
        for state in list(self._cases.values()):
            await self._drain(state)
        self._cases.clear()

        if self._run_id is None:
            self._suites.clear()
            self._suite_locks.clear()
            return

        # Suites are independent; their close order carries no meaning.
        for suite in list(self._suites.values()):
            elapsed_ms = (self._clock() - suite.started_at) * 1000.0
            await self._emit(events.suite_finish(suite.suite_id, suite.final_status(), elapsed_ms))

        stats = {
            "suites": len(self._suites),
            "cases": sum(s.tests for s in self._suites.values()),
            "failures": sum(s.failures for s in self._suites.values()),
        }
        duration_ms = result.duration_ms
        if duration_ms is None and self._run_started_at is not None:
            duration_ms = (self._clock() - self._run_started_at) * 1000.0
        await self._emit(events.run_finish(self._run_id, result.status, stats, duration_ms))

        self._suites.clear()
        self._suite_locks.clear()

    # ---------------------------------------------------------------- case

    async def _open_suite(self, file_path: str) -> Optional[SuiteState]:
        lock = self._suite_locks.setdefault(file_path, asyncio.Lock())
        async with lock:
            suite = self._suites.get(file_path)
            if suite is not None:
                return suite
            body = await self._emit(
                events.suite_start(self._run_id, file_path, self.settings.shard_index)
            )
            suite_id = _identifier(body, "suite_id")
            if suite_id is None:
                if body is not None:
                    logger.error("%s failed: response carried no suite_id", events.SUITE_START)
                return None
            suite = SuiteState(suite_id=suite_id, started_at=self._clock())
            self._suites[file_path] = suite
            return suite

    async def begin_case(self, case: CaseHandle) -> None:
        if self._run_id is None:
            return

        suite = await self._open_suite(case.file)
        if suite is None:
            return
        suite.tests += 1

        body = await self._emit(events.case_start(suite.suite_id, case))
        case_id = _identifier(body, "case_id")
        if case_id is None:
            if body is not None:
                logger.error("%s failed: response carried no case_id", events.CASE_START)
            return
        self._cases[case] = CaseState(case_id=case_id, suite_key=case.file)

    def record_step(self, case: CaseHandle, step: TestStep, phase: StepPhase = StepPhase.BEGIN) -> None:
        """Schedule a ``case:update`` for a step boundary without waiting for it."""

        state = self._cases.get(case)
        if state is None:
            return
        # Engine-internal bookkeeping steps carry no category or title.
        if not step.category or not step.title:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running event loop; step update for %s dropped", state.case_id)
            return

        task = loop.create_task(self._send_step(events.case_update(state.case_id, step, StepPhase(phase))))
        state.pending.add(task)
        task.add_done_callback(state.pending.discard)

    async def _send_step(self, event: events.Event) -> None:
        try:
            await self._sender.send(event)
        except Exception as exc:
            logger.debug("%s dropped: %s", events.CASE_UPDATE, exc)

    async def _drain(self, state: CaseState) -> None:
        if state.pending:
            await asyncio.gather(*list(state.pending), return_exceptions=True)

    def capture_stdio(
        self,
        case: Optional[CaseHandle],
        stream: Union[Stream, str],
        chunk: Union[str, bytes],
    ) -> None:
        if case is None:
            return
        state = self._cases.get(case)
        if state is None:
            return
        text = chunk.decode("utf-8", errors="replace") if isinstance(chunk, (bytes, bytearray)) else chunk
        if not text.strip():
            return
        buffer = state.stdout if Stream(stream) is Stream.STDOUT else state.stderr
        buffer.append(text)

    async def end_case(self, case: CaseHandle, result: CaseResult) -> None:
        # Removing the state first means nothing else is sent for this case
        # once case:finish goes out.
        state = self._cases.pop(case, None)
        if state is None:
            return
        await self._drain(state)

        status = classify_outcome(result.status)
        suite = self._suites.get(state.suite_key)
        if suite is not None and status is Status.FAILED:
            suite.failures += 1

        for ref in collect_artifacts(result.attachments):
            await self._emit(events.artifact(state.case_id, ref))

        error: Optional[Dict[str, Any]] = None
        if status is Status.FAILED:
            full_text = compose_failure_text(result, state.stdout, state.stderr)
            await self._report_failure(case, state.case_id, full_text)
            raw_stack = result.error.stack if result.error is not None else None
            error = {"message": summarize_error(result), "stack": full_text or raw_stack}

        state.stdout.clear()
        state.stderr.clear()

        await self._emit(events.case_finish(state.case_id, status, result.duration_ms, error))

    async def _report_failure(self, case: CaseHandle, case_id: str, full_text: str) -> None:
        if not full_text:
            return
        await self._guarded(
            events.LOG,
            send_big_log(
                self._sender,
                case_id,
                FAILURE_LOG_TITLE,
                full_text,
                chunk_size=self.settings.log_chunk_size,
            ),
        )
        if self._failure_logs is None:
            return
        path = self._failure_logs.persist(case, full_text)
        if path is not None:
            ref = ArtifactRef(kind=ArtifactKind.TRACE, storage_path=str(path))
            await self._emit(events.artifact(case_id, ref))

    # ------------------------------------------------------------ resources

    async def aclose(self) -> None:
        for state in list(self._cases.values()):
            await self._drain(state)
        if self._ingest is not None:
            await self._ingest.aclose()

    async def __aenter__(self) -> "RunStateTracker":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


__all__ = ["CaseState", "FAILURE_LOG_TITLE", "RunStateTracker", "SuiteState"]
