import asyncio
import inspect
import itertools
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import pytest


_ASYNCIO_MARK_ATTR = "_quollabore_asyncio_marker"


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))

from quollabore.config.settings import ReporterSettings, load_settings  # noqa: E402
from quollabore.errors import TransportError  # noqa: E402


def _env_names() -> set[str]:
    # Bare field names too, so stray host variables cannot leak into a run.
    names: set[str] = {name.upper() for name in ReporterSettings.model_fields}
    for field in ReporterSettings.model_fields.values():
        alias = field.validation_alias
        if isinstance(alias, str):
            names.add(alias)
        elif alias is not None:
            names.update(choice for choice in alias.choices if isinstance(choice, str))
    return names


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for name in _env_names():
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path) -> ReporterSettings:
    return load_settings(
        token="tok-3f9a1c77e2",
        project_id="proj-1",
        portal_url="https://ingest.example.test/events",
        failure_log_dir=tmp_path / "failure-logs",
    )


class RecordingSender:
    """In-memory stand-in for the ingestion endpoint.

    Start events get sequential identifiers unless ``responses`` overrides
    them; ``fail`` decides which payloads raise a TransportError.
    """

    _ID_KEYS = {"run:start": "run_id", "suite:start": "suite_id", "case:start": "case_id"}

    def __init__(
        self,
        responses: Optional[Mapping[str, Dict[str, Any]]] = None,
        fail: Optional[Callable[[Mapping[str, Any]], bool]] = None,
    ) -> None:
        self.events: List[Dict[str, Any]] = []
        self.responses = dict(responses or {})
        self.fail = fail or (lambda payload: False)
        self._ids = itertools.count(1)

    async def send(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        event = dict(payload)
        self.events.append(event)
        kind = event["type"]
        if self.fail(event):
            raise TransportError(kind, status=503, detail="ingestion unavailable")
        if kind in self.responses:
            return self.responses[kind]
        key = self._ID_KEYS.get(kind)
        if key is None:
            return {}
        prefix = key.split("_")[0]
        return {key: f"{prefix}-{next(self._ids)}"}

    @property
    def types(self) -> List[str]:
        return [event["type"] for event in self.events]

    def of_type(self, kind: str) -> List[Dict[str, Any]]:
        return [event for event in self.events if event["type"] == kind]


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "asyncio: run the marked test using an asyncio event loop",
    )


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    del session  # unused but kept for hook signature compatibility
    for item in items:
        if item.get_closest_marker("asyncio"):
            setattr(item, _ASYNCIO_MARK_ATTR, True)


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> object:
    if not getattr(pyfuncitem, _ASYNCIO_MARK_ATTR, False):
        return None
    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        kwargs = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
        coroutine = test_func(**kwargs)
        loop.run_until_complete(coroutine)
        loop.run_until_complete(loop.shutdown_asyncgens())
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return True
