"""Forward test-run lifecycle events to the Quollabore ingestion endpoint."""

from quollabore.config import ReporterSettings, load_settings
from quollabore.errors import ConfigurationError, ReporterError, TransportError
from quollabore.models import (
    Attachment,
    CaseHandle,
    CaseResult,
    RunResult,
    Status,
    StepPhase,
    Stream,
    TestError,
    TestStep,
)
from quollabore.tracker import RunStateTracker

__version__ = "0.3.0"

__all__ = [
    "Attachment",
    "CaseHandle",
    "CaseResult",
    "ConfigurationError",
    "ReporterError",
    "ReporterSettings",
    "RunResult",
    "RunStateTracker",
    "Status",
    "StepPhase",
    "Stream",
    "TestError",
    "TestStep",
    "TransportError",
    "load_settings",
    "__version__",
]
