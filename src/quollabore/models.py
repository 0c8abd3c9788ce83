"""Framework-neutral descriptors passed in by the test engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence


class Status(str, Enum):
    RUNNING = "running"
    PASSED = "passed"
    SKIPPED = "skipped"
    FAILED = "failed"


class StepPhase(str, Enum):
    BEGIN = "begin"
    END = "end"


class Stream(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


def classify_outcome(raw_status: Optional[str]) -> Status:
    """Collapse an engine status into passed/skipped/failed; unknown means failed."""

    if raw_status == Status.PASSED.value:
        return Status.PASSED
    if raw_status == Status.SKIPPED.value:
        return Status.SKIPPED
    return Status.FAILED


@dataclass(slots=True)
class TestError:
    __test__ = False

    message: Optional[str] = None
    stack: Optional[str] = None


@dataclass(slots=True)
class TestStep:
    __test__ = False

    title: Optional[str] = None
    category: Optional[str] = None
    duration_ms: Optional[float] = None
    error: Optional[TestError] = None
    steps: List["TestStep"] = field(default_factory=list)


@dataclass(slots=True)
class Attachment:
    name: Optional[str] = None
    content_type: Optional[str] = None
    path: Optional[str] = None


@dataclass(eq=False)
class CaseHandle:
    """
    The engine's in-memory identity for one test invocation.

    Equality is identity: two handles with the same title are different cases.
    """

    file: str
    title: str
    title_path: Sequence[str] = ()
    project: Optional[str] = None

    @property
    def full_title(self) -> str:
        return " > ".join(self.title_path or (self.title,))


@dataclass(slots=True)
class CaseResult:
    status: str
    duration_ms: Optional[float] = None
    error: Optional[TestError] = None
    errors: List[TestError] = field(default_factory=list)
    steps: List[TestStep] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)


@dataclass(slots=True)
class RunResult:
    status: str
    duration_ms: Optional[float] = None


__all__ = [
    "Attachment",
    "CaseHandle",
    "CaseResult",
    "RunResult",
    "Status",
    "StepPhase",
    "Stream",
    "TestError",
    "TestStep",
    "classify_outcome",
]
