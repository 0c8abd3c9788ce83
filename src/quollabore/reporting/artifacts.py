"""Attachment classification and failure-log persistence."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional

from quollabore.models import Attachment, CaseHandle
from quollabore.telemetry.metrics import artifacts_dropped_total

logger = logging.getLogger(__name__)


class ArtifactKind(str, Enum):
    SCREENSHOT = "screenshot"
    VIDEO = "video"
    TRACE = "trace"


# The ingestion service rejects any other artifact type.
ALLOWED_ARTIFACT_KINDS = frozenset(ArtifactKind)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^\w.-]+", re.ASCII)
MAX_TITLE_CHARS = 120


@dataclass(frozen=True, slots=True)
class ArtifactRef:
    kind: ArtifactKind
    storage_path: str


def classify_attachment(attachment: Attachment) -> Optional[ArtifactKind]:
    name = (attachment.name or "").lower()
    content_type = (attachment.content_type or "").lower()

    if "screenshot" in name or content_type.startswith("image/"):
        return ArtifactKind.SCREENSHOT
    if "video" in name or content_type.startswith("video/"):
        return ArtifactKind.VIDEO
    if "trace" in name or "zip" in content_type:
        return ArtifactKind.TRACE
    return None


def collect_artifacts(attachments: Iterable[Attachment]) -> Iterator[ArtifactRef]:
    """Yield the attachments worth forwarding; anything unclassifiable is dropped."""

    for attachment in attachments:
        if not attachment.path:
            artifacts_dropped_total.add(1, {"reason": "no_path"})
            continue
        kind = classify_attachment(attachment)
        if kind is None or kind not in ALLOWED_ARTIFACT_KINDS:
            artifacts_dropped_total.add(1, {"reason": "unclassified"})
            logger.debug("dropping attachment %r (%s)", attachment.name, attachment.content_type)
            continue
        yield ArtifactRef(kind=kind, storage_path=attachment.path)


def safe_filename(value: str, limit: int = MAX_TITLE_CHARS) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", value)[:limit]


class FailureLogStore:
    """Writes full failure reports under a fixed output directory."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, case: CaseHandle) -> Path:
        source = os.path.basename(case.file)
        return self._root / f"{source}__{safe_filename(case.full_title)}.log.txt"

    def persist(self, case: CaseHandle, text: str) -> Optional[Path]:
        """Write the report; return its absolute path, or ``None`` if the write failed."""

        target = self.path_for(case)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except (OSError, ValueError) as exc:
            logger.warning("failure log not written to %s: %s", target, exc)
            return None
        return target.resolve()


__all__ = [
    "ALLOWED_ARTIFACT_KINDS",
    "ArtifactKind",
    "ArtifactRef",
    "FailureLogStore",
    "classify_attachment",
    "collect_artifacts",
    "safe_filename",
]
