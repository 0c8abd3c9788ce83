"""Compose the diagnostic document for a failed case."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence

from quollabore.models import Attachment, CaseResult, TestError

from .steps import build_call_log

SUMMARY_MAX_CHARS = 300
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")


def strip_ansi(text: str) -> str:
    return _ANSI_ESCAPE.sub("", text)


def _error_section(label: str, error: Optional[TestError]) -> str:
    if error is None:
        return ""
    body = [part for part in (error.message, error.stack) if part]
    if not body:
        return ""
    return "\n".join([label, *body])


def _stream_section(label: str, chunks: Sequence[str]) -> str:
    text = "".join(chunks)
    if not text.strip():
        return ""
    return f"{label}\n{text}"


def _attachment_section(attachments: Iterable[Attachment]) -> str:
    lines = [
        f"- {a.name or a.content_type or 'attachment'}: {a.path}"
        for a in attachments
        if a.path
    ]
    if not lines:
        return ""
    return "\n".join(["[Attachments]", *lines])


def compose_failure_text(
    result: CaseResult,
    stdout: Sequence[str] = (),
    stderr: Sequence[str] = (),
) -> str:
    """
    Build one ordered failure report.

    Sections, in order: primary error, each secondary error, call log, stdout,
    stderr, attachment index. Empty sections are left out; the rest are
    separated by a blank line.
    """

    sections: List[str] = [_error_section("[Primary Error]", result.error)]
    for index, error in enumerate(result.errors, start=1):
        sections.append(_error_section(f"[Error {index}]", error))
    sections.append(build_call_log(result.steps))
    sections.append(_stream_section("[stdout]", stdout))
    sections.append(_stream_section("[stderr]", stderr))
    sections.append(_attachment_section(result.attachments))
    return "\n\n".join(section for section in sections if section)


def summarize_error(result: CaseResult, limit: int = SUMMARY_MAX_CHARS) -> str:
    """First non-empty line of the first error message, without ANSI colours."""

    candidates = [result.error, *result.errors]
    for error in candidates:
        if error is None or not error.message:
            continue
        for line in strip_ansi(error.message).splitlines():
            line = line.strip()
            if line:
                return line if len(line) <= limit else line[: limit - 1] + "…"
    return "Test failed"


__all__ = ["SUMMARY_MAX_CHARS", "compose_failure_text", "strip_ansi", "summarize_error"]
