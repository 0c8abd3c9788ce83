"""Render a nested step tree as an indented call log."""

from __future__ import annotations

from typing import Iterable, List

from quollabore.models import TestStep

CALL_LOG_HEADER = "[Call Log]"
INDENT = "  "


def _format_duration(duration_ms: float) -> str:
    if float(duration_ms).is_integer():
        return f"{int(duration_ms)}ms"
    return f"{duration_ms}ms"


def serialize_step(step: TestStep, depth: int = 0) -> str:
    pad = INDENT * max(0, depth)
    title = step.title or "(step)"
    category = f"[{step.category}] " if step.category else ""
    duration = f" ({_format_duration(step.duration_ms)})" if step.duration_ms is not None else ""

    lines: List[str] = [f"{pad}• {category}{title}{duration}"]
    if step.error is not None and step.error.message:
        lines.append(f"{INDENT * (depth + 1)}↳ error: {step.error.message}")
    for child in step.steps:
        lines.append(serialize_step(child, depth + 1))
    return "\n".join(lines)


def build_call_log(steps: Iterable[TestStep]) -> str:
    """Return the ``[Call Log]`` section, or ``""`` when there are no steps."""

    rendered = [serialize_step(step) for step in steps]
    if not rendered:
        return ""
    return "\n".join([CALL_LOG_HEADER, *rendered])


__all__ = ["CALL_LOG_HEADER", "build_call_log", "serialize_step"]
