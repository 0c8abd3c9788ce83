"""Canonical error definitions for the reporter."""

from __future__ import annotations

import re
from typing import Optional

import httpx

_SECRET_FIELD_PATTERN = re.compile(
    r"(?i)(authorization\s*[:=]\s*(?:bearer\s+)?|bearer\s+|[a-z0-9_\-]*token\s*[:=]\s*)([^\s,\"']+)"
)


def _scrub_detail(detail: Optional[str]) -> Optional[str]:
    if detail is None:
        return None
    return _SECRET_FIELD_PATTERN.sub(lambda m: f"{m.group(1)}<redacted>", detail)


class ReporterError(Exception):
    """Base class for every error raised by the reporter."""


class ConfigurationError(ReporterError):
    """Required configuration is missing or invalid; the reporter cannot run."""


class TransportError(ReporterError):
    """A request to the ingestion endpoint did not succeed."""

    operation: str
    status: Optional[int]
    detail: Optional[str]

    def __init__(
        self,
        operation: str,
        status: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        self.operation = operation
        self.status = status
        self.detail = _scrub_detail(detail)
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.status is None:
            return self.detail or "network error"
        return f"HTTP {self.status}: {self.detail or ''}".rstrip()


def map_httpx_error(operation: str, exc: Exception) -> TransportError:
    """Map an httpx exception to a :class:`TransportError`."""

    if isinstance(exc, TransportError):
        return exc

    if isinstance(exc, httpx.TimeoutException):
        return TransportError(operation, detail="request to ingestion endpoint timed out")

    if isinstance(exc, httpx.HTTPStatusError):
        response = exc.response
        try:
            body = response.text
        except Exception:
            body = ""
        return TransportError(
            operation,
            status=response.status_code,
            detail=body or response.reason_phrase,
        )

    return TransportError(operation, detail=str(exc) or exc.__class__.__name__)


__all__ = [
    "ConfigurationError",
    "ReporterError",
    "TransportError",
    "map_httpx_error",
]
