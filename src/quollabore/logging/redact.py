"""Utilities for redacting the ingest token from log records."""

from __future__ import annotations

import logging
import os
import re
from typing import Iterable

SECRET_ENV_VARS = ("Q_INGEST_TOKEN",)

REDACTED = "[REDACTED]"

_AUTH_PATTERN = re.compile(r"(?i)(authorization\s*[:=]\s*)(.+)")
_BEARER_PATTERN = re.compile(r"(?i)(bearer\s+)([^\s,\"']+)")


def _secret_values_from_env() -> Iterable[str]:
    for key in SECRET_ENV_VARS:
        value = os.environ.get(key)
        if value:
            yield value


class RedactionFilter(logging.Filter):
    """Masks the ingest token and auth header fragments in a record's text."""

    def __init__(self, secrets: Iterable[str] = ()) -> None:
        super().__init__()
        self._secrets = tuple(s for s in (*secrets, *_secret_values_from_env()) if s)

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            message = str(record.msg)
        record.msg = self.scrub(message)
        record.args = ()
        # String extras passed through ``extra=`` are rendered by some formatters.
        for key, value in list(record.__dict__.items()):
            if key != "msg" and isinstance(value, str):
                record.__dict__[key] = self.scrub(value)
        return True

    def scrub(self, raw: str) -> str:
        cleaned = _AUTH_PATTERN.sub(r"\1" + REDACTED, raw)
        cleaned = _BEARER_PATTERN.sub(r"\1" + REDACTED, cleaned)
        for secret in self._secrets:
            cleaned = cleaned.replace(secret, REDACTED)
        return cleaned

    def add_secrets(self, secrets: Iterable[str]) -> None:
        self._secrets = tuple(dict.fromkeys((*self._secrets, *(s for s in secrets if s))))


def install_redaction_filter(
    target: logging.Logger | logging.Handler | None = None,
    secrets: Iterable[str] = (),
) -> RedactionFilter:
    """Attach a :class:`RedactionFilter` to the given logger or handler."""

    target = target or logging.getLogger("quollabore")
    for flt in target.filters:
        if isinstance(flt, RedactionFilter):
            flt.add_secrets(secrets)
            return flt
    flt = RedactionFilter(secrets)
    target.addFilter(flt)
    return flt


__all__ = ["RedactionFilter", "install_redaction_filter", "REDACTED"]
