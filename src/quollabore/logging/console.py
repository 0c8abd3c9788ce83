"""Console sink for reporter diagnostics.

Transport failures never reach the test engine; they surface here as one
``[Quollabore] <operation> failed: <reason>`` line on stderr.
"""

from __future__ import annotations

import logging
import sys
from typing import Iterable

from .redact import install_redaction_filter

LOGGER_NAME = "quollabore"
CONSOLE_FORMAT = "[Quollabore] %(message)s"


class _ConsoleHandler(logging.StreamHandler):
    """Marker type so repeated configuration does not stack handlers."""


def configure_console_logging(
    secrets: Iterable[str] = (),
    *,
    level: int = logging.INFO,
) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    handler = next((h for h in logger.handlers if isinstance(h, _ConsoleHandler)), None)
    if handler is None:
        handler = _ConsoleHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(handler)
        if logger.level == logging.NOTSET:
            logger.setLevel(level)
    install_redaction_filter(handler, secrets)
    return logger


__all__ = ["CONSOLE_FORMAT", "LOGGER_NAME", "configure_console_logging"]
