"""Logging helpers: console diagnostics and secret redaction."""

from .console import configure_console_logging
from .redact import REDACTED, RedactionFilter, install_redaction_filter

__all__ = ["REDACTED", "RedactionFilter", "configure_console_logging", "install_redaction_filter"]
