"""Error taxonomy for the reporter."""

from .canonical import ConfigurationError, ReporterError, TransportError, map_httpx_error

__all__ = ["ConfigurationError", "ReporterError", "TransportError", "map_httpx_error"]
