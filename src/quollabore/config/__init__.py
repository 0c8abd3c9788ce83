"""Reporter configuration."""

from .settings import ReporterSettings, load_settings

__all__ = ["ReporterSettings", "load_settings"]
