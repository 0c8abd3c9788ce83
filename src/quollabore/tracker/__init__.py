"""Run-state tracking and event emission."""

from .reporter import FAILURE_LOG_TITLE, RunStateTracker

__all__ = ["FAILURE_LOG_TITLE", "RunStateTracker"]
