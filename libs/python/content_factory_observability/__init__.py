"""Shared observability helpers used across Content Factory services."""

from .logging import current_log_context, log_context, setup_logging
from .metrics import (
    observe_chapter_run,
    observe_provider_response,
    observe_stage_duration,
    setup_fastapi_metrics,
)

__all__ = [
    "setup_logging",
    "log_context",
    "current_log_context",
    "setup_fastapi_metrics",
    "observe_chapter_run",
    "observe_provider_response",
    "observe_stage_duration",
]
