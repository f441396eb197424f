"""Centralised logging configuration helpers."""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

LOG_LEVEL_ENV_VAR = "LOG_LEVEL"

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("content_factory_log_context", default={})


class ContextFilter(logging.Filter):
    """Inject contextual fields captured via :func:`log_context`."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401 - inherited docstring
        context = _LOG_CONTEXT.get()
        if context:
            record.observability_context = context
            for key, value in context.items():
                if not hasattr(record, key):
                    setattr(record, key, value)
        if getattr(record, "service", None) is None:
            record.service = self.service_name
        return True


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    _RESERVED = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "taskName",
            "thread",
            "threadName",
            "observability_context",
        }
    )

    # Pipeline fields promoted to the top level even when they hold falsy values.
    _PIPELINE_FIELDS = (
        "service",
        "project_id",
        "chapter_id",
        "chapter_order",
        "stage",
        "agent",
        "provider",
        "model",
        "outcome",
        "prompt_tokens",
        "completion_tokens",
        "latency_ms",
        "duration_ms",
        "cost_usd",
    )

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - inherited docstring
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._PIPELINE_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        for key, value in record.__dict__.items():
            if key in self._RESERVED or key in payload or key.startswith("_"):
                continue
            if self._is_json_safe(value):
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False, default=str)

    @staticmethod
    def _is_json_safe(value: Any) -> bool:
        try:
            json.dumps(value)
        except (TypeError, ValueError):
            return False
        return True


def setup_logging(
    service_name: str,
    level: str | int | None = None,
    *,
    capture_warnings: bool | None = None,
) -> None:
    """Configure JSON logging on stdout for the current process.

    ``level`` defaults to the ``LOG_LEVEL`` environment variable, then INFO.
    Calling it again replaces the handlers instead of stacking them.
    """

    resolved_level = level or os.getenv(LOG_LEVEL_ENV_VAR, "INFO").upper()
    handlers = ["default"]
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "content_factory_observability.logging.JsonFormatter"},
        },
        "filters": {
            "context": {
                "()": "content_factory_observability.logging.ContextFilter",
                "service_name": service_name,
            }
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "stream": sys.stdout,
                "formatter": "json",
                "filters": ["context"],
            }
        },
        "root": {"level": resolved_level, "handlers": handlers},
        "loggers": {
            "uvicorn": {"handlers": handlers, "level": resolved_level, "propagate": False},
            "uvicorn.access": {"handlers": handlers, "level": resolved_level, "propagate": False},
            "httpx": {"handlers": handlers, "level": "WARNING", "propagate": False},
        },
    }

    logging.config.dictConfig(config)

    if capture_warnings is None:
        capture_env = os.getenv("CONTENT_FACTORY_CAPTURE_WARNINGS", "")
        capture_warnings = capture_env.lower() in {"1", "true", "t", "yes", "y"}
    if capture_warnings:
        logging.captureWarnings(True)


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Temporarily bind contextual information that should accompany logs.

    Passing ``None`` for a key removes it from the inherited context.
    """

    updated = dict(_LOG_CONTEXT.get())
    for key, value in kwargs.items():
        if value is None:
            updated.pop(key, None)
        else:
            updated[key] = value
    token = _LOG_CONTEXT.set(updated)
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def current_log_context() -> Dict[str, Any]:
    """Return a copy of the fields bound by the enclosing :func:`log_context` blocks."""

    return dict(_LOG_CONTEXT.get())
