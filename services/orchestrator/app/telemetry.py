"""Append-only AgentLog recording for stage invocations."""

from __future__ import annotations

import logging
from typing import Optional

from content_factory_observability import observe_stage_duration
from content_factory_schemas import AgentLog, AgentRole, LogOutcome

from .completion import SERVICE_NAME, Completion
from .store import StateStore

logger = logging.getLogger(__name__)


class TelemetryRecorder:
    """Persist one AgentLog per stage call and mirror it into metrics."""

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def record_success(
        self,
        *,
        project_id: str,
        chapter_id: Optional[str],
        role: AgentRole,
        completion: Completion,
    ) -> AgentLog:
        log = AgentLog(
            project_id=project_id,
            chapter_id=chapter_id,
            agent_type=role,
            model=completion.model,
            input_tokens=completion.input_tokens,
            output_tokens=completion.output_tokens,
            duration_ms=completion.duration_ms,
            status=LogOutcome.SUCCESS,
            cost_usd=completion.cost_usd,
        )
        self._store.insert_log(log)
        observe_stage_duration(
            role.value,
            completion.duration_ms / 1000,
            service_name=SERVICE_NAME,
            status=LogOutcome.SUCCESS.value,
        )
        logger.info(
            "Stage completed",
            extra={
                "agent": role.value,
                "model": completion.model,
                "tokens": completion.input_tokens + completion.output_tokens,
                "latency_ms": completion.duration_ms,
                "cost_usd": completion.cost_usd,
                "outcome": LogOutcome.SUCCESS.value,
            },
        )
        return log

    def record_failure(
        self,
        *,
        project_id: str,
        chapter_id: Optional[str],
        role: AgentRole,
        model: str,
        error: BaseException,
        duration_ms: int = 0,
    ) -> AgentLog:
        message = str(error) or type(error).__name__
        log = AgentLog(
            project_id=project_id,
            chapter_id=chapter_id,
            agent_type=role,
            model=model,
            duration_ms=max(duration_ms, 0),
            status=LogOutcome.ERROR,
            error_message=message,
        )
        self._store.insert_log(log)
        observe_stage_duration(
            role.value,
            max(duration_ms, 0) / 1000,
            service_name=SERVICE_NAME,
            status=LogOutcome.ERROR.value,
        )
        logger.error(
            "Stage failed: %s",
            message,
            extra={"agent": role.value, "model": model, "outcome": LogOutcome.ERROR.value},
        )
        return log
