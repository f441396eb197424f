"""Append-only telemetry record for one stage invocation."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..enums import AgentRole, LogOutcome
from .common import new_id, utcnow


class AgentLog(BaseModel):
    """Cost, latency and outcome of a single agent call. Never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    project_id: str
    chapter_id: Optional[str] = None
    agent_type: AgentRole
    model: str
    input_tokens: int = Field(0, ge=0)
    output_tokens: int = Field(0, ge=0)
    duration_ms: int = Field(0, ge=0)
    status: LogOutcome = LogOutcome.SUCCESS
    error_message: Optional[str] = None
    cost_usd: Optional[float] = Field(None, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
