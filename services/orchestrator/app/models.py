"""Pydantic models for orchestrator API."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from content_factory_schemas import AgentConfig, AgentLog, ContentType, ProjectStatus

MIN_TITLE_LENGTH = 3
MAX_DESCRIPTION_LENGTH = 500
MIN_TARGET_PAGES = 1
MAX_TARGET_PAGES = 250


class OutlineItemRequest(BaseModel):
    title: str
    description: Optional[str] = None
    order: Optional[int] = Field(None, ge=1)
    estimated_words: Optional[int] = Field(None, ge=0)
    chapter_key: Optional[str] = None


class CreateProjectRequest(BaseModel):
    """Payload for creating a project from an outline or a chapter count.

    Range checks happen in the orchestrator so that direct callers get the
    same ``ProjectValidationError`` as API clients.
    """

    title: str
    description: Optional[str] = None
    type: ContentType = ContentType.BOOK
    target_pages: int = 50
    outline: List[OutlineItemRequest] = Field(default_factory=list)
    chapter_count: Optional[int] = Field(
        None, ge=1, description="Generate '<title> - Chapter N' entries instead of an outline"
    )
    agent_config: Optional[AgentConfig] = None


class ChapterStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    completed: int = 0
    in_progress: int = Field(0, alias="inProgress")
    pending: int = 0


class TokenUsage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int = 0
    input: int = 0
    output: int = 0
    duration_ms: int = Field(0, alias="durationMs")
    cost_usd: float = Field(0.0, alias="costUsd")
    agent_calls: dict[str, int] = Field(default_factory=dict, alias="agentCalls")


class ProjectAnalytics(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: str = Field(..., alias="projectId")
    status: ProjectStatus
    chapter_stats: ChapterStats = Field(..., alias="chapterStats")
    token_usage: TokenUsage = Field(..., alias="tokenUsage")
    recent_logs: List[AgentLog] = Field(default_factory=list, alias="recentLogs")


class MarkdownExport(BaseModel):
    filename: str
    content: str


class ExportStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    can_export: bool = Field(..., alias="canExport")
    completed_chapters: int = Field(..., alias="completedChapters")
    total_chapters: int = Field(..., alias="totalChapters")
    total_words: int = Field(..., alias="totalWords")
    estimated_pages: int = Field(..., alias="estimatedPages")


class CostEstimate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    estimated_minutes: int = Field(..., alias="estimatedMinutes")
    estimated_tokens: int = Field(..., alias="estimatedTokens")
    estimated_cost_usd: float = Field(..., alias="estimatedCostUsd")


class DeleteResponse(BaseModel):
    deleted: bool
    project_id: str
    deleted_at: datetime
