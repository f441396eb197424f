"""Project documents: outline, agent configuration and aggregate status."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..enums import TERMINAL_PROJECT_STATUSES, AgentRole, ContentType, ProjectStatus
from .common import new_id, utcnow

DEFAULT_AGENT_MODEL = "deepseek/deepseek-v3.2-exp"


class OutlineItem(BaseModel):
    """One planned chapter of the outline supplied at project creation."""

    order: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    estimated_words: Optional[int] = Field(None, ge=0)
    chapter_key: str = Field(default_factory=new_id, description="Stable key shared with the chapter")


class AgentConfig(BaseModel):
    """Model identifier used by each agent role."""

    editor: str = DEFAULT_AGENT_MODEL
    researcher: str = DEFAULT_AGENT_MODEL
    writer: str = DEFAULT_AGENT_MODEL
    reviewer: str = DEFAULT_AGENT_MODEL
    # A text model produces the illustration prompts; no image endpoint is called.
    artist: str = DEFAULT_AGENT_MODEL

    def model_for(self, role: AgentRole) -> str:
        return getattr(self, AgentRole(role).value)


class Project(BaseModel):
    """User-owned unit of work containing an outline and aggregate progress."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_id)
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    type: ContentType = ContentType.BOOK
    target_pages: int = Field(50, ge=1)
    status: ProjectStatus = ProjectStatus.PLANNING
    global_summary: Optional[str] = None
    outline: list[OutlineItem] = Field(default_factory=list)
    agent_config: AgentConfig = Field(default_factory=AgentConfig)
    current_chapter: int = Field(0, ge=0)
    total_chapters: int = Field(0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_PROJECT_STATUSES

    def touch(self) -> None:
        self.updated_at = utcnow()
