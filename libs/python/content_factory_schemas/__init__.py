"""Shared schemas for the Content Factory generation pipeline."""

from .enums import (
    PROJECT_TRANSITIONS,
    TERMINAL_CHAPTER_STATUSES,
    TERMINAL_PROJECT_STATUSES,
    AgentRole,
    ChapterStatus,
    ContentType,
    LogOutcome,
    ProjectStatus,
    can_transition,
)
from .models import (
    DEFAULT_AGENT_MODEL,
    AgentConfig,
    AgentLog,
    Chapter,
    ImagePrompt,
    OutlineItem,
    Project,
)
from .utils.validators import count_words, slugify

__all__ = [
    "PROJECT_TRANSITIONS",
    "TERMINAL_CHAPTER_STATUSES",
    "TERMINAL_PROJECT_STATUSES",
    "AgentRole",
    "ChapterStatus",
    "ContentType",
    "LogOutcome",
    "ProjectStatus",
    "can_transition",
    "DEFAULT_AGENT_MODEL",
    "AgentConfig",
    "AgentLog",
    "Chapter",
    "ImagePrompt",
    "OutlineItem",
    "Project",
    "count_words",
    "slugify",
]
