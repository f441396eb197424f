"""Enum definitions shared across the generation pipeline."""

from __future__ import annotations

from enum import Enum


class ContentType(str, Enum):
    BOOK = "book"
    COURSE = "course"
    ARTICLE = "article"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class ChapterStatus(str, Enum):
    PENDING = "pending"
    RESEARCHING = "researching"
    WRITING = "writing"
    REVIEWING = "reviewing"
    GENERATING_IMAGES = "generating_images"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class AgentRole(str, Enum):
    EDITOR = "editor"
    RESEARCHER = "researcher"
    WRITER = "writer"
    REVIEWER = "reviewer"
    ARTIST = "artist"

    # The illustrator stage logs under the artist role.
    ILLUSTRATOR = ARTIST


class LogOutcome(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


TERMINAL_PROJECT_STATUSES = frozenset({ProjectStatus.COMPLETED, ProjectStatus.CANCELLED})
TERMINAL_CHAPTER_STATUSES = frozenset({ChapterStatus.COMPLETED, ChapterStatus.CANCELLED})

PROJECT_TRANSITIONS: dict[ProjectStatus, frozenset[ProjectStatus]] = {
    ProjectStatus.PLANNING: frozenset(
        {ProjectStatus.IN_PROGRESS, ProjectStatus.PAUSED, ProjectStatus.CANCELLED}
    ),
    ProjectStatus.IN_PROGRESS: frozenset(
        {
            ProjectStatus.IN_PROGRESS,
            ProjectStatus.PAUSED,
            ProjectStatus.COMPLETED,
            ProjectStatus.CANCELLED,
        }
    ),
    ProjectStatus.PAUSED: frozenset(
        {ProjectStatus.IN_PROGRESS, ProjectStatus.PAUSED, ProjectStatus.CANCELLED}
    ),
    ProjectStatus.COMPLETED: frozenset(),
    ProjectStatus.CANCELLED: frozenset(),
}


def can_transition(current: ProjectStatus, target: ProjectStatus) -> bool:
    """Return whether the project state machine allows ``current`` -> ``target``."""

    return target in PROJECT_TRANSITIONS.get(current, frozenset())
