"""Key-based CRUD surface the orchestrator needs from its document store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Sequence

from content_factory_schemas import AgentLog, Chapter, ChapterStatus, Project


class StateStore(ABC):
    """Persistence for projects, chapters and agent logs.

    Documents are copied on the way in and out: callers mutate their own
    instances and persist them explicitly with ``save_*``. There is no
    version check, so the last write wins.
    """

    # Projects

    @abstractmethod
    def insert_project(self, project: Project) -> Project: ...

    @abstractmethod
    def find_project(self, project_id: str, user_id: Optional[str] = None) -> Optional[Project]:
        """Return the project, restricted to ``user_id`` when given."""

    @abstractmethod
    def list_projects(self, user_id: str) -> list[Project]:
        """Projects owned by ``user_id``, most recently updated first."""

    @abstractmethod
    def save_project(self, project: Project) -> Project: ...

    @abstractmethod
    def delete_project(self, project_id: str) -> bool: ...

    # Chapters

    @abstractmethod
    def insert_chapters(self, chapters: Iterable[Chapter]) -> list[Chapter]: ...

    @abstractmethod
    def find_chapters(
        self,
        project_id: str,
        *,
        statuses: Optional[Sequence[ChapterStatus]] = None,
    ) -> list[Chapter]:
        """Chapters of a project sorted by ``order``, optionally filtered by status."""

    @abstractmethod
    def find_chapter(self, chapter_id: str, project_id: Optional[str] = None) -> Optional[Chapter]: ...

    @abstractmethod
    def save_chapter(self, chapter: Chapter) -> Chapter: ...

    @abstractmethod
    def update_chapters(
        self,
        project_id: str,
        values: Mapping[str, Any],
        *,
        status_in: Optional[Sequence[ChapterStatus]] = None,
        status_not_in: Optional[Sequence[ChapterStatus]] = None,
    ) -> int:
        """Bulk field update by filter; returns the number of chapters touched."""

    @abstractmethod
    def count_chapters(self, project_id: str, *, status: Optional[ChapterStatus] = None) -> int: ...

    @abstractmethod
    def delete_chapters(self, project_id: str) -> int: ...

    # Agent logs

    @abstractmethod
    def insert_log(self, log: AgentLog) -> AgentLog: ...

    @abstractmethod
    def find_logs(self, project_id: str, *, limit: int) -> list[AgentLog]:
        """Most recent logs first, at most ``limit`` entries."""

    @abstractmethod
    def delete_logs(self, project_id: str) -> int: ...
