"""Process-local state store used by tests and single-process deployments."""

from __future__ import annotations

import itertools
import threading
from typing import Any, Iterable, Mapping, Optional, Sequence

from content_factory_schemas import AgentLog, Chapter, ChapterStatus, Project
from content_factory_schemas.models.common import utcnow

from .base import StateStore


class InMemoryStateStore(StateStore):
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._projects: dict[str, Project] = {}
        self._chapters: dict[str, Chapter] = {}
        self._logs: dict[str, tuple[int, AgentLog]] = {}
        self._sequence = itertools.count()

    def insert_project(self, project: Project) -> Project:
        with self._lock:
            self._projects[project.id] = project.model_copy(deep=True)
        return project

    def find_project(self, project_id: str, user_id: Optional[str] = None) -> Optional[Project]:
        with self._lock:
            project = self._projects.get(project_id)
            if project is None or (user_id is not None and project.user_id != user_id):
                return None
            return project.model_copy(deep=True)

    def list_projects(self, user_id: str) -> list[Project]:
        with self._lock:
            owned = [p for p in self._projects.values() if p.user_id == user_id]
            owned.sort(key=lambda p: p.updated_at, reverse=True)
            return [p.model_copy(deep=True) for p in owned]

    def save_project(self, project: Project) -> Project:
        project.touch()
        with self._lock:
            self._projects[project.id] = project.model_copy(deep=True)
        return project

    def delete_project(self, project_id: str) -> bool:
        with self._lock:
            return self._projects.pop(project_id, None) is not None

    def insert_chapters(self, chapters: Iterable[Chapter]) -> list[Chapter]:
        inserted = list(chapters)
        with self._lock:
            for chapter in inserted:
                self._chapters[chapter.id] = chapter.model_copy(deep=True)
        return inserted

    def find_chapters(
        self,
        project_id: str,
        *,
        statuses: Optional[Sequence[ChapterStatus]] = None,
    ) -> list[Chapter]:
        with self._lock:
            chapters = [c for c in self._chapters.values() if c.project_id == project_id]
            if statuses is not None:
                chapters = [c for c in chapters if c.status in statuses]
            chapters.sort(key=lambda c: c.order)
            return [c.model_copy(deep=True) for c in chapters]

    def find_chapter(self, chapter_id: str, project_id: Optional[str] = None) -> Optional[Chapter]:
        with self._lock:
            chapter = self._chapters.get(chapter_id)
            if chapter is None or (project_id is not None and chapter.project_id != project_id):
                return None
            return chapter.model_copy(deep=True)

    def save_chapter(self, chapter: Chapter) -> Chapter:
        chapter.touch()
        with self._lock:
            self._chapters[chapter.id] = chapter.model_copy(deep=True)
        return chapter

    def update_chapters(
        self,
        project_id: str,
        values: Mapping[str, Any],
        *,
        status_in: Optional[Sequence[ChapterStatus]] = None,
        status_not_in: Optional[Sequence[ChapterStatus]] = None,
    ) -> int:
        touched = 0
        with self._lock:
            for chapter_id, chapter in list(self._chapters.items()):
                if chapter.project_id != project_id:
                    continue
                if status_in is not None and chapter.status not in status_in:
                    continue
                if status_not_in is not None and chapter.status in status_not_in:
                    continue
                updated = chapter.model_copy(update={**values, "updated_at": utcnow()}, deep=True)
                self._chapters[chapter_id] = Chapter.model_validate(updated.model_dump())
                touched += 1
        return touched

    def count_chapters(self, project_id: str, *, status: Optional[ChapterStatus] = None) -> int:
        with self._lock:
            return sum(
                1
                for c in self._chapters.values()
                if c.project_id == project_id and (status is None or c.status == status)
            )

    def delete_chapters(self, project_id: str) -> int:
        with self._lock:
            doomed = [cid for cid, c in self._chapters.items() if c.project_id == project_id]
            for chapter_id in doomed:
                del self._chapters[chapter_id]
            return len(doomed)

    def insert_log(self, log: AgentLog) -> AgentLog:
        with self._lock:
            self._logs[log.id] = (next(self._sequence), log)
        return log

    def find_logs(self, project_id: str, *, limit: int) -> list[AgentLog]:
        with self._lock:
            entries = [entry for entry in self._logs.values() if entry[1].project_id == project_id]
        # Insertion sequence breaks ties between logs created within the same clock tick.
        entries.sort(key=lambda entry: (entry[1].created_at, entry[0]), reverse=True)
        return [log for _, log in entries[:limit]]

    def delete_logs(self, project_id: str) -> int:
        with self._lock:
            doomed = [lid for lid, (_, log) in self._logs.items() if log.project_id == project_id]
            for log_id in doomed:
                del self._logs[log_id]
            return len(doomed)
