"""Project orchestrator: creation, lifecycle control and pending-chapter sweeps."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from content_factory_observability import log_context
from content_factory_schemas import (
    AgentConfig,
    AgentLog,
    Chapter,
    ChapterStatus,
    ContentType,
    OutlineItem,
    Project,
    ProjectStatus,
    TERMINAL_CHAPTER_STATUSES,
    can_transition,
)

from .analytics import build_project_analytics, estimate_project_cost
from .chapters import ChapterOrchestrator
from .completion import CompletionClient
from .config import OrchestratorSettings
from .errors import InvalidStateError, OwnershipError, ProjectValidationError, UpstreamError
from .export import export_status, render_markdown
from .locks import ProjectLockRegistry
from .models import (
    MIN_TARGET_PAGES,
    MAX_DESCRIPTION_LENGTH,
    MAX_TARGET_PAGES,
    MIN_TITLE_LENGTH,
    CostEstimate,
    ExportStatus,
    MarkdownExport,
    OutlineItemRequest,
    ProjectAnalytics,
)
from .stages import StageDependencies
from .store import StateStore
from .telemetry import TelemetryRecorder

logger = logging.getLogger(__name__)

_TERMINAL_CHAPTERS = tuple(TERMINAL_CHAPTER_STATUSES)


class ProjectOrchestrator:
    """Entry point for every operation the API and CLI layers expose."""

    def __init__(
        self,
        store: StateStore,
        client: CompletionClient,
        *,
        settings: Optional[OrchestratorSettings] = None,
        telemetry: Optional[TelemetryRecorder] = None,
        locks: Optional[ProjectLockRegistry] = None,
    ) -> None:
        self.store = store
        self.settings = settings or OrchestratorSettings()
        self.locks = locks or ProjectLockRegistry()
        self.deps = StageDependencies(
            store=store,
            client=client,
            telemetry=telemetry or TelemetryRecorder(store),
            settings=self.settings,
        )
        self.chapters = ChapterOrchestrator(self.deps)

    # Creation

    def create_project(
        self,
        user_id: str,
        *,
        title: str,
        outline: Sequence[OutlineItemRequest],
        description: Optional[str] = None,
        type: ContentType = ContentType.BOOK,
        target_pages: int = 50,
        agent_config: Optional[AgentConfig] = None,
    ) -> Project:
        """Create a ``planning`` project plus one ``pending`` chapter per outline entry."""

        title = self._validate_fields(title, description, target_pages)
        if not outline:
            raise ProjectValidationError("outline must contain at least one chapter")

        default_words = (target_pages * self.settings.words_per_page) // len(outline)
        try:
            items = [
                OutlineItem(
                    order=entry.order if entry.order is not None else index,
                    title=entry.title.strip(),
                    description=entry.description,
                    estimated_words=(
                        entry.estimated_words if entry.estimated_words is not None else default_words
                    ),
                    **({"chapter_key": entry.chapter_key} if entry.chapter_key else {}),
                )
                for index, entry in enumerate(outline, start=1)
            ]
            project = Project(
                user_id=user_id,
                title=title,
                description=description,
                type=type,
                target_pages=target_pages,
                outline=items,
                agent_config=agent_config or AgentConfig(),
                total_chapters=len(items),
            )
        except ValidationError as exc:
            raise ProjectValidationError(str(exc)) from exc

        orders = [item.order for item in items]
        if len(set(orders)) != len(orders):
            raise ProjectValidationError("outline orders must be unique")

        self.store.insert_project(project)
        self.store.insert_chapters(
            Chapter(
                project_id=project.id,
                chapter_key=item.chapter_key,
                order=item.order,
                title=item.title,
            )
            for item in items
        )
        logger.info(
            "Project created",
            extra={"project_id": project.id, "total_chapters": project.total_chapters},
        )
        return project

    def create_project_with_chapter_count(
        self,
        user_id: str,
        *,
        title: str,
        chapter_count: int,
        description: Optional[str] = None,
        type: ContentType = ContentType.BOOK,
        target_pages: int = 50,
        agent_config: Optional[AgentConfig] = None,
    ) -> Project:
        if chapter_count < 1:
            raise ProjectValidationError("chapter count must be at least 1")
        outline = [
            OutlineItemRequest(title=f"{title.strip()} - Chapter {number}", order=number)
            for number in range(1, chapter_count + 1)
        ]
        return self.create_project(
            user_id,
            title=title,
            outline=outline,
            description=description,
            type=type,
            target_pages=target_pages,
            agent_config=agent_config,
        )

    def add_outline_item(
        self,
        user_id: str,
        project_id: str,
        item: OutlineItemRequest,
    ) -> Chapter:
        """Append an outline entry and its ``pending`` chapter to an unfinished project."""

        project = self._owned_project(user_id, project_id)
        if project.is_terminal:
            raise InvalidStateError(f"Cannot extend a {project.status.value} project")
        if not item.title or not item.title.strip():
            raise ProjectValidationError("outline item title must not be empty")

        existing = self.store.find_chapters(project.id)
        next_order = max((c.order for c in existing), default=0) + 1
        order = item.order if item.order is not None else next_order
        if any(c.order == order for c in existing):
            raise ProjectValidationError(f"chapter order {order} is already taken")

        try:
            outline_item = OutlineItem(
                order=order,
                title=item.title.strip(),
                description=item.description,
                estimated_words=item.estimated_words,
                **({"chapter_key": item.chapter_key} if item.chapter_key else {}),
            )
        except ValidationError as exc:
            raise ProjectValidationError(str(exc)) from exc

        chapter = Chapter(
            project_id=project.id,
            chapter_key=outline_item.chapter_key,
            order=outline_item.order,
            title=outline_item.title,
        )
        project.outline = sorted([*project.outline, outline_item], key=lambda entry: entry.order)
        project.total_chapters += 1
        self.store.insert_chapters([chapter])
        self.store.save_project(project)
        return chapter

    # Reads

    def list_projects(self, user_id: str) -> list[Project]:
        return self.store.list_projects(user_id)

    def get_project(self, user_id: str, project_id: str) -> Project:
        return self._owned_project(user_id, project_id)

    def get_chapters(self, user_id: str, project_id: str) -> list[Chapter]:
        project = self._owned_project(user_id, project_id)
        return self.store.find_chapters(project.id)

    def get_agent_logs(self, user_id: str, project_id: str) -> list[AgentLog]:
        project = self._owned_project(user_id, project_id)
        return self.store.find_logs(project.id, limit=self.settings.recent_log_limit)

    def get_project_analytics(self, project_id: str, *, user_id: Optional[str] = None) -> ProjectAnalytics:
        project = self.store.find_project(project_id, user_id)
        if project is None:
            raise OwnershipError(f"Project {project_id} not found")
        chapters = self.store.find_chapters(project.id)
        logs = self.store.find_logs(project.id, limit=self.settings.analytics_log_limit)
        return build_project_analytics(project, chapters, logs)

    def export_markdown(self, user_id: str, project_id: str) -> MarkdownExport:
        project = self._owned_project(user_id, project_id)
        return render_markdown(project, self.store.find_chapters(project.id))

    def export_status(self, user_id: str, project_id: str) -> ExportStatus:
        project = self._owned_project(user_id, project_id)
        return export_status(
            self.store.find_chapters(project.id),
            words_per_page=self.settings.words_per_page,
        )

    def estimate_project_cost(self, target_pages: int, total_chapters: int) -> CostEstimate:
        return estimate_project_cost(
            target_pages,
            total_chapters,
            words_per_page=self.settings.words_per_page,
        )

    # Generation

    def run_pending_chapters(self, user_id: str, project_id: str) -> Project:
        """Generate every ``pending`` chapter in ascending order, one at a time.

        The sweep stops early when the project leaves ``in_progress`` and
        skips chapters that stopped being ``pending`` after it started. A
        writer failure aborts the sweep unless
        ``continue_on_chapter_failure`` is enabled; progress counters are
        recomputed either way.
        """

        project = self._owned_project(user_id, project_id)
        self._require_runnable(project)

        with self.locks.hold(project.id), log_context(project_id=project.id):
            project = self._owned_project(user_id, project_id)
            self._require_runnable(project)
            project.status = ProjectStatus.IN_PROGRESS
            self.store.save_project(project)

            pending = self.store.find_chapters(project.id, statuses=[ChapterStatus.PENDING])
            logger.info("Generation sweep started", extra={"pending_chapters": len(pending)})
            if not pending:
                logger.info("No pending chapters found")

            failures = 0
            try:
                for queued in pending:
                    current = self.store.find_project(project.id)
                    if current is None or current.status != ProjectStatus.IN_PROGRESS:
                        logger.info(
                            "Project left in_progress, stopping sweep",
                            extra={"status": current.status.value if current else None},
                        )
                        break
                    chapter = self.store.find_chapter(queued.id, project.id)
                    if chapter is None or chapter.status != ChapterStatus.PENDING:
                        logger.info(
                            "Skipping chapter %s, no longer pending",
                            queued.order,
                            extra={"chapter_id": queued.id},
                        )
                        continue
                    try:
                        self.chapters.run(current, chapter)
                    except UpstreamError:
                        failures += 1
                        if not self.settings.continue_on_chapter_failure:
                            raise
                        logger.exception(
                            "Chapter %s failed, continuing with the remaining chapters",
                            chapter.order,
                            extra={"chapter_id": chapter.id},
                        )
            finally:
                finished = self._refresh_progress(project.id, allow_completion=True)

            logger.info(
                "Generation sweep finished",
                extra={
                    "completed_chapters": finished.current_chapter if finished else None,
                    "total_chapters": finished.total_chapters if finished else None,
                    "failed_chapters": failures,
                },
            )
        if finished is None:
            raise OwnershipError(f"Project {project_id} was deleted during generation")
        return finished

    def regenerate_chapter(self, user_id: str, project_id: str, chapter_id: str) -> Chapter:
        """Re-run the pipeline for one chapter regardless of its status.

        Text fields are overwritten; image prompts from earlier runs are kept.
        """

        project = self._owned_project(user_id, project_id)
        chapter = self.store.find_chapter(chapter_id, project.id)
        if chapter is None:
            raise OwnershipError(f"Chapter {chapter_id} not found in project {project_id}")

        with self.locks.hold(project.id), log_context(project_id=project.id):
            logger.info("Regenerating chapter %s", chapter.order, extra={"chapter_id": chapter.id})
            try:
                return self.chapters.run(project, chapter, regenerate=True)
            finally:
                self._refresh_progress(project.id, allow_completion=False)

    # Lifecycle

    def pause_project(self, user_id: str, project_id: str) -> Project:
        project = self._owned_project(user_id, project_id)
        if not can_transition(project.status, ProjectStatus.PAUSED):
            raise InvalidStateError(f"Cannot pause a {project.status.value} project")
        project.status = ProjectStatus.PAUSED
        self.store.save_project(project)
        halted = self.store.update_chapters(
            project.id,
            {"status": ChapterStatus.PAUSED},
            status_not_in=_TERMINAL_CHAPTERS,
        )
        logger.info("Project paused", extra={"project_id": project.id, "halted_chapters": halted})
        return project

    def resume_project(self, user_id: str, project_id: str) -> Project:
        project = self._owned_project(user_id, project_id)
        if project.status != ProjectStatus.PAUSED:
            raise InvalidStateError(
                f"Only paused projects can be resumed; project is {project.status.value}"
            )
        project.status = ProjectStatus.IN_PROGRESS
        self.store.save_project(project)
        requeued = self.store.update_chapters(
            project.id,
            {"status": ChapterStatus.PENDING},
            status_in=[ChapterStatus.PAUSED],
        )
        logger.info("Project resumed", extra={"project_id": project.id, "requeued_chapters": requeued})
        return project

    def cancel_project(self, user_id: str, project_id: str) -> Project:
        project = self._owned_project(user_id, project_id)
        if project.status == ProjectStatus.CANCELLED:
            return project
        if not can_transition(project.status, ProjectStatus.CANCELLED):
            raise InvalidStateError(f"Cannot cancel a {project.status.value} project")
        project.status = ProjectStatus.CANCELLED
        self.store.save_project(project)
        halted = self.store.update_chapters(
            project.id,
            {"status": ChapterStatus.CANCELLED},
            status_not_in=_TERMINAL_CHAPTERS,
        )
        logger.info("Project cancelled", extra={"project_id": project.id, "halted_chapters": halted})
        return project

    def delete_project(self, user_id: str, project_id: str) -> bool:
        project = self._owned_project(user_id, project_id)
        chapters = self.store.delete_chapters(project.id)
        logs = self.store.delete_logs(project.id)
        deleted = self.store.delete_project(project.id)
        logger.info(
            "Project deleted",
            extra={"project_id": project.id, "deleted_chapters": chapters, "deleted_logs": logs},
        )
        return deleted

    # Helpers

    def _owned_project(self, user_id: str, project_id: str) -> Project:
        project = self.store.find_project(project_id, user_id)
        if project is None:
            raise OwnershipError(f"Project {project_id} not found")
        return project

    @staticmethod
    def _require_runnable(project: Project) -> None:
        if not can_transition(project.status, ProjectStatus.IN_PROGRESS):
            raise InvalidStateError(
                f"Cannot generate chapters for a {project.status.value} project"
            )

    def _refresh_progress(self, project_id: str, *, allow_completion: bool) -> Optional[Project]:
        project = self.store.find_project(project_id)
        if project is None:
            return None
        completed = self.store.count_chapters(project_id, status=ChapterStatus.COMPLETED)
        project.current_chapter = completed
        if (
            allow_completion
            and project.status == ProjectStatus.IN_PROGRESS
            and project.total_chapters > 0
            and completed >= project.total_chapters
        ):
            project.status = ProjectStatus.COMPLETED
        self.store.save_project(project)
        return project

    def _validate_fields(self, title: str, description: Optional[str], target_pages: int) -> str:
        cleaned = (title or "").strip()
        if len(cleaned) < MIN_TITLE_LENGTH:
            raise ProjectValidationError(f"title must have at least {MIN_TITLE_LENGTH} characters")
        if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
            raise ProjectValidationError(
                f"description must have at most {MAX_DESCRIPTION_LENGTH} characters"
            )
        if not MIN_TARGET_PAGES <= target_pages <= MAX_TARGET_PAGES:
            raise ProjectValidationError(
                f"target pages must be between {MIN_TARGET_PAGES} and {MAX_TARGET_PAGES}"
            )
        return cleaned
