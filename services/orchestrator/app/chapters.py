"""Chapter orchestrator: writer, then best-effort illustrator and editor."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from content_factory_observability import log_context, observe_chapter_run
from content_factory_schemas import AgentRole, Chapter, ChapterStatus, Project

from .completion import SERVICE_NAME
from .editor.engine import run_editor
from .errors import InvalidStateError
from .illustrator.engine import run_illustrator
from .stages import StageDependencies, StageOutcome, target_word_count
from .writer.engine import run_writer

logger = logging.getLogger(__name__)


class ChapterOrchestrator:
    """Run the stage pipeline for a single chapter."""

    def __init__(self, deps: StageDependencies) -> None:
        self._deps = deps

    def run(self, project: Project, chapter: Chapter, *, regenerate: bool = False) -> Chapter:
        """Generate ``chapter`` and return it in its final state.

        Only ``pending`` chapters are accepted unless ``regenerate`` is set,
        in which case text fields are overwritten while earlier image
        prompts are kept. Writer failures propagate as ``UpstreamError``.
        """

        if not regenerate and chapter.status != ChapterStatus.PENDING:
            raise InvalidStateError(
                f"Chapter {chapter.order} is {chapter.status.value}; only pending chapters can be generated"
            )

        target_words = target_word_count(project, self._deps.settings)
        with log_context(project_id=project.id, chapter_id=chapter.id, chapter_order=chapter.order):
            logger.info(
                "Chapter pipeline started",
                extra={"regenerate": regenerate, "target_words": target_words},
            )
            try:
                with log_context(stage="writer"):
                    run_writer(project, chapter, self._deps, target_words=target_words)
            except Exception:
                observe_chapter_run(ChapterStatus.PAUSED.value, service_name=SERVICE_NAME)
                raise

            with log_context(stage="illustrator"):
                self._best_effort(
                    AgentRole.ILLUSTRATOR,
                    chapter,
                    lambda: run_illustrator(project, chapter, self._deps),
                )
            with log_context(stage="editor"):
                self._best_effort(
                    AgentRole.EDITOR,
                    chapter,
                    lambda: run_editor(project, chapter, self._deps, target_words=target_words),
                )

            observe_chapter_run(chapter.status.value, service_name=SERVICE_NAME)
            logger.info(
                "Chapter pipeline finished",
                extra={"word_count": chapter.word_count, "images": len(chapter.images)},
            )
        return chapter

    @staticmethod
    def _best_effort(
        role: AgentRole, chapter: Chapter, stage: Callable[[], StageOutcome]
    ) -> Optional[StageOutcome]:
        try:
            outcome = stage()
        except Exception:
            logger.exception(
                "Best-effort %s stage raised for chapter %s",
                role.value,
                chapter.order,
                extra={"agent": role.value},
            )
            return None
        if outcome.ok:
            return outcome
        logger.warning(
            "Best-effort %s stage failed for chapter %s: %s",
            outcome.role.value,
            chapter.order,
            outcome.error,
            extra={"agent": outcome.role.value},
        )
        return outcome
