"""Illustrator stage: derive one image prompt from the chapter text."""

from __future__ import annotations

import logging

from content_factory_schemas import AgentRole, Chapter, Project

from ..errors import UpstreamError
from ..stages import StageDependencies, StageOutcome
from .prompts import FALLBACK_CONTEXT, ILLUSTRATOR_PROMPT, ILLUSTRATOR_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def chapter_snippet(project: Project, chapter: Chapter, limit: int) -> str:
    base = chapter.final_content or chapter.draft_content or project.description or FALLBACK_CONTEXT
    return base[:limit]


def _single_line(text: str) -> str:
    return " ".join(text.split())


def run_illustrator(project: Project, chapter: Chapter, deps: StageDependencies) -> StageOutcome:
    """Append an image prompt to ``chapter``; never changes its status."""

    model = project.agent_config.model_for(AgentRole.ILLUSTRATOR)
    prompt = ILLUSTRATOR_PROMPT.format(
        order=chapter.order,
        title=chapter.title,
        snippet=chapter_snippet(project, chapter, deps.settings.illustrator_snippet_chars),
    )

    try:
        completion = deps.client.complete(
            model,
            ILLUSTRATOR_SYSTEM_PROMPT,
            prompt,
            stage=AgentRole.ILLUSTRATOR.value,
        )
    except UpstreamError as exc:
        deps.telemetry.record_failure(
            project_id=project.id,
            chapter_id=chapter.id,
            role=AgentRole.ILLUSTRATOR,
            model=exc.model,
            error=exc,
            duration_ms=exc.duration_ms,
        )
        return StageOutcome.failure(AgentRole.ILLUSTRATOR, exc)

    chapter.add_image_prompt(_single_line(completion.content), completion.model)
    deps.store.save_chapter(chapter)
    deps.telemetry.record_success(
        project_id=project.id,
        chapter_id=chapter.id,
        role=AgentRole.ILLUSTRATOR,
        completion=completion,
    )
    logger.debug("Image prompt stored", extra={"chapter_order": chapter.order})
    return StageOutcome.success(AgentRole.ILLUSTRATOR, completion)
