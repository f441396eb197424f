"""Writer stage: produce the first full draft of a chapter."""

from __future__ import annotations

import logging

from content_factory_schemas import AgentRole, Chapter, ChapterStatus, Project

from ..completion import Completion
from ..errors import UpstreamError
from ..stages import StageDependencies
from .prompts import WRITER_CHAPTER_PROMPT, WRITER_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


def build_writer_prompt(project: Project, chapter: Chapter, target_words: int) -> str:
    brief = ""
    for item in project.outline:
        if item.chapter_key == chapter.chapter_key and item.description:
            brief = f"- Brief: {item.description}\n"
            break
    return WRITER_CHAPTER_PROMPT.format(
        title=project.title,
        content_type=project.type.value,
        description=project.description or "(no description)",
        target_pages=project.target_pages,
        order=chapter.order,
        chapter_title=chapter.title,
        chapter_brief=brief,
        target_words=target_words,
    )


def run_writer(
    project: Project,
    chapter: Chapter,
    deps: StageDependencies,
    *,
    target_words: int,
) -> Completion:
    """Draft ``chapter`` and mark it completed.

    On an upstream failure the chapter is parked as ``paused``, an error
    AgentLog is written and the ``UpstreamError`` is re-raised so the
    remaining stages never run.
    """

    model = project.agent_config.model_for(AgentRole.WRITER)
    prompt = build_writer_prompt(project, chapter, target_words)

    chapter.status = ChapterStatus.WRITING
    deps.store.save_chapter(chapter)
    logger.info(
        "Writing chapter %s of project %s",
        chapter.order,
        project.id,
        extra={"model": model, "chapter_order": chapter.order},
    )

    try:
        completion = deps.client.complete(
            model,
            WRITER_SYSTEM_PROMPT,
            prompt,
            stage=AgentRole.WRITER.value,
        )
    except UpstreamError as exc:
        deps.telemetry.record_failure(
            project_id=project.id,
            chapter_id=chapter.id,
            role=AgentRole.WRITER,
            model=exc.model,
            error=exc,
            duration_ms=exc.duration_ms,
        )
        chapter.status = ChapterStatus.PAUSED
        deps.store.save_chapter(chapter)
        raise

    chapter.apply_draft(completion.content)
    chapter.status = ChapterStatus.COMPLETED
    deps.store.save_chapter(chapter)
    deps.telemetry.record_success(
        project_id=project.id,
        chapter_id=chapter.id,
        role=AgentRole.WRITER,
        completion=completion,
    )
    return completion
