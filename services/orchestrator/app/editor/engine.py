"""Editor stage: review the chapter and expand it towards the word goal."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from content_factory_schemas import AgentRole, Chapter, Project, count_words

from ..errors import ParseError, UpstreamError
from ..stages import StageDependencies, StageOutcome
from .prompts import EDITOR_REVIEW_PROMPT, EDITOR_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class EditorReview(BaseModel):
    """JSON object the editor is asked to reply with."""

    model_config = ConfigDict(populate_by_name=True)

    status: Optional[str] = None
    summary: Optional[str] = None
    key_points: list[str] = Field(default_factory=list, alias="keyPoints")
    suggestions: list[str] = Field(default_factory=list)
    final_content: Optional[str] = Field(None, alias="finalContent")

    @field_validator("key_points", "suggestions", mode="before")
    @classmethod
    def _keep_text_items(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]

    @field_validator("status", "summary", "final_content", mode="before")
    @classmethod
    def _text_or_none(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        return value.strip() or None


def _strip_fences(payload: str) -> str:
    text = payload.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text.strip()


def parse_review(payload: str) -> EditorReview:
    try:
        data = json.loads(_strip_fences(payload))
    except json.JSONDecodeError as exc:
        raise ParseError("Editor response was not valid JSON") from exc
    if not isinstance(data, dict):
        raise ParseError("Editor response was not a JSON object")
    try:
        return EditorReview.model_validate(data)
    except ValidationError as exc:
        raise ParseError("Editor response did not match the review format") from exc


def run_editor(
    project: Project,
    chapter: Chapter,
    deps: StageDependencies,
    *,
    target_words: int,
) -> StageOutcome:
    """Store the reviewed text plus summary, key points and suggestions.

    A reply that cannot be decoded keeps the current text as the reviewed
    version; the call itself still counts as a success.
    """

    model = project.agent_config.model_for(AgentRole.EDITOR)
    current_text = chapter.review_source()
    prompt = EDITOR_REVIEW_PROMPT.format(
        content_type=project.type.value,
        current_words=count_words(current_text),
        target_words=target_words,
        current_text=current_text,
    )

    try:
        completion = deps.client.complete(
            model,
            EDITOR_SYSTEM_PROMPT,
            prompt,
            stage=AgentRole.EDITOR.value,
            json_mode=True,
        )
    except UpstreamError as exc:
        deps.telemetry.record_failure(
            project_id=project.id,
            chapter_id=chapter.id,
            role=AgentRole.EDITOR,
            model=exc.model,
            error=exc,
            duration_ms=exc.duration_ms,
        )
        return StageOutcome.failure(AgentRole.EDITOR, exc)

    try:
        review = parse_review(completion.content)
    except ParseError as exc:
        logger.warning(
            "Editor reply could not be parsed, keeping current text: %s",
            exc,
            extra={"chapter_order": chapter.order, "model": completion.model},
        )
        review = EditorReview()

    chapter.apply_review(
        review.final_content or current_text,
        summary=review.summary,
        key_points=review.key_points,
        connections=review.suggestions,
    )
    deps.store.save_chapter(chapter)
    deps.telemetry.record_success(
        project_id=project.id,
        chapter_id=chapter.id,
        role=AgentRole.EDITOR,
        completion=completion,
    )
    return StageOutcome.success(AgentRole.EDITOR, completion)
