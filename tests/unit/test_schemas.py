"""Smoke tests for Pydantic schema validation."""

import pytest
from pydantic import ValidationError

from content_factory_schemas import (
    AgentConfig,
    AgentLog,
    AgentRole,
    Chapter,
    ChapterStatus,
    OutlineItem,
    Project,
    ProjectStatus,
    can_transition,
    count_words,
    slugify,
)


def test_count_words_splits_on_any_whitespace() -> None:
    assert count_words("one  two\nthree\tfour ") == 4
    assert count_words("") == 0
    assert count_words(None) == 0


def test_slugify_strips_accents_and_punctuation() -> None:
    assert slugify("Introdução à Programação!") == "introducao-a-programacao"
    assert slugify("???") == ""


def test_word_count_follows_authoritative_text() -> None:
    chapter = Chapter(project_id="p1", order=1, title="Intro")
    chapter.apply_draft("one two three")
    assert chapter.draft_content == chapter.final_content == "one two three"
    assert chapter.word_count == 3

    chapter.apply_review("one two three four five")
    assert chapter.word_count == 5

    chapter.apply_draft("fresh draft")
    assert chapter.reviewed_content is None
    assert chapter.word_count == 2


def test_fresh_draft_drops_earlier_review_notes() -> None:
    chapter = Chapter(project_id="p1", order=1, title="Intro")
    chapter.apply_draft("first draft")
    chapter.apply_review(
        "reviewed text",
        summary="About the first draft.",
        key_points=["point"],
        connections=["link"],
    )
    chapter.add_image_prompt("harbour at dawn", "m")

    chapter.apply_draft("second draft")

    assert chapter.context_summary is None
    assert chapter.key_points == []
    assert chapter.connections == []
    assert [image.prompt for image in chapter.images] == ["harbour at dawn"]


def test_review_source_prefers_final_text() -> None:
    chapter = Chapter(
        project_id="p1",
        order=1,
        title="Intro",
        draft_content="draft",
        reviewed_content="reviewed",
        final_content="final",
    )
    assert chapter.review_source() == "final"
    assert chapter.authoritative_content() == "reviewed"


def test_image_prompts_accumulate() -> None:
    chapter = Chapter(project_id="p1", order=1, title="Intro")
    chapter.add_image_prompt("a quiet harbour", "deepseek/deepseek-v3.2-exp")
    chapter.add_image_prompt("a busy market", "deepseek/deepseek-v3.2-exp")
    assert [image.prompt for image in chapter.images] == ["a quiet harbour", "a busy market"]
    assert all(image.type == "prompt" for image in chapter.images)


def test_chapter_order_is_one_based() -> None:
    with pytest.raises(ValidationError):
        Chapter(project_id="p1", order=0, title="Intro")


def test_agent_config_maps_illustrator_to_artist() -> None:
    config = AgentConfig(artist="openai/gpt-4o-mini")
    assert AgentRole.ILLUSTRATOR is AgentRole.ARTIST
    assert config.model_for(AgentRole.ILLUSTRATOR) == "openai/gpt-4o-mini"
    assert config.model_for(AgentRole.WRITER) == "deepseek/deepseek-v3.2-exp"


def test_agent_log_is_immutable() -> None:
    log = AgentLog(project_id="p1", agent_type=AgentRole.WRITER, model="m", input_tokens=3)
    with pytest.raises(ValidationError):
        log.input_tokens = 5


def test_project_defaults() -> None:
    project = Project(
        user_id="u1",
        title="Field Guide",
        outline=[OutlineItem(order=1, title="Intro")],
        total_chapters=1,
    )
    assert project.status is ProjectStatus.PLANNING
    assert project.current_chapter == 0
    assert not project.is_terminal
    assert project.outline[0].chapter_key


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (ProjectStatus.PLANNING, ProjectStatus.IN_PROGRESS, True),
        (ProjectStatus.IN_PROGRESS, ProjectStatus.PAUSED, True),
        (ProjectStatus.PAUSED, ProjectStatus.IN_PROGRESS, True),
        (ProjectStatus.PLANNING, ProjectStatus.COMPLETED, False),
        (ProjectStatus.COMPLETED, ProjectStatus.IN_PROGRESS, False),
        (ProjectStatus.CANCELLED, ProjectStatus.PAUSED, False),
    ],
)
def test_project_transitions(current, target, allowed) -> None:
    assert can_transition(current, target) is allowed


def test_terminal_chapter_statuses() -> None:
    assert Chapter(project_id="p", order=1, title="t", status=ChapterStatus.CANCELLED).is_terminal
    assert not Chapter(project_id="p", order=1, title="t", status=ChapterStatus.PAUSED).is_terminal
