"""Tests for the per-chapter pipeline sequencing."""

from __future__ import annotations

import pytest

from content_factory_schemas import AgentRole, Chapter, ChapterStatus, LogOutcome, Project

from services.orchestrator.app.chapters import ChapterOrchestrator
from services.orchestrator.app.errors import InvalidStateError, UpstreamError
from tests.utils.stubs import REVIEWED_TEXT


def _seed(store, status=ChapterStatus.PENDING) -> tuple[Project, Chapter]:
    project = Project(user_id="u1", title="Harbour Guide", target_pages=10, total_chapters=1)
    chapter = Chapter(project_id=project.id, order=1, title="Intro", status=status)
    store.insert_project(project)
    store.insert_chapters([chapter])
    return project, chapter


def _log_pairs(store, project_id):
    logs = reversed(store.find_logs(project_id, limit=50))
    return [(log.agent_type, log.status) for log in logs]


def test_stages_run_in_order(store, provider, deps) -> None:
    project, chapter = _seed(store)

    result = ChapterOrchestrator(deps).run(project, chapter)

    assert provider.stages() == ["writer", "artist", "editor"]
    assert result.status is ChapterStatus.COMPLETED
    assert result.reviewed_content == REVIEWED_TEXT
    assert len(result.images) == 1
    assert _log_pairs(store, project.id) == [
        (AgentRole.WRITER, LogOutcome.SUCCESS),
        (AgentRole.ARTIST, LogOutcome.SUCCESS),
        (AgentRole.EDITOR, LogOutcome.SUCCESS),
    ]


def test_only_pending_chapters_are_accepted(store, deps) -> None:
    project, chapter = _seed(store, status=ChapterStatus.COMPLETED)
    with pytest.raises(InvalidStateError):
        ChapterOrchestrator(deps).run(project, chapter)


def test_writer_failure_stops_pipeline(store, provider, deps) -> None:
    provider.fail_stages.add("writer")
    project, chapter = _seed(store)

    with pytest.raises(UpstreamError):
        ChapterOrchestrator(deps).run(project, chapter)

    assert provider.stages() == ["writer"]
    assert store.find_chapter(chapter.id).status is ChapterStatus.PAUSED
    assert _log_pairs(store, project.id) == [(AgentRole.WRITER, LogOutcome.ERROR)]


def test_illustrator_failure_does_not_block_editor(store, provider, deps) -> None:
    provider.fail_stages.add("artist")
    project, chapter = _seed(store)

    result = ChapterOrchestrator(deps).run(project, chapter)

    assert provider.stages() == ["writer", "artist", "editor"]
    assert result.status is ChapterStatus.COMPLETED
    assert result.images == []
    assert result.reviewed_content == REVIEWED_TEXT
    assert (AgentRole.ARTIST, LogOutcome.ERROR) in _log_pairs(store, project.id)


def test_editor_failure_keeps_completed_status(store, provider, deps) -> None:
    provider.fail_stages.add("editor")
    project, chapter = _seed(store)

    result = ChapterOrchestrator(deps).run(project, chapter)

    stored = store.find_chapter(chapter.id)
    assert result.status is stored.status is ChapterStatus.COMPLETED
    assert stored.reviewed_content is None
    assert stored.word_count == 40


def test_unexpected_best_effort_exception_is_contained(store, provider, deps, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise RuntimeError("storage hiccup")

    monkeypatch.setattr("services.orchestrator.app.chapters.run_illustrator", broken)
    project, chapter = _seed(store)

    result = ChapterOrchestrator(deps).run(project, chapter)

    assert result.status is ChapterStatus.COMPLETED
    assert provider.stages() == ["writer", "editor"]


def test_regenerate_accepts_any_status_and_keeps_images(store, provider, deps) -> None:
    project, chapter = _seed(store, status=ChapterStatus.CANCELLED)
    chapter.add_image_prompt("first illustration", "m")
    chapter.reviewed_content = "old reviewed"
    store.save_chapter(chapter)

    provider.replies["writer"] = "brand new draft"
    provider.fail_stages.add("editor")
    result = ChapterOrchestrator(deps).run(project, chapter, regenerate=True)

    assert result.status is ChapterStatus.COMPLETED
    assert result.draft_content == result.final_content == "brand new draft"
    assert result.reviewed_content is None
    assert result.word_count == 3
    assert [image.prompt for image in result.images][0] == "first illustration"
    assert len(result.images) == 2
