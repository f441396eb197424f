"""Lifecycle and sweep behaviour of the project orchestrator."""

from __future__ import annotations

import httpx
import pytest

from content_factory_providers import ProviderConfig, ProviderSettings
from content_factory_providers.config import DEFAULT_BASE_URL
from content_factory_providers.openrouter import OpenRouterProvider
from content_factory_schemas import AgentRole, ChapterStatus, LogOutcome, ProjectStatus

from services.orchestrator.app.completion import CompletionClient
from services.orchestrator.app.config import OrchestratorSettings
from services.orchestrator.app.errors import (
    InvalidStateError,
    OwnershipError,
    ProjectValidationError,
    UpstreamError,
)
from services.orchestrator.app.models import OutlineItemRequest
from services.orchestrator.app.projects import ProjectOrchestrator
from tests.utils.stubs import USER_ID, WRITER_TEXT


def _outline(*titles: str) -> list[OutlineItemRequest]:
    return [OutlineItemRequest(title=title) for title in titles]


def _create(orchestrator, *titles: str, target_pages: int = 30):
    return orchestrator.create_project(
        USER_ID,
        title="Harbour Guide",
        description="A practical guide",
        target_pages=target_pages,
        outline=_outline(*(titles or ("Intro", "Body", "Conclusion"))),
    )


def _fail_writer_for(title: str):
    return lambda request: request.metadata["stage"] == "writer" and f"Title: {title}\n" in request.prompt


def test_scenario_a_full_run_completes_project(orchestrator, store) -> None:
    project = _create(orchestrator)

    chapters = store.find_chapters(project.id)
    assert project.status is ProjectStatus.PLANNING
    assert project.total_chapters == 3
    assert [(c.order, c.title, c.status) for c in chapters] == [
        (1, "Intro", ChapterStatus.PENDING),
        (2, "Body", ChapterStatus.PENDING),
        (3, "Conclusion", ChapterStatus.PENDING),
    ]
    assert [item.estimated_words for item in project.outline] == [5000, 5000, 5000]

    finished = orchestrator.run_pending_chapters(USER_ID, project.id)

    assert finished.status is ProjectStatus.COMPLETED
    assert finished.current_chapter == 3
    assert all(c.status is ChapterStatus.COMPLETED for c in store.find_chapters(project.id))


def test_chapters_are_processed_in_order(orchestrator, provider, store) -> None:
    project = _create(orchestrator, "Body", "Intro", "Conclusion")

    orchestrator.run_pending_chapters(USER_ID, project.id)

    writer_prompts = [r.prompt for r in provider.requests if r.metadata["stage"] == "writer"]
    assert [next(l for l in p.splitlines() if "Order:" in l).strip() for p in writer_prompts] == [
        "- Order: 1",
        "- Order: 2",
        "- Order: 3",
    ]
    assert provider.stages() == ["writer", "artist", "editor"] * 3

    order_by_chapter = {c.id: c.order for c in store.find_chapters(project.id)}
    writer_logs = sorted(
        (log for log in store.find_logs(project.id, limit=50) if log.agent_type is AgentRole.WRITER),
        key=lambda log: order_by_chapter[log.chapter_id],
    )
    stamps = [log.created_at for log in writer_logs]
    assert stamps == sorted(stamps)


def test_scenario_b_pause_and_resume(orchestrator, store) -> None:
    project = _create(orchestrator)
    project.status = ProjectStatus.IN_PROGRESS
    store.save_project(project)
    first = store.find_chapters(project.id)[0]
    first.status = ChapterStatus.WRITING
    store.save_chapter(first)

    paused = orchestrator.pause_project(USER_ID, project.id)

    assert paused.status is ProjectStatus.PAUSED
    assert [c.status for c in store.find_chapters(project.id)] == [ChapterStatus.PAUSED] * 3

    resumed = orchestrator.resume_project(USER_ID, project.id)

    assert resumed.status is ProjectStatus.IN_PROGRESS
    assert [c.status for c in store.find_chapters(project.id)] == [ChapterStatus.PENDING] * 3


def test_pause_leaves_finished_chapters_alone(orchestrator, store) -> None:
    project = _create(orchestrator)
    done = store.find_chapters(project.id)[0]
    done.status = ChapterStatus.COMPLETED
    store.save_chapter(done)

    orchestrator.pause_project(USER_ID, project.id)

    statuses = [c.status for c in store.find_chapters(project.id)]
    assert statuses == [ChapterStatus.COMPLETED, ChapterStatus.PAUSED, ChapterStatus.PAUSED]


def test_scenario_c_writer_failure_aborts_sweep(orchestrator, provider, store) -> None:
    provider.fail_when = _fail_writer_for("Body")
    project = _create(orchestrator)

    with pytest.raises(UpstreamError):
        orchestrator.run_pending_chapters(USER_ID, project.id)

    intro, body, conclusion = store.find_chapters(project.id)
    assert intro.status is ChapterStatus.COMPLETED
    assert body.status is ChapterStatus.PAUSED
    assert conclusion.status is ChapterStatus.PENDING

    refreshed = orchestrator.get_project(USER_ID, project.id)
    assert refreshed.status is ProjectStatus.IN_PROGRESS
    assert refreshed.current_chapter == 1

    logs = store.find_logs(project.id, limit=50)
    errors = [log for log in logs if log.status is LogOutcome.ERROR]
    assert len(errors) == 1
    assert errors[0].agent_type is AgentRole.WRITER
    assert [log.agent_type for log in logs if log.chapter_id == body.id] == [AgentRole.WRITER]


def test_continue_on_chapter_failure(store, provider) -> None:
    provider.fail_when = _fail_writer_for("Body")
    orchestrator = ProjectOrchestrator(
        store,
        CompletionClient(provider),
        settings=OrchestratorSettings(continue_on_chapter_failure=True),
    )
    project = _create(orchestrator)

    finished = orchestrator.run_pending_chapters(USER_ID, project.id)

    statuses = [c.status for c in store.find_chapters(project.id)]
    assert statuses == [ChapterStatus.COMPLETED, ChapterStatus.PAUSED, ChapterStatus.COMPLETED]
    assert finished.status is ProjectStatus.IN_PROGRESS
    assert finished.current_chapter == 2


def test_failed_chapter_is_retried_after_pause_and_resume(orchestrator, provider, store) -> None:
    provider.fail_when = _fail_writer_for("Body")
    project = _create(orchestrator)
    with pytest.raises(UpstreamError):
        orchestrator.run_pending_chapters(USER_ID, project.id)

    provider.fail_when = None
    orchestrator.pause_project(USER_ID, project.id)
    orchestrator.resume_project(USER_ID, project.id)
    finished = orchestrator.run_pending_chapters(USER_ID, project.id)

    assert finished.status is ProjectStatus.COMPLETED
    assert finished.current_chapter == 3


def _openrouter_client(handler) -> CompletionClient:
    config = ProviderConfig(
        name="openrouter",
        api_key="secret",
        model="deepseek/deepseek-v3.2-exp",
        base_url=DEFAULT_BASE_URL,
        app_url="https://factory.test",
        settings=ProviderSettings(),
    )
    return CompletionClient(OpenRouterProvider(config, transport=httpx.MockTransport(handler)))


@pytest.mark.parametrize(
    "body",
    [
        [{"choices": [{"message": {"content": "some chapter text"}}]}],
        {"choices": [{"message": {"content": {"text": "nested"}}}]},
    ],
)
def test_malformed_completion_pauses_chapter_with_error_log(store, body) -> None:
    orchestrator = ProjectOrchestrator(
        store, _openrouter_client(lambda request: httpx.Response(200, json=body))
    )
    project = _create(orchestrator, "Intro")

    with pytest.raises(UpstreamError):
        orchestrator.run_pending_chapters(USER_ID, project.id)

    (chapter,) = store.find_chapters(project.id)
    assert chapter.status is ChapterStatus.PAUSED
    (log,) = store.find_logs(project.id, limit=50)
    assert (log.agent_type, log.status) == (AgentRole.WRITER, LogOutcome.ERROR)


def test_malformed_usage_still_completes_chapter(store) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"choices": [{"message": {"content": "some chapter text"}}], "usage": "n/a"}
        )

    orchestrator = ProjectOrchestrator(store, _openrouter_client(handler))
    project = _create(orchestrator, "Intro")

    orchestrator.run_pending_chapters(USER_ID, project.id)

    (chapter,) = store.find_chapters(project.id)
    assert chapter.status is ChapterStatus.COMPLETED
    writer_logs = [
        log for log in store.find_logs(project.id, limit=50) if log.agent_type is AgentRole.WRITER
    ]
    assert [(log.status, log.input_tokens) for log in writer_logs] == [(LogOutcome.SUCCESS, 0)]


def test_unexpected_provider_exception_pauses_chapter(orchestrator, provider, store) -> None:
    def broken(request):
        raise AttributeError("boom")

    provider.replies["writer"] = broken
    project = _create(orchestrator, "Intro")

    with pytest.raises(UpstreamError):
        orchestrator.run_pending_chapters(USER_ID, project.id)

    (chapter,) = store.find_chapters(project.id)
    assert chapter.status is ChapterStatus.PAUSED
    (log,) = store.find_logs(project.id, limit=50)
    assert (log.agent_type, log.status) == (AgentRole.WRITER, LogOutcome.ERROR)
    assert "AttributeError" in log.error_message


def test_scenario_d_editor_non_json_keeps_text(orchestrator, provider, store) -> None:
    provider.replies["editor"] = "Looks good to me!"
    project = _create(orchestrator, "Intro")

    orchestrator.run_pending_chapters(USER_ID, project.id)

    (chapter,) = store.find_chapters(project.id)
    assert chapter.reviewed_content == WRITER_TEXT
    assert chapter.status is ChapterStatus.COMPLETED
    editor_logs = [
        log for log in store.find_logs(project.id, limit=50) if log.agent_type is AgentRole.EDITOR
    ]
    assert [log.status for log in editor_logs] == [LogOutcome.SUCCESS]


def test_pause_during_run_stops_sweep(orchestrator, provider, store) -> None:
    project = _create(orchestrator)

    def pause_then_write(request):
        orchestrator.pause_project(USER_ID, project.id)
        return WRITER_TEXT

    provider.replies["writer"] = pause_then_write

    finished = orchestrator.run_pending_chapters(USER_ID, project.id)

    assert finished.status is ProjectStatus.PAUSED
    assert finished.current_chapter == 1
    assert provider.stages().count("writer") == 1
    statuses = [c.status for c in store.find_chapters(project.id)]
    assert statuses == [ChapterStatus.COMPLETED, ChapterStatus.PAUSED, ChapterStatus.PAUSED]


def test_cancel_is_idempotent(orchestrator, store) -> None:
    project = _create(orchestrator)
    done = store.find_chapters(project.id)[0]
    done.status = ChapterStatus.COMPLETED
    store.save_chapter(done)

    first = orchestrator.cancel_project(USER_ID, project.id)
    snapshot = store.find_chapters(project.id)
    second = orchestrator.cancel_project(USER_ID, project.id)

    assert first.status is second.status is ProjectStatus.CANCELLED
    assert [c.status for c in snapshot] == [
        ChapterStatus.COMPLETED,
        ChapterStatus.CANCELLED,
        ChapterStatus.CANCELLED,
    ]
    assert [c.updated_at for c in store.find_chapters(project.id)] == [c.updated_at for c in snapshot]


@pytest.mark.parametrize(
    ("status", "operation"),
    [
        (ProjectStatus.PLANNING, "resume_project"),
        (ProjectStatus.IN_PROGRESS, "resume_project"),
        (ProjectStatus.COMPLETED, "pause_project"),
        (ProjectStatus.CANCELLED, "pause_project"),
        (ProjectStatus.COMPLETED, "cancel_project"),
        (ProjectStatus.CANCELLED, "run_pending_chapters"),
        (ProjectStatus.COMPLETED, "run_pending_chapters"),
        (ProjectStatus.CANCELLED, "resume_project"),
    ],
)
def test_illegal_transitions_leave_status_unchanged(orchestrator, store, status, operation) -> None:
    project = _create(orchestrator)
    project.status = status
    store.save_project(project)

    with pytest.raises(InvalidStateError):
        getattr(orchestrator, operation)(USER_ID, project.id)

    assert orchestrator.get_project(USER_ID, project.id).status is status


def test_run_rejected_while_generation_in_flight(orchestrator, provider) -> None:
    project = _create(orchestrator)

    with orchestrator.locks.hold(project.id):
        with pytest.raises(InvalidStateError):
            orchestrator.run_pending_chapters(USER_ID, project.id)
        paused = orchestrator.pause_project(USER_ID, project.id)

    assert paused.status is ProjectStatus.PAUSED
    assert provider.requests == []
    assert not orchestrator.locks.is_locked(project.id)


def test_ownership_is_enforced(orchestrator, store) -> None:
    project = _create(orchestrator)
    other = _create(orchestrator, "Elsewhere")
    foreign_chapter = store.find_chapters(other.id)[0]

    with pytest.raises(OwnershipError):
        orchestrator.run_pending_chapters("intruder", project.id)
    with pytest.raises(OwnershipError):
        orchestrator.delete_project("intruder", project.id)
    with pytest.raises(OwnershipError):
        orchestrator.regenerate_chapter(USER_ID, project.id, foreign_chapter.id)
    with pytest.raises(OwnershipError):
        orchestrator.get_project(USER_ID, "missing")

    assert store.find_project(project.id) is not None


def test_regenerate_preserves_image_history(orchestrator, provider, store) -> None:
    project = _create(orchestrator, "Intro")
    orchestrator.run_pending_chapters(USER_ID, project.id)
    (chapter,) = store.find_chapters(project.id)
    assert len(chapter.images) == 1

    provider.replies["writer"] = "a regenerated chapter body"
    regenerated = orchestrator.regenerate_chapter(USER_ID, project.id, chapter.id)

    assert len(regenerated.images) == 2
    assert regenerated.images[0] == chapter.images[0]
    assert regenerated.draft_content == "a regenerated chapter body"
    writer_logs = [
        log for log in store.find_logs(project.id, limit=50) if log.agent_type is AgentRole.WRITER
    ]
    assert len(writer_logs) == 2
    assert orchestrator.get_project(USER_ID, project.id).status is ProjectStatus.COMPLETED


def test_regenerate_failure_propagates(orchestrator, provider, store) -> None:
    project = _create(orchestrator, "Intro")
    (chapter,) = store.find_chapters(project.id)
    provider.fail_stages.add("writer")

    with pytest.raises(UpstreamError):
        orchestrator.regenerate_chapter(USER_ID, project.id, chapter.id)

    assert store.find_chapter(chapter.id).status is ChapterStatus.PAUSED
    assert not orchestrator.locks.is_locked(project.id)


def test_delete_cascades(orchestrator, store) -> None:
    project = _create(orchestrator, "Intro")
    orchestrator.run_pending_chapters(USER_ID, project.id)

    assert orchestrator.delete_project(USER_ID, project.id) is True

    assert store.find_project(project.id) is None
    assert store.find_chapters(project.id) == []
    assert store.find_logs(project.id, limit=50) == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"outline": []},
        {"title": "ab"},
        {"description": "x" * 501},
        {"target_pages": 0},
        {"target_pages": 251},
        {"outline": [OutlineItemRequest(title="A", order=1), OutlineItemRequest(title="B", order=1)]},
        {"outline": [OutlineItemRequest(title="   ")]},
    ],
)
def test_create_project_validation(orchestrator, store, overrides) -> None:
    payload = {
        "title": "Harbour Guide",
        "description": None,
        "target_pages": 30,
        "outline": _outline("Intro"),
        **overrides,
    }
    with pytest.raises(ProjectValidationError):
        orchestrator.create_project(USER_ID, **payload)
    assert store.list_projects(USER_ID) == []


def test_create_with_chapter_count(orchestrator, store) -> None:
    project = orchestrator.create_project_with_chapter_count(
        USER_ID, title="Harbour Guide", chapter_count=2, target_pages=10
    )

    assert [item.title for item in project.outline] == [
        "Harbour Guide - Chapter 1",
        "Harbour Guide - Chapter 2",
    ]
    assert [c.chapter_key for c in store.find_chapters(project.id)] == [
        item.chapter_key for item in project.outline
    ]


def test_add_outline_item_appends_pending_chapter(orchestrator, store) -> None:
    project = _create(orchestrator, "Intro")
    orchestrator.run_pending_chapters(USER_ID, project.id)
    assert orchestrator.get_project(USER_ID, project.id).status is ProjectStatus.COMPLETED

    extra = _create(orchestrator, "Intro", "Body")
    chapter = orchestrator.add_outline_item(USER_ID, extra.id, OutlineItemRequest(title="Appendix"))

    refreshed = orchestrator.get_project(USER_ID, extra.id)
    assert chapter.order == 3
    assert chapter.status is ChapterStatus.PENDING
    assert refreshed.total_chapters == 3
    assert refreshed.outline[-1].title == "Appendix"

    with pytest.raises(InvalidStateError):
        orchestrator.add_outline_item(USER_ID, project.id, OutlineItemRequest(title="Too late"))


def test_read_operations(orchestrator, settings) -> None:
    first = _create(orchestrator, "Intro")
    second = _create(orchestrator, *[f"Part {n}" for n in range(1, 11)])
    orchestrator.run_pending_chapters(USER_ID, second.id)

    listed = orchestrator.list_projects(USER_ID)
    assert [p.id for p in listed] == [second.id, first.id]
    assert orchestrator.list_projects("someone-else") == []

    logs = orchestrator.get_agent_logs(USER_ID, second.id)
    assert len(logs) == settings.recent_log_limit == 25
    assert logs == sorted(logs, key=lambda log: log.created_at, reverse=True)
    assert [c.order for c in orchestrator.get_chapters(USER_ID, second.id)] == list(range(1, 11))
