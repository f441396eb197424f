"""Shared plumbing for the writer, illustrator and editor stages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from content_factory_schemas import AgentRole, Project

from .completion import Completion, CompletionClient
from .config import OrchestratorSettings
from .store import StateStore
from .telemetry import TelemetryRecorder


@dataclass
class StageDependencies:
    """Collaborators every stage engine needs."""

    store: StateStore
    client: CompletionClient
    telemetry: TelemetryRecorder
    settings: OrchestratorSettings


@dataclass(frozen=True)
class StageOutcome:
    """Result of a best-effort stage, inspected by the chapter orchestrator."""

    role: AgentRole
    ok: bool
    completion: Optional[Completion] = None
    error: Optional[BaseException] = None

    @classmethod
    def success(cls, role: AgentRole, completion: Completion) -> "StageOutcome":
        return cls(role=role, ok=True, completion=completion)

    @classmethod
    def failure(cls, role: AgentRole, error: BaseException) -> "StageOutcome":
        return cls(role=role, ok=False, error=error)


def target_word_count(project: Project, settings: OrchestratorSettings) -> int:
    """Words each chapter should aim for given the project's page goal."""

    if not project.target_pages or project.total_chapters <= 0:
        return settings.default_target_words
    return (project.target_pages * settings.words_per_page) // project.total_chapters
