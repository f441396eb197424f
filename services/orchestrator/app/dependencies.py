"""Wiring of the orchestrator from environment configuration."""

from __future__ import annotations

import logging

from content_factory_providers import LLMProvider

from .completion import CompletionClient
from .config import OrchestratorSettings, load_orchestrator_settings
from .projects import ProjectOrchestrator
from .store import InMemoryStateStore, PostgresStateStore, StateStore

logger = logging.getLogger(__name__)


def build_state_store(settings: OrchestratorSettings) -> StateStore:
    if settings.database_url:
        store = PostgresStateStore(settings.database_url)
        store.ensure_schema()
        return store
    logger.warning("DATABASE_URL not set; project state lives in process memory only")
    return InMemoryStateStore()


def build_orchestrator(
    settings: OrchestratorSettings | None = None,
    *,
    provider: LLMProvider | None = None,
    store: StateStore | None = None,
) -> ProjectOrchestrator:
    settings = settings or load_orchestrator_settings()
    client = CompletionClient(provider)
    logger.info(
        "Orchestrator configured",
        extra={"provider": client.provider_name, "persistent": bool(settings.database_url)},
    )
    return ProjectOrchestrator(
        store or build_state_store(settings),
        client,
        settings=settings,
    )
