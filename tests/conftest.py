"""Shared pytest configuration for the Content Factory project."""

from __future__ import annotations

import sys
from pathlib import Path
import sysconfig

import pytest

ROOT = Path(__file__).resolve().parent.parent
EXTRA_PATHS = [ROOT, ROOT / "libs/python"]
for extra in EXTRA_PATHS:
    sys.path.insert(0, str(extra))

SITE_PACKAGES = Path(sysconfig.get_paths().get("purelib", ""))
if SITE_PACKAGES and str(SITE_PACKAGES) not in sys.path:
    sys.path.append(str(SITE_PACKAGES))

from services.orchestrator.app.completion import CompletionClient  # noqa: E402
from services.orchestrator.app.config import OrchestratorSettings  # noqa: E402
from services.orchestrator.app.projects import ProjectOrchestrator  # noqa: E402
from services.orchestrator.app.stages import StageDependencies  # noqa: E402
from services.orchestrator.app.store import InMemoryStateStore  # noqa: E402
from services.orchestrator.app.telemetry import TelemetryRecorder  # noqa: E402
from tests.utils.stubs import USER_ID, ScriptedProvider  # noqa: E402



@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def store() -> InMemoryStateStore:
    return InMemoryStateStore()


@pytest.fixture
def settings() -> OrchestratorSettings:
    return OrchestratorSettings()


@pytest.fixture
def deps(store, provider, settings) -> StageDependencies:
    return StageDependencies(
        store=store,
        client=CompletionClient(provider),
        telemetry=TelemetryRecorder(store),
        settings=settings,
    )


@pytest.fixture
def orchestrator(store, provider, settings) -> ProjectOrchestrator:
    return ProjectOrchestrator(store, CompletionClient(provider), settings=settings)
