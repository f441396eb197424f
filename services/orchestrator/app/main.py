"""FastAPI entrypoint for the chapter generation orchestrator."""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from content_factory_observability import log_context, setup_fastapi_metrics, setup_logging
from content_factory_providers import AVAILABLE_AGENT_MODELS
from content_factory_schemas import AgentConfig, AgentLog, Chapter, Project

from .dependencies import build_orchestrator
from .errors import InvalidStateError, OwnershipError, ProjectValidationError, UpstreamError
from .models import (
    CostEstimate,
    CreateProjectRequest,
    DeleteResponse,
    ExportStatus,
    OutlineItemRequest,
    ProjectAnalytics,
)
from .projects import ProjectOrchestrator

SERVICE_NAME = "orchestrator"
logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CONTENT_FACTORY_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

_ORCHESTRATOR_LOCK = threading.Lock()

_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (OwnershipError, status.HTTP_404_NOT_FOUND),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ProjectValidationError, 422),
    (UpstreamError, status.HTTP_502_BAD_GATEWAY),
)


def get_orchestrator(request: Request) -> ProjectOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is not None:
        return orchestrator
    with _ORCHESTRATOR_LOCK:
        orchestrator = getattr(request.app.state, "orchestrator", None)
        if orchestrator is None:
            orchestrator = build_orchestrator()
            request.app.state.orchestrator = orchestrator
    return orchestrator


def get_user_id(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return get_orchestrator(request).settings.demo_user_id


async def _call(func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    try:
        return await run_in_threadpool(func, *args, **kwargs)
    except tuple(exc_type for exc_type, _ in _ERROR_STATUS) as exc:
        code = next(code for exc_type, code in _ERROR_STATUS if isinstance(exc, exc_type))
        if code >= 500:
            logger.error("Generation request failed: %s", exc)
        raise HTTPException(status_code=code, detail=str(exc)) from exc


def create_app(orchestrator: ProjectOrchestrator | None = None) -> FastAPI:
    setup_logging(SERVICE_NAME)
    app = FastAPI(title="Content Factory Orchestrator", version="0.3.0")
    app.state.orchestrator = orchestrator
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_fastapi_metrics(app, service_name=SERVICE_NAME)

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/models", tags=["catalog"])
    async def model_catalog() -> dict[str, Any]:
        return {
            "models": [asdict(model) for model in AVAILABLE_AGENT_MODELS],
            "defaultAgentConfig": AgentConfig().model_dump(),
        }

    @app.get("/estimates", response_model=CostEstimate, tags=["catalog"])
    async def estimate(
        target_pages: int = Query(..., ge=1),
        total_chapters: int = Query(..., ge=1),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> CostEstimate:
        return await _call(orchestrator.estimate_project_cost, target_pages, total_chapters)

    @app.get("/projects", response_model=List[Project], tags=["projects"])
    async def list_projects(
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> List[Project]:
        return await _call(orchestrator.list_projects, user_id)

    @app.post(
        "/projects",
        response_model=Project,
        status_code=status.HTTP_201_CREATED,
        tags=["projects"],
    )
    async def create_project(
        payload: CreateProjectRequest,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Project:
        common = {
            "title": payload.title,
            "description": payload.description,
            "type": payload.type,
            "target_pages": payload.target_pages,
            "agent_config": payload.agent_config,
        }
        if payload.chapter_count and not payload.outline:
            project = await _call(
                orchestrator.create_project_with_chapter_count,
                user_id,
                chapter_count=payload.chapter_count,
                **common,
            )
        else:
            project = await _call(
                orchestrator.create_project, user_id, outline=payload.outline, **common
            )
        with log_context(project_id=project.id):
            logger.info("Project created via API", extra={"total_chapters": project.total_chapters})
        return project

    @app.get("/projects/{project_id}", response_model=Project, tags=["projects"])
    async def get_project(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Project:
        return await _call(orchestrator.get_project, user_id, project_id)

    @app.delete("/projects/{project_id}", response_model=DeleteResponse, tags=["projects"])
    async def delete_project(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> DeleteResponse:
        deleted = await _call(orchestrator.delete_project, user_id, project_id)
        return DeleteResponse(
            deleted=deleted,
            project_id=project_id,
            deleted_at=datetime.now(timezone.utc),
        )

    @app.get("/projects/{project_id}/chapters", response_model=List[Chapter], tags=["chapters"])
    async def list_chapters(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> List[Chapter]:
        return await _call(orchestrator.get_chapters, user_id, project_id)

    @app.post(
        "/projects/{project_id}/chapters",
        response_model=Chapter,
        status_code=status.HTTP_201_CREATED,
        tags=["chapters"],
    )
    async def add_chapter(
        project_id: str,
        payload: OutlineItemRequest,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Chapter:
        return await _call(orchestrator.add_outline_item, user_id, project_id, payload)

    @app.post(
        "/projects/{project_id}/chapters/{chapter_id}/regenerate",
        response_model=Chapter,
        tags=["chapters"],
    )
    async def regenerate_chapter(
        project_id: str,
        chapter_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Chapter:
        return await _call(orchestrator.regenerate_chapter, user_id, project_id, chapter_id)

    @app.get("/projects/{project_id}/logs", response_model=List[AgentLog], tags=["telemetry"])
    async def agent_logs(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> List[AgentLog]:
        return await _call(orchestrator.get_agent_logs, user_id, project_id)

    @app.get(
        "/projects/{project_id}/analytics",
        response_model=ProjectAnalytics,
        tags=["telemetry"],
    )
    async def analytics(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> ProjectAnalytics:
        return await _call(orchestrator.get_project_analytics, project_id, user_id=user_id)

    @app.post("/projects/{project_id}/run", response_model=Project, tags=["lifecycle"])
    async def run_pending(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Project:
        with log_context(project_id=project_id):
            logger.info("Dispatching pending chapter generation")
            return await _call(orchestrator.run_pending_chapters, user_id, project_id)

    @app.post("/projects/{project_id}/pause", response_model=Project, tags=["lifecycle"])
    async def pause(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Project:
        return await _call(orchestrator.pause_project, user_id, project_id)

    @app.post("/projects/{project_id}/resume", response_model=Project, tags=["lifecycle"])
    async def resume(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Project:
        return await _call(orchestrator.resume_project, user_id, project_id)

    @app.post("/projects/{project_id}/cancel", response_model=Project, tags=["lifecycle"])
    async def cancel(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Project:
        return await _call(orchestrator.cancel_project, user_id, project_id)

    @app.get("/projects/{project_id}/export/markdown", tags=["export"])
    async def export_markdown(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> Response:
        export = await _call(orchestrator.export_markdown, user_id, project_id)
        return Response(
            content=export.content,
            media_type="text/markdown; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
        )

    @app.get(
        "/projects/{project_id}/export/status",
        response_model=ExportStatus,
        tags=["export"],
    )
    async def export_state(
        project_id: str,
        user_id: str = Depends(get_user_id),
        orchestrator: ProjectOrchestrator = Depends(get_orchestrator),
    ) -> ExportStatus:
        return await _call(orchestrator.export_status, user_id, project_id)

    return app


app = create_app()
