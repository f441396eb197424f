"""Runtime settings for the chapter generation orchestrator."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field

ENV_PREFIX = "CONTENT_FACTORY"


class OrchestratorSettings(BaseModel):
    """Knobs consulted by the orchestrator and its stages."""

    continue_on_chapter_failure: bool = Field(
        False,
        description="Keep sweeping pending chapters after a chapter's writer stage fails",
    )
    words_per_page: int = Field(500, ge=1)
    default_target_words: int = Field(800, ge=1)
    illustrator_snippet_chars: int = Field(800, ge=1)
    analytics_log_limit: int = Field(50, ge=1)
    recent_log_limit: int = Field(25, ge=1)
    database_url: str | None = None
    demo_user_id: str = "demo-user"


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def load_orchestrator_settings() -> OrchestratorSettings:
    """Build settings from ``CONTENT_FACTORY_*`` variables plus a few shared ones.

    Unset variables keep the model defaults; malformed values raise
    ``pydantic.ValidationError``.
    """

    fields: dict[str, Any] = {}
    for name in OrchestratorSettings.model_fields:
        if name in {"database_url", "demo_user_id"}:
            continue
        raw = os.getenv(f"{ENV_PREFIX}_{name.upper()}")
        if raw is None or not raw.strip():
            continue
        fields[name] = _parse_bool(raw) if name == "continue_on_chapter_failure" else raw.strip()

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        # psycopg connection URLs do not use SQLAlchemy's driver suffix.
        fields["database_url"] = database_url.replace("+psycopg", "")
    demo_user = os.getenv("DEMO_USER_ID")
    if demo_user:
        fields["demo_user_id"] = demo_user

    return OrchestratorSettings(**fields)
