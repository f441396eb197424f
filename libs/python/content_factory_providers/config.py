"""Configuration models and helpers for provider selection."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import FALLBACK_MODEL

PROVIDER_ENV_VAR = "LLM_PROVIDER"
DEFAULT_PROVIDER = "openrouter"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_TEMPERATURE = 0.75
DEFAULT_TIMEOUT_SECONDS = 120.0


class ProviderSettings(BaseModel):
    """Per-call default parameters."""

    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0, le=2)
    max_output_tokens: int | None = Field(None, ge=16)
    top_p: float | None = Field(None, ge=0, le=1)
    json_mode: bool = Field(
        False, description="Ask for a JSON object response when a stage requests structured output"
    )
    timeout_seconds: float = Field(DEFAULT_TIMEOUT_SECONDS, gt=0)


class ProviderConfig(BaseModel):
    """Configuration for a single provider instance."""

    model_config = ConfigDict(frozen=True)

    name: str
    api_key: str
    model: str
    base_url: str | None = None
    app_url: str | None = Field(None, description="Sent as HTTP-Referer to the completion endpoint")
    settings: ProviderSettings = Field(default_factory=ProviderSettings)


def _config_error(loc: tuple[str, ...], message: str) -> ValidationError:
    return ValidationError.from_exception_data(
        ProviderConfig.__name__,
        [
            {
                "type": "value_error",
                "loc": loc,
                "input": None,
                "ctx": {"error": ValueError(message)},
            }
        ],
    )


def load_provider_config(prefix: str | None = None) -> ProviderConfig:
    """Load configuration from environment variables.

    Args:
        prefix: Optional prefix for environment variables (default uses provider name).

    Environment variables used (assuming prefix "OPENROUTER"):
        OPENROUTER_API_KEY
        OPENROUTER_MODEL (optional, defaults to the fallback model)
        OPENROUTER_BASE_URL (optional)
        OPENROUTER_TEMPERATURE (optional)
        OPENROUTER_MAX_OUTPUT_TOKENS (optional)
        OPENROUTER_TOP_P (optional)
        OPENROUTER_JSON_MODE (optional boolean)
        OPENROUTER_TIMEOUT_SECONDS (optional)
        APP_URL (optional, shared by every provider)

    Returns:
        ProviderConfig object populated from environment variables.

    Raises:
        ValidationError: If required variables are missing or invalid.
    """

    provider_name = (prefix or os.getenv(PROVIDER_ENV_VAR, DEFAULT_PROVIDER)).upper()
    env_prefix = provider_name

    def read_env(key: str, default: Any | None = None) -> Any:
        return os.getenv(f"{env_prefix}_{key}", default)

    def parse_bool(value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if value is None:
            return False
        return str(value).strip().lower() in {"true", "1", "yes", "on"}

    def parse_float(key: str, default: float | None) -> float | None:
        raw = read_env(key, "")
        if not str(raw).strip():
            return default
        try:
            return float(str(raw).strip())
        except ValueError as exc:
            raise _config_error(("settings", key.lower()), f"{key} must be a number") from exc

    if provider_name.lower() == "mock":
        return ProviderConfig(name="mock", api_key="mock", model="mock")

    api_key = read_env("API_KEY")
    if not api_key:
        raise _config_error(("api_key",), f"{env_prefix}_API_KEY is not configured")

    model = read_env("MODEL") or FALLBACK_MODEL
    base_url = read_env("BASE_URL") or (DEFAULT_BASE_URL if provider_name == "OPENROUTER" else None)

    max_output_raw = read_env("MAX_OUTPUT_TOKENS")
    max_output_tokens = None
    if max_output_raw not in (None, ""):
        try:
            parsed_max = int(str(max_output_raw).strip())
        except (TypeError, ValueError) as exc:
            raise _config_error(
                ("settings", "max_output_tokens"), "MAX_OUTPUT_TOKENS must be a positive integer"
            ) from exc
        max_output_tokens = parsed_max if parsed_max > 0 else None

    settings = ProviderSettings(
        temperature=parse_float("TEMPERATURE", DEFAULT_TEMPERATURE),
        max_output_tokens=max_output_tokens,
        top_p=parse_float("TOP_P", None),
        json_mode=parse_bool(read_env("JSON_MODE", "false")),
        timeout_seconds=parse_float("TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
    )

    return ProviderConfig(
        name=provider_name.lower(),
        api_key=api_key,
        model=model,
        base_url=base_url,
        app_url=os.getenv("APP_URL") or None,
        settings=settings,
    )
