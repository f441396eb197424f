"""Tests for provider configuration loading."""

import os

import pytest
from pydantic import ValidationError

from content_factory_providers import FALLBACK_MODEL, ProviderFactory, load_provider_config
from content_factory_providers.config import DEFAULT_BASE_URL, PROVIDER_ENV_VAR
from content_factory_providers.mock import MockProvider
from content_factory_providers.openrouter import OpenRouterProvider


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("OPENROUTER_") or key.startswith("OPENAI_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv(PROVIDER_ENV_VAR, raising=False)
    monkeypatch.delenv("APP_URL", raising=False)


def test_load_openrouter_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "key")
    cfg = load_provider_config()
    assert cfg.name == "openrouter"
    assert cfg.model == FALLBACK_MODEL
    assert cfg.base_url == DEFAULT_BASE_URL
    assert cfg.settings.temperature == 0.75
    assert cfg.settings.timeout_seconds == 120


def test_load_openai_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(PROVIDER_ENV_VAR, "openai")
    monkeypatch.setenv("OPENAI_API_KEY", "key")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("OPENAI_TEMPERATURE", "0.2")
    cfg = load_provider_config()
    assert cfg.name == "openai"
    assert cfg.model == "gpt-4o-mini"
    assert cfg.base_url is None
    assert cfg.settings.temperature == 0.2


def test_missing_api_key_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(ValidationError):
        load_provider_config()


def test_malformed_number_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "key")
    monkeypatch.setenv("OPENROUTER_TIMEOUT_SECONDS", "soon")
    with pytest.raises(ValidationError):
        load_provider_config()


def test_custom_prefix_and_app_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MYPROV_API_KEY", "abc")
    monkeypatch.setenv("MYPROV_MODEL", "model")
    monkeypatch.setenv("MYPROV_JSON_MODE", "yes")
    monkeypatch.setenv("APP_URL", "https://example.test")
    cfg = load_provider_config(prefix="myprov")
    assert cfg.name == "myprov"
    assert cfg.settings.json_mode is True
    assert cfg.app_url == "https://example.test"


def test_factory_selects_provider_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "key")
    assert isinstance(ProviderFactory.create(), OpenRouterProvider)

    monkeypatch.setenv(PROVIDER_ENV_VAR, "mock")
    assert isinstance(ProviderFactory.create(), MockProvider)
