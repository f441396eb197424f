"""Deterministic mock provider for tests and offline development."""

from __future__ import annotations

import json
from typing import Any

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import ProviderConfig, ProviderSettings

DEFAULT_TEXT = "Mock response generated for testing."


class MockProvider(LLMProvider):
    name = "mock"

    def __init__(self, config: ProviderConfig | None = None) -> None:
        if config is None:
            settings = ProviderSettings(temperature=0.1, json_mode=True)
            config = ProviderConfig(name="mock", api_key="mock", model="mock", settings=settings)
        self._config = config

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(supports_json_mode=True, max_output_tokens=2000)

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        payload: Any
        text = f"{DEFAULT_TEXT}\nPrompt: {request.prompt[:80]}"
        if request.json_mode:
            payload = {
                "status": "ok",
                "summary": DEFAULT_TEXT,
                "keyPoints": [request.prompt[:50]],
                "suggestions": [],
                "finalContent": text,
            }
            text = json.dumps(payload)
        else:
            payload = text
        return ProviderResponse(
            text=text,
            raw={"mock": True, "payload": payload},
            model=request.model or "mock",
            prompt_tokens=len(request.prompt.split()),
            completion_tokens=len(text.split()),
            cost_usd=0.0,
            latency_ms=1.0,
        )
