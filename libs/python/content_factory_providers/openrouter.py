"""OpenRouter chat-completions provider implementation."""

from __future__ import annotations

import time
from typing import Any, Dict, List

import httpx

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import DEFAULT_BASE_URL, ProviderConfig
from .exceptions import ProviderHTTPError, ProviderResponseError
from .pricing import estimate_cost

APP_TITLE = "Content Factory Chapter Generation"
DEFAULT_APP_URL = "https://contentfactory.app"


class OpenRouterProvider(LLMProvider):
    name = "openrouter"

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_json_mode=self._config.settings.json_mode,
            max_output_tokens=self._config.settings.max_output_tokens,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._config.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self._config.app_url or DEFAULT_APP_URL,
            "X-Title": APP_TITLE,
        }

    def _build_payload(self, request: ProviderRequest, model: str) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        temperature = (
            request.temperature
            if request.temperature is not None
            else self._config.settings.temperature
        )
        payload: Dict[str, Any] = {
            "model": model,
            "temperature": temperature,
            "messages": messages,
        }

        if request.top_p is not None:
            payload["top_p"] = request.top_p
        elif self._config.settings.top_p is not None:
            payload["top_p"] = self._config.settings.top_p

        max_output = (
            request.max_output_tokens
            if request.max_output_tokens is not None
            else self._config.settings.max_output_tokens
        )
        if max_output:
            payload["max_tokens"] = max_output

        if request.json_mode and self._config.settings.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        model = request.model or self._config.model
        payload = self._build_payload(request, model)
        url = self._config.base_url or DEFAULT_BASE_URL

        start = time.perf_counter()
        # A client per call keeps the provider usable from successive event loops.
        async with httpx.AsyncClient(
            timeout=self._config.settings.timeout_seconds,
            transport=self._transport,
        ) as client:
            response = await client.post(url, headers=self._headers(), json=payload)
        latency_ms = (time.perf_counter() - start) * 1000

        if response.status_code < 200 or response.status_code >= 300:
            raise ProviderHTTPError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as err:
            raise ProviderResponseError("Completion endpoint returned a non-JSON body") from err
        if not isinstance(data, dict):
            raise ProviderResponseError("Completion response is not a JSON object")

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as err:
            raise ProviderResponseError("Completion response missing content") from err
        if not isinstance(text, str):
            raise ProviderResponseError("Completion response content is not text")

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        prompt_tokens = _first_int(usage, "prompt_tokens", "input_tokens")
        completion_tokens = _first_int(usage, "completion_tokens", "output_tokens")
        response_model = data.get("model")
        if not isinstance(response_model, str) or not response_model:
            response_model = model
        cost_usd = estimate_cost(
            provider=self._config.name,
            model=model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )

        return ProviderResponse(
            text=text,
            raw=data,
            model=response_model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_usd=cost_usd,
            latency_ms=latency_ms,
        )


def _first_int(usage: Dict[str, Any], *keys: str) -> int:
    for key in keys:
        value = usage.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return max(int(value), 0)
    return 0
