"""OpenAI chat-completions provider implementation."""

from __future__ import annotations

import time
from typing import Any, Dict, List

from openai import APIStatusError, AsyncOpenAI

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import ProviderConfig
from .exceptions import ProviderHTTPError, ProviderResponseError
from .pricing import estimate_cost


class OpenAIProvider(LLMProvider):
    name = "openai"

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            supports_json_mode=True,
            max_output_tokens=self._config.settings.max_output_tokens,
        )

    def _client(self) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            timeout=self._config.settings.timeout_seconds,
            max_retries=0,
        )

    async def generate(self, request: ProviderRequest) -> ProviderResponse:
        messages: List[Dict[str, Any]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        temperature = (
            request.temperature
            if request.temperature is not None
            else self._config.settings.temperature
        )

        model = request.model or self._config.model
        # Catalog identifiers carry a vendor prefix that the OpenAI API does not use.
        if model.startswith("openai/"):
            model = model.split("/", 1)[1]

        params: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }

        if request.top_p is not None:
            params["top_p"] = request.top_p
        elif self._config.settings.top_p is not None:
            params["top_p"] = self._config.settings.top_p

        max_output = (
            request.max_output_tokens
            if request.max_output_tokens is not None
            else self._config.settings.max_output_tokens
        )
        if max_output:
            params["max_completion_tokens"] = max_output

        if request.json_mode:
            params["response_format"] = {"type": "json_object"}

        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.chat.completions.create(**params)
        except APIStatusError as err:
            raise ProviderHTTPError(err.status_code, err.message) from err
        latency_ms = (time.perf_counter() - start) * 1000

        try:
            choice = response.choices[0].message
            text = choice.content or ""
        except (IndexError, AttributeError) as err:
            raise ProviderResponseError("OpenAI response missing content") from err

        usage = getattr(response, "usage", None)
        prompt_tokens = getattr(usage, "prompt_tokens", 0) if usage else 0
        completion_tokens = getattr(usage, "completion_tokens", 0) if usage else 0
        cost_usd = estimate_cost(
            provider=self._config.name,
            model=response.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
        )

        return ProviderResponse(
            text=text,
            raw=response,
            model=response.model,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_usd=cost_usd,
            latency_ms=latency_ms,
        )
