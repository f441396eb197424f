"""Synchronous completion client shared by every pipeline stage."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter

import httpx
from openai import OpenAIError

from content_factory_observability import observe_provider_response
from content_factory_providers import (
    LLMProvider,
    ProviderError,
    ProviderFactory,
    ProviderRequest,
    normalize_model_id,
)

from .errors import UpstreamError

logger = logging.getLogger(__name__)
SERVICE_NAME = "orchestrator"


@dataclass(frozen=True)
class Completion:
    """Normalized result of one completion call."""

    content: str
    input_tokens: int
    output_tokens: int
    duration_ms: int
    model: str
    cost_usd: float | None = None


class CompletionClient:
    """Issue exactly one request per call; retries are never attempted here."""

    def __init__(self, provider: LLMProvider | None = None) -> None:
        self._provider = provider or ProviderFactory.create()

    @property
    def provider_name(self) -> str:
        return getattr(self._provider, "name", "unknown")

    def complete(
        self,
        model: str | None,
        system_prompt: str,
        user_prompt: str,
        *,
        stage: str,
        json_mode: bool = False,
    ) -> Completion:
        resolved_model = normalize_model_id(model)
        if resolved_model != model:
            logger.info(
                "Model identifier normalized",
                extra={"requested_model": model, "model": resolved_model, "stage": stage},
            )

        request = ProviderRequest(
            prompt=user_prompt,
            system_prompt=system_prompt,
            model=resolved_model,
            json_mode=json_mode and self._provider.capabilities().supports_json_mode,
            metadata={"stage": stage},
        )

        start = perf_counter()
        try:
            response = self._provider.generate_sync(request)
        except (ProviderError, httpx.HTTPError, OpenAIError) as exc:
            raise UpstreamError(
                str(exc) or type(exc).__name__,
                model=resolved_model,
                duration_ms=_elapsed_ms(start),
            ) from exc
        except Exception as exc:
            logger.exception("Unexpected provider failure", extra={"stage": stage, "model": resolved_model})
            raise UpstreamError(
                f"Unexpected provider failure: {type(exc).__name__}: {exc}",
                model=resolved_model,
                duration_ms=_elapsed_ms(start),
            ) from exc
        duration_ms = _elapsed_ms(start)

        content = response.text if isinstance(response.text, str) else ""
        if not content.strip():
            raise UpstreamError(
                "Completion service returned empty content",
                model=resolved_model,
                duration_ms=duration_ms,
            )

        observe_provider_response(
            stage=stage,
            provider=self.provider_name,
            service_name=SERVICE_NAME,
            response=response,
        )
        return Completion(
            content=content,
            input_tokens=max(int(response.prompt_tokens or 0), 0),
            output_tokens=max(int(response.completion_tokens or 0), 0),
            duration_ms=duration_ms,
            model=resolved_model,
            cost_usd=response.cost_usd,
        )


def _elapsed_ms(start: float) -> int:
    return max(int((perf_counter() - start) * 1000), 0)
