"""Static pricing tables and helpers for estimating provider cost."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping

from .models import AVAILABLE_AGENT_MODELS


@dataclass(frozen=True)
class _TokenPricing:
    """Per-model pricing expressed as USD per one million tokens."""

    input_per_million: float
    output_per_million: float


_OPENROUTER_PRICING: Mapping[str, _TokenPricing] = {
    entry.value: _TokenPricing(entry.input_per_million, entry.output_per_million)
    for entry in AVAILABLE_AGENT_MODELS
}

_OPENAI_PRICING: Mapping[str, _TokenPricing] = {
    "gpt-4o": _TokenPricing(input_per_million=5.0, output_per_million=15.0),
    "gpt-4o-mini": _TokenPricing(input_per_million=0.6, output_per_million=2.4),
}

_PROVIDER_PRICING: Dict[str, Mapping[str, _TokenPricing]] = {
    "openrouter": _OPENROUTER_PRICING,
    "openai": _OPENAI_PRICING,
}


def estimate_cost(
    provider: str,
    model: str,
    prompt_tokens: int | float | None,
    completion_tokens: int | float | None,
) -> float | None:
    """Approximate cost in USD for a provider response.

    Args:
        provider: Provider identifier ("openrouter", "openai", "mock", etc.).
        model: Concrete model name, used to select the right pricing row.
        prompt_tokens: Number of prompt/input tokens billed for the request.
        completion_tokens: Number of completion/output tokens billed.

    Returns:
        Estimated USD cost, or ``None`` when pricing is unknown.
    """

    provider_key = (provider or "").lower()
    if provider_key == "mock":
        return 0.0

    model_key = (model or "").lower()
    table = _PROVIDER_PRICING.get(provider_key)
    if not table:
        return None

    pricing = table.get(model_key)
    if pricing is None:
        return None

    prompt_value = max(float(prompt_tokens or 0.0), 0.0)
    completion_value = max(float(completion_tokens or 0.0), 0.0)

    cost = (
        (prompt_value * pricing.input_per_million)
        + (completion_value * pricing.output_per_million)
    ) / 1_000_000.0

    # Normalise to 6 decimal places to avoid noisy floating point representations.
    return round(cost, 6)


__all__ = ["estimate_cost"]
