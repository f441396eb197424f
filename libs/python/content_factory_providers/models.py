"""Model catalog and model-identifier normalization.

Every stage resolves its model through :func:`normalize_model_id` before a
request is dispatched, so legacy identifiers stored on older projects keep
working without per-stage string checks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

FALLBACK_MODEL = "deepseek/deepseek-v3.2-exp"


@dataclass(frozen=True)
class AgentModel:
    """Selectable model with its USD price per one million tokens."""

    value: str
    label: str
    provider: str
    input_per_million: float
    output_per_million: float


AVAILABLE_AGENT_MODELS: tuple[AgentModel, ...] = (
    AgentModel("deepseek/deepseek-v3.2-exp", "DeepSeek V3.2 Exp", "DeepSeek", 0.27, 0.4),
    AgentModel("deepseek/deepseek-v3", "DeepSeek V3", "DeepSeek", 0.14, 0.28),
    AgentModel("deepseek/deepseek-r1", "DeepSeek R1 (Reasoner)", "DeepSeek", 0.55, 1.1),
    AgentModel("anthropic/claude-3.5-sonnet", "Claude 3.5 Sonnet", "Anthropic", 3.0, 15.0),
    AgentModel("anthropic/claude-3.5-haiku", "Claude 3.5 Haiku", "Anthropic", 1.5, 5.0),
    AgentModel("openai/gpt-4o", "GPT-4o", "OpenAI", 5.0, 15.0),
    AgentModel("openai/gpt-4o-mini", "GPT-4o Mini", "OpenAI", 0.6, 2.4),
    AgentModel("mistralai/mistral-large", "Mistral Large", "Mistral", 2.0, 6.0),
    AgentModel("mistralai/mistral-small", "Mistral Small", "Mistral", 0.3, 0.9),
    AgentModel("meta-llama/llama-3.1-8b-instruct", "Llama 3.1 8B", "Meta", 0.15, 0.3),
    AgentModel(
        "nvidia/nemotron-nano-12b-v2-vl:free", "Nemotron Nano 12B 2 VL (Free)", "NVIDIA", 0.0, 0.0
    ),
)

# Routing prefixes that the completion endpoint no longer accepts.
LEGACY_PREFIXES: tuple[str, ...] = ("openrouter/",)

# Substrings marking model families that were never served.
RETIRED_FAMILY_MARKERS: tuple[str, ...] = ("gpt-5-",)

# Image-only endpoints; every stage needs a text completion model.
SUBSTITUTED_MODELS: Mapping[str, str] = {
    "fal-ai/image-creation": FALLBACK_MODEL,
    "google/gemini-2.5-flash-image": FALLBACK_MODEL,
    "google/gemini-2.5-flash-image-preview": FALLBACK_MODEL,
    "google/gemini-2.5-flash-image-preview:free": FALLBACK_MODEL,
}


def normalize_model_id(model: str | None, *, fallback: str = FALLBACK_MODEL) -> str:
    """Return the identifier that should actually be sent to the endpoint.

    >>> normalize_model_id("openrouter/openai/gpt-4o")
    'openai/gpt-4o'
    >>> normalize_model_id("openai/gpt-5-turbo")
    'deepseek/deepseek-v3.2-exp'
    """

    candidate = (model or "").strip()
    if not candidate:
        return fallback

    for prefix in LEGACY_PREFIXES:
        if candidate.startswith(prefix):
            candidate = candidate[len(prefix):]

    if any(marker in candidate for marker in RETIRED_FAMILY_MARKERS):
        return fallback

    return SUBSTITUTED_MODELS.get(candidate, candidate)


__all__ = [
    "AVAILABLE_AGENT_MODELS",
    "AgentModel",
    "FALLBACK_MODEL",
    "LEGACY_PREFIXES",
    "RETIRED_FAMILY_MARKERS",
    "SUBSTITUTED_MODELS",
    "normalize_model_id",
]
