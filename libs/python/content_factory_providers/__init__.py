"""Unified provider abstraction for OpenRouter and OpenAI chat completions."""

from .base import LLMProvider, ProviderCapabilities, ProviderRequest, ProviderResponse
from .config import ProviderConfig, ProviderSettings, load_provider_config
from .exceptions import (
    ProviderConfigError,
    ProviderError,
    ProviderHTTPError,
    ProviderResponseError,
)
from .factory import ProviderFactory
from .mock import MockProvider
from .models import AVAILABLE_AGENT_MODELS, FALLBACK_MODEL, AgentModel, normalize_model_id
from .pricing import estimate_cost

__all__ = [
    "LLMProvider",
    "ProviderCapabilities",
    "ProviderRequest",
    "ProviderResponse",
    "ProviderConfig",
    "ProviderSettings",
    "load_provider_config",
    "ProviderConfigError",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderResponseError",
    "ProviderFactory",
    "MockProvider",
    "AVAILABLE_AGENT_MODELS",
    "FALLBACK_MODEL",
    "AgentModel",
    "normalize_model_id",
    "estimate_cost",
]
