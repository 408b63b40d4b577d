"""Model provider settings and the model catalog."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..core.models import Config


class ProviderType(str, Enum):
    """Supported model vendors."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    VLLM = "vllm"

    @classmethod
    def parse(cls, value: str) -> Optional["ProviderType"]:
        """Case-insensitive lookup; None for unknown identifiers."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class ProviderSettings:
    """Connection settings for one vendor's OpenAI-compatible endpoint."""
    base_url: Optional[str]
    api_key_env: Optional[str]
    default_model: str
    requires_api_key: bool = True


PROVIDER_SETTINGS: Dict[ProviderType, ProviderSettings] = {
    ProviderType.ANTHROPIC: ProviderSettings(
        base_url="https://api.anthropic.com/v1/",
        api_key_env="ANTHROPIC_API_KEY",
        default_model="claude-3-5-sonnet-20241022",
    ),
    ProviderType.OPENAI: ProviderSettings(
        base_url=None,
        api_key_env="OPENAI_API_KEY",
        default_model="gpt-4o-mini",
    ),
    ProviderType.GEMINI: ProviderSettings(
        base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
        api_key_env="GEMINI_API_KEY",
        default_model="gemini-2.0-flash-exp",
    ),
    ProviderType.DEEPSEEK: ProviderSettings(
        base_url="https://api.deepseek.com",
        api_key_env="DEEPSEEK_API_KEY",
        default_model="deepseek-chat",
    ),
    ProviderType.VLLM: ProviderSettings(
        base_url="http://localhost:8000/v1",
        api_key_env=None,
        default_model="Qwen/Qwen3-8B-AWQ",
        requires_api_key=False,
    ),
}


# Display name -> model id, grouped by the vendor name shown to users
MODEL_CATALOG: Dict[str, Dict[str, str]] = {
    "Anthropic": {
        "Claude 3.5 Sonnet": "claude-3-5-sonnet-20241022",
        "Claude 3.5 Haiku": "claude-3-5-haiku-20241022",
    },
    "Gemini": {
        "Gemini 1.5 Flash 002": "gemini-1.5-flash-002",
        "Gemini 1.5 Pro 002": "gemini-1.5-pro-002",
        "Gemini 2.0 Flash Thinking Experimental 01-21": "gemini-2.0-flash-thinking-exp",
        "Gemini 2.0 Flash Experimental": "gemini-2.0-flash-exp",
    },
}

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"


def get_provider_for_model(model_id: str) -> Optional[str]:
    """Catalog vendor name for a model id, or None if the id is not listed."""
    if not model_id:
        return None
    for provider, models in MODEL_CATALOG.items():
        if model_id in models.values():
            return provider
    return None


def get_name_for_model(model_id: str) -> Optional[str]:
    """Display name for a model id, or None if the id is not listed."""
    for models in MODEL_CATALOG.values():
        for name, candidate in models.items():
            if candidate == model_id:
                return name
    return None


def get_llm_config_from_env(config: Optional[Config] = None) -> Dict[str, Any]:
    """Get model configuration from environment variables.

    ``LLM_PROVIDER`` and ``LLM_MODEL`` come through ``Config``; the key is
    ``LLM_API_KEY`` or else the provider's own variable.

    Returns:
        Dictionary with provider, model, api_key and base_url
    """
    config = config or Config()
    provider = config.default_provider.lower()
    parsed = ProviderType.parse(provider)
    settings = PROVIDER_SETTINGS.get(parsed) if parsed else None

    model = config.default_model or (settings.default_model if settings else DEFAULT_MODEL)
    api_key = os.getenv("LLM_API_KEY")
    if not api_key and settings and settings.api_key_env:
        api_key = os.getenv(settings.api_key_env)

    return {
        "provider": provider,
        "model": model,
        "api_key": api_key,
        "base_url": os.getenv("LLM_BASE_URL"),
    }
