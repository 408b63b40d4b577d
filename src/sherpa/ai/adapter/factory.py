"""Factory for creating model adapters by provider id."""

from typing import Dict, List, Optional, Type

from .base import BaseLLMAdapter
from .anthropic_adapter import AnthropicAdapter
from .deepseek_adapter import DeepSeekAdapter
from .gemini_adapter import GeminiAdapter
from .openai_adapter import OpenAIAdapter
from .vllm_adapter import VLLMAdapter
from ..config import ProviderType
from ...core.errors import UnsupportedProviderError


class AdapterFactory:
    """Factory for creating and managing model adapter instances."""

    # Registry of available adapter classes
    _adapters: Dict[str, Type[BaseLLMAdapter]] = {
        ProviderType.ANTHROPIC.value: AnthropicAdapter,
        ProviderType.OPENAI.value: OpenAIAdapter,
        ProviderType.GEMINI.value: GeminiAdapter,
        ProviderType.DEEPSEEK.value: DeepSeekAdapter,
        ProviderType.VLLM.value: VLLMAdapter,
    }

    @classmethod
    def get_available_providers(cls) -> List[str]:
        """Get list of available provider names."""
        return list(cls._adapters.keys())

    @classmethod
    def get_adapter_class(cls, provider: str) -> Type[BaseLLMAdapter]:
        """
        Adapter class for a provider id (case-insensitive).

        Raises:
            UnsupportedProviderError: Unknown provider id
        """
        key = (provider or "").strip().lower()
        if key not in cls._adapters:
            raise UnsupportedProviderError(provider, cls.get_available_providers())
        return cls._adapters[key]

    @classmethod
    def create_adapter(
        cls,
        provider: str,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        **kwargs
    ) -> BaseLLMAdapter:
        """Create an adapter instance for the given provider.

        Args:
            provider: Provider id, e.g. "anthropic" or "Gemini"
            api_key: Credential; falls back to the vendor's environment variable
            model: Model id; falls back to the vendor's default model
            base_url: Override for the vendor's endpoint
            **kwargs: Additional adapter-specific parameters

        Returns:
            Configured adapter instance

        Raises:
            UnsupportedProviderError: Unknown provider id
            ValueError: A hosted vendor has no credential
        """
        adapter_class = cls.get_adapter_class(provider)
        return adapter_class(model=model, api_key=api_key, base_url=base_url, **kwargs)


def create_adapter(provider: str, **kwargs) -> BaseLLMAdapter:
    """Create an adapter instance (convenience function)."""
    return AdapterFactory.create_adapter(provider, **kwargs)
