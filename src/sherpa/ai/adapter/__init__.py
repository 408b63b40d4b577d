"""Model adapter implementations for the supported vendors."""

from .base import BaseLLMAdapter
from .factory import AdapterFactory, create_adapter
from .openai_adapter import OpenAICompatibleAdapter, OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from .gemini_adapter import GeminiAdapter
from .deepseek_adapter import DeepSeekAdapter
from .vllm_adapter import VLLMAdapter

__all__ = [
    "BaseLLMAdapter",
    "AdapterFactory",
    "create_adapter",
    "OpenAICompatibleAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "GeminiAdapter",
    "DeepSeekAdapter",
    "VLLMAdapter",
]
