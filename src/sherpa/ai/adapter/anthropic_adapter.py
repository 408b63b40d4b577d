"""Anthropic models through Anthropic's OpenAI-compatible endpoint."""

from .openai_adapter import OpenAICompatibleAdapter
from ..config import ProviderType


class AnthropicAdapter(OpenAICompatibleAdapter):
    """Claude models. Key from ``ANTHROPIC_API_KEY``."""

    PROVIDER = ProviderType.ANTHROPIC
