"""Gemini models through Google's OpenAI-compatible endpoint."""

from .openai_adapter import OpenAICompatibleAdapter
from ..config import ProviderType


class GeminiAdapter(OpenAICompatibleAdapter):
    """Gemini models. Key from ``GEMINI_API_KEY``."""

    PROVIDER = ProviderType.GEMINI
