"""DeepSeek's hosted API."""

from .openai_adapter import OpenAICompatibleAdapter
from ..config import ProviderType


class DeepSeekAdapter(OpenAICompatibleAdapter):
    PROVIDER = ProviderType.DEEPSEEK
