"""Abstract base adapter for model providers."""

from abc import ABC, abstractmethod
from typing import AsyncGenerator, List, Optional, Sequence

from ..models.common import Message, StreamEvent, ToolDescriptor


class BaseLLMAdapter(ABC):
    """Abstract base class for all model provider adapters."""

    def __init__(self, model: str, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 max_tokens: Optional[int] = None):
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self.max_tokens = max_tokens

    @property
    def provider_name(self) -> str:
        """Return the name of this provider."""
        return self.__class__.__name__.replace("Adapter", "").lower()

    @abstractmethod
    def stream_completion(
        self,
        messages: List[Message],
        tools: Sequence[ToolDescriptor],
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Stream one assistant turn.

        Yields ``CONTENT_DELTA`` events for text chunks as they arrive and
        finishes with exactly one ``MESSAGE_STOP`` event carrying the
        complete assistant ``Message`` (text and tool-call parts).

        Args:
            messages: Full conversation so far
            tools: Tools the model may call
        """

    def __repr__(self) -> str:
        """String representation of the adapter."""
        return f"{self.__class__.__name__}(model='{self.model}', provider='{self.provider_name}')"
