"""vLLM adapter for self-hosted models served with an OpenAI-compatible API."""

from typing import Any, Dict, List, Optional, Sequence

from .openai_adapter import OpenAICompatibleAdapter
from ..config import ProviderType
from ..models.common import Message, ToolDescriptor


class VLLMAdapter(OpenAICompatibleAdapter):
    """Self-hosted vLLM server. No credential needed.

    Qwen3 models get their thinking mode switched through the chat
    template; it is on unless ``enable_thinking`` is False.
    """

    PROVIDER = ProviderType.VLLM

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None,
                 base_url: Optional[str] = None, max_tokens: Optional[int] = None,
                 enable_thinking: Optional[bool] = None, **client_kwargs):
        super().__init__(model=model, api_key=api_key, base_url=base_url,
                         max_tokens=max_tokens, **client_kwargs)
        self.enable_thinking = enable_thinking

    def _is_qwen3_model(self) -> bool:
        """Check if this is a Qwen3 model that supports thinking mode."""
        return "qwen3" in self.model.lower()

    def _build_params(self, messages: List[Message], tools: Sequence[ToolDescriptor]) -> Dict[str, Any]:
        params = super()._build_params(messages, tools)

        # Handle thinking mode for Qwen3
        if self._is_qwen3_model():
            enable_thinking = self.enable_thinking if self.enable_thinking is not None else True
            params["extra_body"] = {"chat_template_kwargs": {"enable_thinking": enable_thinking}}

        return params
