"""OpenAI-compatible adapter with streaming and tool calling support."""

import json
import os
import uuid
from typing import Any, AsyncGenerator, Dict, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionChunk, ChatCompletionMessageParam, ChatCompletionToolParam

from .base import BaseLLMAdapter
from ..config import PROVIDER_SETTINGS, ProviderType
from ..models.common import (
    Message,
    MessageRole,
    StreamEvent,
    StreamEventType,
    TextPart,
    ToolCallPart,
    ToolDescriptor,
    TokenUsage,
)
from ...core.errors import ModelStreamError
from ...utils.logging_config import get_logger

logger = get_logger(__name__)


class OpenAICompatibleAdapter(BaseLLMAdapter):
    """Streams chat completions from any OpenAI-compatible endpoint.

    Vendors differ only in endpoint, credential and default model; each is
    a subclass that sets ``PROVIDER``.
    """

    PROVIDER: ProviderType = ProviderType.OPENAI

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None,
                 base_url: Optional[str] = None, max_tokens: Optional[int] = None, **client_kwargs):
        settings = PROVIDER_SETTINGS[self.PROVIDER]

        # Get API key from parameter or environment
        if not api_key and settings.api_key_env:
            api_key = os.getenv(settings.api_key_env)
        if not api_key:
            if settings.requires_api_key:
                raise ValueError(
                    f"{self.PROVIDER.value} API key is required "
                    f"(pass api_key or set {settings.api_key_env})"
                )
            api_key = "EMPTY"

        super().__init__(
            model=model or settings.default_model,
            api_key=api_key,
            base_url=base_url or settings.base_url,
            max_tokens=max_tokens,
        )

        # Initialize client
        self.client = AsyncOpenAI(api_key=self.api_key, base_url=self.base_url, **client_kwargs)

    @property
    def provider_name(self) -> str:
        return self.PROVIDER.value

    def _prepare_messages(self, messages: List[Message]) -> List[ChatCompletionMessageParam]:
        """Convert conversation messages to chat-completions format."""
        prepared: List[Dict[str, Any]] = []

        for msg in messages:
            if msg.role in (MessageRole.SYSTEM, MessageRole.USER):
                prepared.append({"role": msg.role.value, "content": msg.text})

            elif msg.role == MessageRole.ASSISTANT:
                message_dict: Dict[str, Any] = {"role": "assistant", "content": msg.text or None}

                # Handle tool calls
                tool_calls = msg.tool_calls()
                if tool_calls:
                    message_dict["tool_calls"] = [
                        {
                            "id": tc.tool_call_id,
                            "type": "function",
                            "function": {
                                "name": tc.tool_name,
                                "arguments": json.dumps(tc.args),
                            },
                        }
                        for tc in tool_calls
                    ]
                prepared.append(message_dict)

            elif msg.role == MessageRole.TOOL:
                # One chat-completions tool message per result
                for result in msg.tool_results():
                    content = result.result if isinstance(result.result, str) else json.dumps(result.result)
                    prepared.append({
                        "role": "tool",
                        "tool_call_id": result.tool_call_id,
                        "content": content,
                    })

        return prepared

    def _prepare_tools(self, tools: Sequence[ToolDescriptor]) -> List[ChatCompletionToolParam]:
        """Convert tool descriptors to function-calling format."""
        return [tool.to_openai() for tool in tools]

    def _build_params(self, messages: List[Message], tools: Sequence[ToolDescriptor]) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "model": self.model,
            "messages": self._prepare_messages(messages),
            "stream": True,
        }
        if tools:
            params["tools"] = self._prepare_tools(tools)
        if self.max_tokens:
            params["max_tokens"] = self.max_tokens
        return params

    @staticmethod
    def _parse_arguments(name: str, arguments: str) -> Dict[str, Any]:
        if not arguments:
            return {}
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError:
            logger.warning(f"Failed to parse arguments for tool call {name}: {arguments}")
            return {}
        if not isinstance(parsed, dict):
            logger.warning(f"Tool call {name} arguments are not an object: {arguments}")
            return {}
        return parsed

    async def stream_completion(
        self,
        messages: List[Message],
        tools: Sequence[ToolDescriptor],
    ) -> AsyncGenerator[StreamEvent, None]:
        """Stream completion with tool calling."""
        params = self._build_params(messages, tools)

        # Track state
        accumulated_content = ""
        tool_calls: Dict[int, Dict[str, str]] = {}
        usage: Optional[TokenUsage] = None

        try:
            stream = await self.client.chat.completions.create(**params)

            async for chunk in stream:
                chunk: ChatCompletionChunk

                if getattr(chunk, "usage", None):
                    usage = TokenUsage(
                        input_tokens=chunk.usage.prompt_tokens or 0,
                        output_tokens=chunk.usage.completion_tokens or 0,
                    )

                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta

                # Extract content delta
                if delta.content:
                    accumulated_content += delta.content
                    yield StreamEvent(event_type=StreamEventType.CONTENT_DELTA, delta=delta.content)

                # Extract tool call deltas
                for tc_delta in delta.tool_calls or []:
                    index = tc_delta.index
                    if index not in tool_calls:
                        tool_calls[index] = {"id": "", "name": "", "arguments": ""}

                    tc = tool_calls[index]
                    if tc_delta.id:
                        tc["id"] = tc_delta.id
                    if tc_delta.function:
                        if tc_delta.function.name:
                            if not tc["name"]:
                                yield StreamEvent(
                                    event_type=StreamEventType.TOOL_CALL_START,
                                    tool_call={"name": tc_delta.function.name},
                                )
                            tc["name"] = tc_delta.function.name
                        if tc_delta.function.arguments:
                            tc["arguments"] += tc_delta.function.arguments

        except OpenAIError as e:
            raise ModelStreamError(str(e), provider=self.provider_name) from e

        parts: List[Any] = []
        if accumulated_content:
            parts.append(TextPart(text=accumulated_content))
        for index in sorted(tool_calls):
            tc = tool_calls[index]
            parts.append(ToolCallPart(
                tool_call_id=tc["id"] or f"call_{uuid.uuid4().hex[:24]}",
                tool_name=tc["name"],
                args=self._parse_arguments(tc["name"], tc["arguments"]),
            ))

        yield StreamEvent(
            event_type=StreamEventType.MESSAGE_STOP,
            message=Message(role=MessageRole.ASSISTANT, content=parts),
            usage=usage,
        )


class OpenAIAdapter(OpenAICompatibleAdapter):
    """OpenAI's hosted API."""

    PROVIDER = ProviderType.OPENAI
