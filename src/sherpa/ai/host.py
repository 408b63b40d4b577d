"""
Query orchestration.

The host drives one query through a small state machine::

    SEEDING -> MODEL_CALL -> (TOOL_DISPATCH -> MODEL_CALL)* -> DONE

and any failure ends the query from whichever state it occurs in. Every
message appended to the conversation goes to the ``on_message`` sink,
every streamed text chunk to the ``on_text`` sink.
"""

import asyncio
import inspect
import uuid
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Union

from .adapter.base import BaseLLMAdapter
from .adapter.factory import AdapterFactory
from .models.common import (
    Message,
    MessageRole,
    QueryResult,
    StreamEventType,
    ToolCallPart,
    ToolResultPart,
)
from .prompts import SYSTEM_PROMPT
from ..core.errors import (
    MaxRoundsExceededError,
    ModelStreamError,
    NotInitializedError,
    ToolInvocationError,
)
from ..core.models import Config
from ..tools.client import InProcessTransport, ProtocolClient, create_client
from ..tools.filesystem_server import create_filesystem_server
from ..tools.registry import ToolRegistry
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

MessageSink = Callable[[Message], Union[None, Awaitable[None]]]
TextSink = Callable[[str], Union[None, Awaitable[None]]]

FILESYSTEM_PROVIDER = "filesystem"


class QueryState(str, Enum):
    SEEDING = "seeding"
    MODEL_CALL = "model_call"
    TOOL_DISPATCH = "tool_dispatch"
    DONE = "done"


def _new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


class Host:
    """Runs queries against a model with the tools of every connected provider.

    The registry and the default adapter are shared by concurrent queries;
    each ``process_query`` call owns its own conversation.
    """

    def __init__(self, registry: ToolRegistry, adapter: Optional[BaseLLMAdapter] = None,
                 owned_clients: Sequence[ProtocolClient] = (),
                 config: Optional[Config] = None,
                 system_prompt: str = SYSTEM_PROMPT):
        self.registry = registry
        self.adapter = adapter
        self.config = config or Config()
        self.max_rounds = self.config.max_tool_rounds
        self.seed_tree_depth = self.config.seed_tree_depth
        self.system_prompt = system_prompt
        self._owned_clients = list(owned_clients)

    @classmethod
    async def create(cls, allowed_directory: Union[str, Path],
                     external_clients: Sequence[ProtocolClient] = (),
                     adapter: Optional[BaseLLMAdapter] = None,
                     config: Optional[Config] = None,
                     system_prompt: str = SYSTEM_PROMPT) -> "Host":
        """
        Start the filesystem provider for ``allowed_directory`` and build the registry.

        The filesystem tools are registered first, then ``external_clients``
        in order. The host owns only the filesystem client; ``cleanup``
        must run in the task that called ``create``.
        """
        config = config or Config()
        server = create_filesystem_server(allowed_directory)
        filesystem_client = await create_client(
            FILESYSTEM_PROVIDER, InProcessTransport(server), handshake_timeout=config.handshake_timeout
        )
        try:
            registry = await ToolRegistry.build([filesystem_client, *external_clients])
        except BaseException:
            await filesystem_client.close()
            raise
        return cls(registry, adapter=adapter, owned_clients=[filesystem_client],
                   config=config, system_prompt=system_prompt)

    def set_model(self, provider: str, api_key: Optional[str] = None,
                  model: Optional[str] = None, **kwargs) -> BaseLLMAdapter:
        """
        Replace the default adapter.

        Raises:
            UnsupportedProviderError: Unknown provider id
            ValueError: Missing credential for a hosted vendor
        """
        kwargs.setdefault("max_tokens", self.config.max_tokens)
        self.adapter = AdapterFactory.create_adapter(provider, api_key=api_key, model=model, **kwargs)
        logger.info(f"Model set to {self.adapter!r}")
        return self.adapter

    async def process_query(
        self,
        user_prompt: str,
        previous_messages: Optional[Sequence[Message]] = None,
        user_files: Optional[Sequence[str]] = None,
        on_message: Optional[MessageSink] = None,
        on_text: Optional[TextSink] = None,
        adapter: Optional[BaseLLMAdapter] = None,
        query_id: Optional[str] = None,
    ) -> QueryResult:
        """
        Answer ``user_prompt``, calling tools until the model stops asking for them.

        Args:
            user_prompt: The user's question
            previous_messages: Earlier turns; copied, never modified
            user_files: Files to read before the first model call of a new conversation
            on_message: Receives every appended message, in order
            on_text: Receives every streamed text chunk, in order
            adapter: Model to use instead of the default one
            query_id: Identifier attached to log records

        Returns:
            The full conversation and the concatenated assistant text

        Raises:
            NotInitializedError: No adapter given and no default set, or no
                tool provider is connected
            ToolNotFoundError: The model asked for a tool no provider exposes
            ModelStreamError: The model failed while generating
            MaxRoundsExceededError: More than ``max_rounds`` model calls were needed
        """
        adapter = adapter or self.adapter
        if adapter is None:
            raise NotInitializedError("No model configured; call set_model() first")
        if not len(self.registry):
            raise NotInitializedError("No tool providers connected")

        query_id = query_id or uuid.uuid4().hex[:8]
        log_extra = {"query_id": query_id}
        messages: List[Message] = list(previous_messages or [])
        text_chunks: List[str] = []

        async def append(message: Message) -> None:
            messages.append(message)
            await self._deliver(on_message, message, "message")

        state = QueryState.SEEDING
        rounds = 0
        logger.info(f"Query {query_id} started with {len(messages)} previous messages", extra=log_extra)

        try:
            first_turn = not messages
            if first_turn and self.system_prompt:
                await append(Message.system(self.system_prompt))
            await append(Message.user(user_prompt))

            if first_turn:
                await append(self._seed_message(user_files))
                state = QueryState.TOOL_DISPATCH
            else:
                state = QueryState.MODEL_CALL

            while state is not QueryState.DONE:
                if state is QueryState.TOOL_DISPATCH:
                    await append(await self._dispatch_tools(messages[-1], log_extra))
                    state = QueryState.MODEL_CALL
                    continue

                if rounds >= self.max_rounds:
                    raise MaxRoundsExceededError(self.max_rounds)
                rounds += 1
                logger.debug(f"Model call {rounds} of query {query_id}", extra=log_extra)

                assistant = await self._call_model(adapter, messages, on_text, text_chunks)
                await append(assistant)
                state = QueryState.TOOL_DISPATCH if assistant.tool_calls() else QueryState.DONE

        except Exception as e:
            logger.error(f"Query {query_id} failed during {state.value}: {e}", extra=log_extra)
            raise

        logger.info(f"Query {query_id} completed after {rounds} model calls", extra=log_extra)
        return QueryResult(messages=messages, text="".join(text_chunks))

    def _seed_message(self, user_files: Optional[Sequence[str]]) -> Message:
        """Assistant message that fetches initial context before the model runs."""
        if user_files:
            call = ToolCallPart(tool_call_id=_new_call_id(), tool_name="read_files",
                                args={"paths": list(user_files)})
        else:
            call = ToolCallPart(tool_call_id=_new_call_id(), tool_name="tree",
                                args={"path": ".", "maxDepth": self.seed_tree_depth})
        return Message(role=MessageRole.ASSISTANT, content=[call])

    async def _dispatch_tools(self, assistant: Message, log_extra: dict) -> Message:
        """Run every tool call of ``assistant`` concurrently; results keep call order."""
        calls = assistant.tool_calls()

        # Resolve everything first so an unknown tool runs nothing
        resolved = [(call, self.registry.resolve(call.tool_name)[1]) for call in calls]

        results = await asyncio.gather(
            *(self._invoke_tool(call, client, log_extra) for call, client in resolved)
        )
        return Message(role=MessageRole.TOOL, content=list(results))

    async def _invoke_tool(self, call: ToolCallPart, client: ProtocolClient, log_extra: dict) -> ToolResultPart:
        logger.debug(f"Calling tool {call.tool_name} on '{client.name}' with {call.args}", extra=log_extra)
        try:
            content = await client.call_tool(call.tool_name, call.args)
            result = ProtocolClient.first_text(content)
        except Exception as e:
            error = ToolInvocationError(call.tool_name, e)
            logger.warning(f"Tool {call.tool_name} failed: {error}", extra=log_extra)
            result = f"Error: {error}"
        return ToolResultPart(tool_call_id=call.tool_call_id, tool_name=call.tool_name, result=result)

    async def _call_model(self, adapter: BaseLLMAdapter, messages: List[Message],
                          on_text: Optional[TextSink], text_chunks: List[str]) -> Message:
        """Stream one model turn to completion and return the assistant message."""
        final: Optional[Message] = None
        try:
            async for event in adapter.stream_completion(list(messages), self.registry.tools()):
                if event.event_type == StreamEventType.CONTENT_DELTA and event.delta:
                    text_chunks.append(event.delta)
                    await self._deliver(on_text, event.delta, "text")
                elif event.event_type == StreamEventType.MESSAGE_STOP:
                    final = event.message
        except ModelStreamError:
            raise
        except Exception as e:
            raise ModelStreamError(str(e) or type(e).__name__, provider=adapter.provider_name) from e

        if final is None:
            raise ModelStreamError("Model stream ended without a final message", provider=adapter.provider_name)
        return final

    @staticmethod
    async def _deliver(sink: Optional[Callable[[Any], Any]], payload: Any, kind: str) -> None:
        if sink is None:
            return
        try:
            result = sink(payload)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.warning(f"{kind} sink raised: {e}", exc_info=True)

    async def cleanup(self) -> None:
        """Close the clients this host owns."""
        clients, self._owned_clients = self._owned_clients, []
        for client in clients:
            try:
                await client.close()
            except Exception as e:
                logger.error(f"Error closing tool provider '{client.name}': {e}", exc_info=True)
