"""
Conversation service.

Boundary between a front-end (terminal, web handler, tests) and the host:
takes ``ChatRequest`` objects, relays messages and text chunks through a
``DeliveryChannel`` and reports a terminal ``ChatStatus``.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from .adapter.factory import AdapterFactory
from .host import Host, MessageSink, TextSink
from .models.common import ChatRequest, ChatStatus, Message
from ..tools.client import ProtocolClient
from ..utils.logging_config import get_logger
from ..utils.path_utils import PathUtils
from ..utils.tree_builder import TreeResolver

logger = get_logger(__name__)

ALLOWED_DIRECTORY_PREFIX = "Allowed directory:\n"


class DeliveryChannel:
    """Forwards query output to a listener until it is detached.

    After ``detach`` the query keeps running; its output is dropped.
    """

    def __init__(self, on_message: Optional[MessageSink] = None, on_text: Optional[TextSink] = None):
        self._on_message = on_message
        self._on_text = on_text

    @property
    def attached(self) -> bool:
        return self._on_message is not None or self._on_text is not None

    def detach(self) -> None:
        self._on_message = None
        self._on_text = None

    async def send_message(self, message: Message) -> None:
        sink = self._on_message
        if sink is not None:
            result = sink(message)
            if asyncio.iscoroutine(result):
                await result

    async def send_text(self, chunk: str) -> None:
        sink = self._on_text
        if sink is not None:
            result = sink(chunk)
            if asyncio.iscoroutine(result):
                await result


class SherpaService:
    """Runs chat requests and directory lookups against one host."""

    def __init__(self, host: Host):
        self.host = host

    async def chat(self, request: ChatRequest, channel: Optional[DeliveryChannel] = None) -> ChatStatus:
        """
        Answer one request.

        Each request gets its own model adapter, so requests with different
        providers can run side by side. Any failure is reported in the
        returned status; messages already delivered stay valid for a retry.
        """
        channel = channel or DeliveryChannel()
        try:
            adapter = AdapterFactory.create_adapter(
                request.model_provider,
                api_key=request.api_key,
                model=request.model,
                max_tokens=self.host.config.max_tokens,
            )
            await self.host.process_query(
                request.user_prompt,
                previous_messages=request.previous_messages,
                user_files=request.user_files,
                on_message=channel.send_message,
                on_text=channel.send_text,
                adapter=adapter,
            )
        except Exception as e:
            logger.error(f"Error processing query: {e}", exc_info=True)
            return ChatStatus(status="error", message=str(e))

        return ChatStatus(status="completed")

    async def allowed_directory(self) -> str:
        """The filesystem provider's allowed root."""
        _, client = self.host.registry.resolve("list_allowed_directories")
        content = await client.call_tool("list_allowed_directories", {})
        return ProtocolClient.first_text(content).replace(ALLOWED_DIRECTORY_PREFIX, "", 1).strip()

    async def directory_tree(self, path: str, max_depth: Optional[int] = None) -> Dict[str, Any]:
        """
        JSON-ready tree of ``path``, with node paths relative to the allowed root.

        Raises:
            PathAccessError: ``path`` is outside the allowed root
        """
        root = Path(await self.allowed_directory())
        real_path = PathUtils.validate_path(path, root)
        tree = await asyncio.to_thread(TreeResolver().build_tree, real_path, root, max_depth)
        return tree.to_dict()
