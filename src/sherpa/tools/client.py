"""
Protocol client for MCP tool providers.

One client class talks to a provider over either of two transports:

- ``InProcessTransport``: an MCP server object living in this process,
  linked to the client by a pair of in-memory streams
- ``StdioTransport``: a child process speaking MCP JSON-RPC on stdin/stdout

Clients must be connected and closed from the same task.
"""

import asyncio
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import anyio
from mcp import ClientSession, StdioServerParameters, types
from mcp.client.stdio import stdio_client
from mcp.server.lowlevel import Server
from mcp.shared.memory import create_client_server_memory_streams

from ..core.models import ToolDescriptor
from ..core.errors import ProtocolError, ProviderConnectionError, ToolError
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_HANDSHAKE_TIMEOUT = 30.0


@dataclass(frozen=True)
class InProcessTransport:
    """Link to an MCP server hosted in this process."""
    server: Server


@dataclass(frozen=True)
class StdioTransport:
    """Spawn ``command`` and talk MCP over its standard streams."""
    command: str
    args: Sequence[str] = ()
    env: Optional[Mapping[str, str]] = None


Transport = Union[InProcessTransport, StdioTransport]


class ProtocolClient:
    """Handle to one tool provider, independent of its transport."""

    def __init__(self, name: str, transport: Transport,
                 handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT):
        self.name = name
        self.transport = transport
        self.handshake_timeout = handshake_timeout
        self._session: Optional[ClientSession] = None
        self._exit_stack: Optional[AsyncExitStack] = None

    @property
    def connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> None:
        """
        Open the transport and complete the MCP handshake.

        Raises:
            ProtocolError: Already connected
            ProviderConnectionError: Spawn failure, broken pipe or handshake timeout
        """
        if self._session is not None:
            raise ProtocolError(f"Client '{self.name}' is already connected")

        exit_stack = AsyncExitStack()
        try:
            read_stream, write_stream = await self._open_streams(exit_stack)
            session = await exit_stack.enter_async_context(ClientSession(read_stream, write_stream))
            await asyncio.wait_for(session.initialize(), timeout=self.handshake_timeout)
        except Exception as e:
            await self._discard(exit_stack)
            if isinstance(e, asyncio.TimeoutError):
                message = f"handshake timed out after {self.handshake_timeout}s"
            else:
                message = str(e) or type(e).__name__
            raise ProviderConnectionError(self.name, message) from e

        self._exit_stack = exit_stack
        self._session = session
        logger.info(f"Connected to tool provider '{self.name}'")

    async def _open_streams(self, exit_stack: AsyncExitStack):
        transport = self.transport

        if isinstance(transport, InProcessTransport):
            client_streams, server_streams = await exit_stack.enter_async_context(
                create_client_server_memory_streams()
            )
            server = transport.server
            task_group = await exit_stack.enter_async_context(anyio.create_task_group())
            task_group.start_soon(
                server.run, server_streams[0], server_streams[1],
                server.create_initialization_options(),
            )
            exit_stack.callback(task_group.cancel_scope.cancel)
            return client_streams

        if isinstance(transport, StdioTransport):
            params = StdioServerParameters(
                command=transport.command,
                args=list(transport.args),
                env=dict(transport.env) if transport.env is not None else None,
            )
            return await exit_stack.enter_async_context(stdio_client(params))

        raise ProtocolError(f"Unsupported transport: {type(transport).__name__}")

    async def _discard(self, exit_stack: AsyncExitStack) -> None:
        try:
            await exit_stack.aclose()
        except Exception as e:
            logger.debug(f"Error while discarding transport for '{self.name}': {e}")

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise ProtocolError(f"Client '{self.name}' is not connected")
        return self._session

    async def list_tools(self) -> List[ToolDescriptor]:
        """Fetch the provider's tool catalog."""
        session = self._require_session()
        result = await session.list_tools()
        return [
            ToolDescriptor(
                name=tool.name,
                description=tool.description or "",
                input_schema=tool.inputSchema or {"type": "object", "properties": {}},
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> List[Any]:
        """
        Invoke a tool and return its content parts in order.

        Raises:
            ProtocolError: Not connected
            ToolError: The provider flagged the result as an error
        """
        session = self._require_session()
        logger.debug(f"[{self.name}] call_tool {name}", extra={"arguments": arguments})
        result = await session.call_tool(name, arguments or {})
        if result.isError:
            raise ToolError(name, self.first_text(result.content) or f"Tool {name} failed")
        return list(result.content)

    @staticmethod
    def first_text(content: Sequence[Any]) -> str:
        """The first text part of a tool result, the tool's primary output."""
        for part in content:
            if isinstance(part, types.TextContent):
                return part.text
        return ""

    async def close(self) -> None:
        """Release the session and transport. Safe to call more than once."""
        exit_stack, self._exit_stack = self._exit_stack, None
        self._session = None
        if exit_stack is None:
            return
        await exit_stack.aclose()
        logger.info(f"Closed tool provider '{self.name}'")

    async def __aenter__(self) -> "ProtocolClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"ProtocolClient(name={self.name!r}, transport={type(self.transport).__name__}, {state})"


async def create_client(name: str, transport: Transport,
                        handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT) -> ProtocolClient:
    """Build and connect one client."""
    client = ProtocolClient(name, transport, handshake_timeout=handshake_timeout)
    await client.connect()
    return client


async def create_clients(servers: Mapping[str, Transport],
                         handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT) -> List[ProtocolClient]:
    """
    Connect every configured provider, in order.

    A provider that fails to connect is logged and left out; the others
    are unaffected.
    """
    clients = []
    for name, transport in servers.items():
        try:
            clients.append(await create_client(name, transport, handshake_timeout))
        except ProviderConnectionError as e:
            logger.error(f"Skipping tool provider '{name}': {e}")
    return clients
