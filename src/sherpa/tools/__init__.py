"""MCP tool providers, protocol clients and the tool registry."""

from .client import (
    InProcessTransport,
    StdioTransport,
    Transport,
    ProtocolClient,
    create_client,
    create_clients,
)
from .filesystem_server import FilesystemToolProvider, create_filesystem_server
from .registry import ToolRegistry
from .config import McpServerConfig, McpServersConfig, load_mcp_config
from .manager import MCPManager

__all__ = [
    "InProcessTransport",
    "StdioTransport",
    "Transport",
    "ProtocolClient",
    "create_client",
    "create_clients",
    "FilesystemToolProvider",
    "create_filesystem_server",
    "ToolRegistry",
    "McpServerConfig",
    "McpServersConfig",
    "load_mcp_config",
    "MCPManager",
]
