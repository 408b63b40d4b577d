"""External tool provider configuration document."""

import json
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..utils.logging_config import get_logger
from .client import StdioTransport

logger = get_logger(__name__)


class McpServerConfig(BaseModel):
    """One child-process tool provider."""
    command: str
    args: List[str] = Field(default_factory=list)
    env: Optional[Dict[str, str]] = None

    def to_transport(self) -> StdioTransport:
        return StdioTransport(command=self.command, args=tuple(self.args), env=self.env)


class McpServersConfig(BaseModel):
    """``{"mcpServers": {<name>: {command, args, env?}}}``"""
    model_config = ConfigDict(populate_by_name=True)

    mcp_servers: Dict[str, McpServerConfig] = Field(default_factory=dict, alias="mcpServers")

    def transports(self) -> Dict[str, StdioTransport]:
        """Transports keyed by provider name, in document order."""
        return {name: server.to_transport() for name, server in self.mcp_servers.items()}

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2)


def write_default_config(path: Path) -> None:
    """Write an empty provider document to ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(McpServersConfig().to_json(), encoding="utf-8")


def load_mcp_config(path: Union[str, Path]) -> McpServersConfig:
    """
    Load the provider document at ``path``.

    A missing document yields an empty configuration and a default one is
    written in its place when possible. An unreadable or invalid document
    is logged and also yields an empty configuration.
    """
    path = Path(path).expanduser()

    if not path.exists():
        logger.debug(f"MCP config file not found at {path}. Creating default.")
        try:
            write_default_config(path)
            logger.info(f"Created default MCP config file at {path}")
        except OSError as e:
            logger.error(f"Failed to create default MCP config file: {e}")
        return McpServersConfig()

    try:
        config = McpServersConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, ValidationError) as e:
        logger.error(f"Failed to read or parse MCP config file at {path}: {e}")
        return McpServersConfig()

    logger.debug(f"Loaded MCP config from {path}")
    return config
