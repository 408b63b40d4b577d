"""Lifecycle of the configured external tool providers."""

from pathlib import Path
from typing import List, Optional, Union

from ..core.errors import AlreadyInitializedError, NotInitializedError
from ..utils.logging_config import get_logger
from .client import DEFAULT_HANDSHAKE_TIMEOUT, ProtocolClient, create_clients
from .config import McpServersConfig, load_mcp_config

logger = get_logger(__name__)


class MCPManager:
    """Owns the clients of every provider listed in the config document.

    ``initialize`` connects them once; ``clients`` hands them to the host;
    ``cleanup`` closes them. Call ``initialize`` and ``cleanup`` from the
    same task.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None,
                 config: Optional[McpServersConfig] = None,
                 handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT):
        self.config_path = Path(config_path) if config_path is not None else None
        self._config = config
        self.handshake_timeout = handshake_timeout
        self._clients: Optional[List[ProtocolClient]] = None

    @property
    def initialized(self) -> bool:
        return self._clients is not None

    async def initialize(self) -> List[ProtocolClient]:
        """
        Connect every configured provider; failures are logged and skipped.

        Raises:
            AlreadyInitializedError: Called a second time without cleanup
        """
        if self._clients is not None:
            raise AlreadyInitializedError("MCP manager is already initialized")

        config = self._config
        if config is None:
            config = load_mcp_config(self.config_path) if self.config_path else McpServersConfig()

        self._clients = await create_clients(config.transports(), self.handshake_timeout)
        logger.info(
            f"Connected {len(self._clients)} of {len(config.mcp_servers)} configured tool providers"
        )
        return list(self._clients)

    def clients(self) -> List[ProtocolClient]:
        """
        Connected external clients, in configuration order.

        Raises:
            NotInitializedError: ``initialize`` has not run
        """
        if self._clients is None:
            raise NotInitializedError("MCP manager has not been initialized")
        return list(self._clients)

    async def cleanup(self) -> None:
        """Close every client. The manager can be initialized again afterwards."""
        clients, self._clients = self._clients or [], None
        for client in reversed(clients):
            try:
                await client.close()
            except Exception as e:
                logger.error(f"Error closing tool provider '{client.name}': {e}", exc_info=True)
