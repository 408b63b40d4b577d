"""Aggregated tool catalog across connected providers."""

from typing import Dict, List, Sequence, Tuple

from ..core.models import ToolDescriptor
from ..core.errors import ToolNotFoundError
from ..utils.logging_config import get_logger
from .client import ProtocolClient

logger = get_logger(__name__)


class ToolRegistry:
    """Maps tool names to their descriptor and owning client.

    Built once from an ordered list of clients. When two providers expose
    the same tool name, the one registered later wins.
    """

    def __init__(self):
        self._descriptors: Dict[str, ToolDescriptor] = {}
        self._clients: Dict[str, ProtocolClient] = {}

    @classmethod
    async def build(cls, clients: Sequence[ProtocolClient]) -> "ToolRegistry":
        registry = cls()
        for client in clients:
            try:
                descriptors = await client.list_tools()
            except Exception as e:
                logger.error(f"Could not list tools of provider '{client.name}': {e}", exc_info=True)
                continue
            registry.register(client, descriptors)
        logger.info(f"Tool registry built with {len(registry)} tools: {', '.join(registry.names())}")
        return registry

    def register(self, client: ProtocolClient, descriptors: Sequence[ToolDescriptor]) -> None:
        for descriptor in descriptors:
            previous = self._clients.get(descriptor.name)
            if previous is not None:
                logger.debug(
                    f"Tool '{descriptor.name}' from '{client.name}' replaces the one from '{previous.name}'"
                )
                # Re-insert so iteration order follows the winning registration
                del self._descriptors[descriptor.name]
            self._descriptors[descriptor.name] = descriptor
            self._clients[descriptor.name] = client

    def resolve(self, name: str) -> Tuple[ToolDescriptor, ProtocolClient]:
        """
        Look up a tool by name.

        Raises:
            ToolNotFoundError: No provider exposes ``name``
        """
        if name not in self._descriptors:
            raise ToolNotFoundError(name)
        return self._descriptors[name], self._clients[name]

    def tools(self) -> List[ToolDescriptor]:
        """All descriptors in registration order."""
        return list(self._descriptors.values())

    def names(self) -> List[str]:
        return list(self._descriptors)

    def __contains__(self, name: str) -> bool:
        return name in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)
