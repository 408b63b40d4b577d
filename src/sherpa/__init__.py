"""sherpa - ask a language model questions about a codebase."""

__version__ = "0.1.0"

from .core.models import Config, FileNode, ToolDescriptor
from .ai.host import Host
from .ai.service import SherpaService, DeliveryChannel
from .tools.manager import MCPManager

__all__ = ["Config", "FileNode", "ToolDescriptor", "Host", "SherpaService", "DeliveryChannel", "MCPManager"]
