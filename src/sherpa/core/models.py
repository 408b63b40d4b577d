"""
Core data models for sherpa.

This module contains the runtime configuration, the directory tree node
and the tool catalog entry shared by the tool providers and the host.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_path(name: str, default: Path) -> Path:
    value = os.getenv(name)
    return Path(value).expanduser() if value else default


@dataclass
class Config:
    """Configuration settings for sherpa."""

    cache_directory: Path = field(
        default_factory=lambda: _env_path('SHERPA_CACHE_DIR', Path.home() / '.cache' / 'sherpa')
    )
    config_directory: Path = field(
        default_factory=lambda: _env_path('SHERPA_CONFIG_DIR', Path.home() / '.config' / 'sherpa')
    )

    # Model defaults
    default_provider: str = field(default_factory=lambda: os.getenv('LLM_PROVIDER', 'anthropic'))
    # None selects the provider's own default model
    default_model: Optional[str] = field(default_factory=lambda: os.getenv('LLM_MODEL') or None)
    max_tokens: int = 8000

    # Orchestration limits
    max_tool_rounds: int = 20
    seed_tree_depth: int = 3

    # Tool providers
    handshake_timeout: float = 30.0

    @property
    def mcp_config_path(self) -> Path:
        """Location of the external tool provider document."""
        return self.config_directory / 'mcp_servers.json'


@dataclass
class FileNode:
    """Represents a file or directory in a listed tree."""

    path: str
    name: str
    type: Literal['file', 'directory']
    children: List['FileNode'] = field(default_factory=list)

    def is_file(self) -> bool:
        """Check if this node represents a file."""
        return self.type == 'file'

    def is_directory(self) -> bool:
        """Check if this node represents a directory."""
        return self.type == 'directory'

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON shape served to directory browsers."""
        data: Dict[str, Any] = {"name": self.name, "type": self.type, "path": self.path}
        if self.is_directory():
            data["children"] = [child.to_dict() for child in self.children]
        return data

    def iter_preorder(self):
        """Yield this node and all descendants, parents before children."""
        yield self
        for child in self.children:
            yield from child.iter_preorder()


@dataclass
class ToolDescriptor:
    """A tool's catalog entry as advertised by its provider."""

    name: str
    description: str = ""
    input_schema: Dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})

    def to_openai(self) -> Dict[str, Any]:
        """Function-calling shape understood by OpenAI-compatible endpoints."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }
