"""Core components for sherpa."""

from .errors import (
    SherpaError,
    ProviderConnectionError,
    ProtocolError,
    ToolError,
    ToolNotFoundError,
    ToolInvocationError,
    ModelStreamError,
    PathAccessError,
    UnsupportedProviderError,
    MaxRoundsExceededError,
    NotInitializedError,
    AlreadyInitializedError,
)
from .models import Config, FileNode, ToolDescriptor

__all__ = [
    "Config",
    "FileNode",
    "ToolDescriptor",
    "SherpaError",
    "ProviderConnectionError",
    "ProtocolError",
    "ToolError",
    "ToolNotFoundError",
    "ToolInvocationError",
    "ModelStreamError",
    "PathAccessError",
    "UnsupportedProviderError",
    "MaxRoundsExceededError",
    "NotInitializedError",
    "AlreadyInitializedError",
]
