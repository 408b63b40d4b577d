"""Model access and query orchestration for sherpa.

This package provides the model adapters, the conversation data model,
the host that runs queries with tools, and the service layer used by
front-ends.
"""

from .models.common import (
    MessageRole,
    Message,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    ToolDescriptor,
    StreamEvent,
    StreamEventType,
    ChatRequest,
    ChatStatus,
    QueryResult,
)
from .adapter import BaseLLMAdapter, AdapterFactory, create_adapter
from .config import ProviderType, MODEL_CATALOG, get_provider_for_model, get_llm_config_from_env
from .prompts import SYSTEM_PROMPT
from .host import Host, QueryState
from .service import DeliveryChannel, SherpaService

__all__ = [
    # Conversation model
    'MessageRole',
    'Message',
    'TextPart',
    'ToolCallPart',
    'ToolResultPart',
    'ToolDescriptor',
    'StreamEvent',
    'StreamEventType',
    'ChatRequest',
    'ChatStatus',
    'QueryResult',

    # Model gateway
    'BaseLLMAdapter',
    'AdapterFactory',
    'create_adapter',
    'ProviderType',
    'MODEL_CATALOG',
    'get_provider_for_model',
    'get_llm_config_from_env',

    # Orchestration
    'SYSTEM_PROMPT',
    'Host',
    'QueryState',
    'DeliveryChannel',
    'SherpaService',
]
