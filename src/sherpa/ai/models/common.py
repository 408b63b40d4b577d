"""Common data models for conversations, tools and model streaming."""

from typing import Annotated, List, Dict, Any, Optional, Union, Literal
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ...core.models import ToolDescriptor


class MessageRole(str, Enum):
    """Valid message roles."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


class _WireModel(BaseModel):
    """Snake_case attributes, camelCase keys on the wire."""
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class TextPart(_WireModel):
    """Plain text inside an assistant message."""
    type: Literal["text"] = "text"
    text: str


class ToolCallPart(_WireModel):
    """A tool invocation requested by the assistant."""
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolResultPart(_WireModel):
    """The answer to one tool call, correlated by id."""
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    result: Any


ContentPart = Annotated[
    Union[TextPart, ToolCallPart, ToolResultPart],
    Field(discriminator="type"),
]


class Message(_WireModel):
    """A message in the conversation."""
    role: MessageRole
    content: Union[str, List[ContentPart]]

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=text)

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=MessageRole.USER, content=text)

    def tool_calls(self) -> List[ToolCallPart]:
        """Tool-call parts in order; empty for plain-text content."""
        if isinstance(self.content, str):
            return []
        return [part for part in self.content if isinstance(part, ToolCallPart)]

    def tool_results(self) -> List[ToolResultPart]:
        if isinstance(self.content, str):
            return []
        return [part for part in self.content if isinstance(part, ToolResultPart)]

    @property
    def text(self) -> str:
        """Concatenated text of the message."""
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text for part in self.content if isinstance(part, TextPart))


class TokenUsage(BaseModel):
    """Token usage statistics."""
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Calculate total tokens used."""
        return self.input_tokens + self.output_tokens


class StreamEventType(str, Enum):
    """Types of streaming events."""
    CONTENT_DELTA = "content_delta"
    TOOL_CALL_START = "tool_call_start"
    MESSAGE_STOP = "message_stop"


class StreamEvent(BaseModel):
    """A streaming event from a model response."""
    event_type: StreamEventType
    delta: Optional[str] = None
    tool_call: Optional[Dict[str, Any]] = None
    message: Optional[Message] = None
    usage: Optional[TokenUsage] = None


class ChatRequest(_WireModel):
    """One conversation turn as submitted by a front-end."""
    user_prompt: str = Field(alias="userPrompt")
    previous_messages: List[Message] = Field(default_factory=list, alias="previousMessages")
    model_provider: str = Field(alias="modelProvider")
    api_key: Optional[str] = Field(default=None, alias="apiKey")
    model: Optional[str] = None
    user_files: List[str] = Field(default_factory=list, alias="userFiles")


class ChatStatus(BaseModel):
    """Terminal status of a conversation turn."""
    status: Literal["completed", "error"]
    message: Optional[str] = None
    finished_at: datetime = Field(default_factory=datetime.now)


class QueryResult(BaseModel):
    """Everything a finished query produced."""
    messages: List[Message]
    text: str = ""

    @property
    def final_message(self) -> Optional[Message]:
        return self.messages[-1] if self.messages else None
