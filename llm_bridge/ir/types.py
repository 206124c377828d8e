"""
Intermediate Representation Type Definitions

Provider-neutral shapes for requests, responses, stream events and errors.
Adapters convert each provider's wire format to and from these types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class Role(str, Enum):
    """Unified role representation across all providers."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class FinishReason(str, Enum):
    """Unified finish reason across providers."""
    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool_calls"
    CONTENT_FILTER = "content_filter"
    ERROR = "error"


class StreamEventType(str, Enum):
    """Types of streaming events."""
    START = "start"
    CONTENT = "content"
    REASONING = "reasoning"
    TOOL_CALL = "tool_call"
    END = "end"
    ERROR = "error"


class ErrorType(str, Enum):
    """Error categories reported through LLMErrorIR."""
    NETWORK = "network"
    API = "api"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    SERVER = "server"
    UNKNOWN = "unknown"


class ToolChoiceMode(str, Enum):
    """Tool choice options."""
    AUTO = "auto"
    NONE = "none"
    REQUIRED = "required"


# ============================================================================
# Content
# ============================================================================


@dataclass
class UrlImageSource:
    """Image referenced by URL."""
    url: str = ""
    type: str = field(default="url", init=False)


@dataclass
class Base64ImageSource:
    """Inline image data."""
    media_type: str = "image/png"
    data: str = ""
    type: str = field(default="base64", init=False)


ImageSource = Union[UrlImageSource, Base64ImageSource]


@dataclass
class TextContent:
    """Text content part."""
    text: str = ""
    type: str = field(default="text", init=False)


@dataclass
class ImageContent:
    """Image content part."""
    source: ImageSource = field(default_factory=UrlImageSource)
    type: str = field(default="image", init=False)


ContentPart = Union[TextContent, ImageContent]


# ============================================================================
# Tools
# ============================================================================


@dataclass
class ToolCallFunction:
    """Function invocation; arguments is always a JSON string."""
    name: str = ""
    arguments: str = "{}"


@dataclass
class ToolCall:
    """A tool call made by the assistant."""
    id: str = ""
    function: ToolCallFunction = field(default_factory=ToolCallFunction)
    type: str = "function"


@dataclass
class ToolFunction:
    """Function declaration."""
    name: str = ""
    description: Optional[str] = None
    parameters: Optional[Dict[str, Any]] = None
    strict: Optional[bool] = None


@dataclass
class Tool:
    """Tool definition offered to the model."""
    function: ToolFunction = field(default_factory=ToolFunction)
    type: str = "function"


@dataclass
class ToolChoiceFunction:
    """Force the model to call one specific function."""
    name: str = ""


ToolChoice = Union[ToolChoiceMode, ToolChoiceFunction]


# ============================================================================
# Messages
# ============================================================================


@dataclass
class Message:
    """A single conversation message."""
    role: Role = Role.USER
    content: Union[str, List[ContentPart]] = ""
    name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Optional[List[ToolCall]] = None
    reasoning_content: Optional[str] = None

    def get_text_content(self) -> str:
        """Concatenate all text content."""
        if isinstance(self.content, str):
            return self.content
        return "".join(
            part.text for part in self.content if isinstance(part, TextContent)
        )

    def has_image(self) -> bool:
        if isinstance(self.content, str):
            return False
        return any(isinstance(part, ImageContent) for part in self.content)


# ============================================================================
# Request
# ============================================================================


@dataclass
class ResponseFormat:
    """Structured output request."""
    type: str = "text"  # text, json_object, json_schema
    json_schema: Optional[Dict[str, Any]] = None


@dataclass
class ThinkingConfig:
    """Extended thinking / reasoning configuration."""
    enabled: bool = False
    budget_tokens: Optional[int] = None


@dataclass
class GenerationConfig:
    """Sampling and output parameters."""
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_tokens: Optional[int] = None
    stop_sequences: Optional[List[str]] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    n: Optional[int] = None
    seed: Optional[int] = None
    response_format: Optional[ResponseFormat] = None
    thinking: Optional[ThinkingConfig] = None
    enable_search: Optional[bool] = None
    logprobs: Optional[bool] = None
    top_logprobs: Optional[int] = None


@dataclass
class LLMRequestIR:
    """Complete request in intermediate representation."""
    messages: List[Message] = field(default_factory=list)
    model: Optional[str] = None
    tools: Optional[List[Tool]] = None
    tool_choice: Optional[ToolChoice] = None
    stream: bool = False
    generation: Optional[GenerationConfig] = None
    # Hoisted system prompt; messages never hold a system entry once set
    system: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    # Provider-namespaced passthrough, e.g. extensions["minimax"]["reasoning_split"]
    extensions: Dict[str, Any] = field(default_factory=dict)
    raw: Any = None


# ============================================================================
# Response
# ============================================================================


@dataclass
class UsageDetails:
    """Token usage breakdown."""
    reasoning_tokens: Optional[int] = None
    cached_tokens: Optional[int] = None
    cache_creation_tokens: Optional[int] = None
    cache_read_tokens: Optional[int] = None


@dataclass
class Usage:
    """Token usage statistics."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    details: Optional[UsageDetails] = None


@dataclass
class Choice:
    """One response alternative."""
    index: int = 0
    message: Message = field(default_factory=lambda: Message(role=Role.ASSISTANT))
    finish_reason: Optional[FinishReason] = None
    logprobs: Any = None


@dataclass
class LLMResponseIR:
    """Complete response in intermediate representation."""
    id: str = ""
    model: str = ""
    choices: List[Choice] = field(default_factory=list)
    usage: Optional[Usage] = None
    created: Optional[int] = None
    system_fingerprint: Optional[str] = None
    extensions: Dict[str, Any] = field(default_factory=dict)
    raw: Any = None


# ============================================================================
# Streaming
# ============================================================================


@dataclass
class ContentDelta:
    delta: str = ""
    index: int = 0


@dataclass
class ReasoningDelta:
    delta: str = ""


@dataclass
class ToolCallDelta:
    """Partial tool call; only the fields that changed in this chunk are set."""
    id: Optional[str] = None
    name: Optional[str] = None
    arguments: Optional[str] = None
    index: int = 0


@dataclass
class StreamError:
    message: str = ""
    code: Optional[str] = None


@dataclass
class LLMStreamEvent:
    """One streaming event; only the field matching ``type`` is populated."""
    type: StreamEventType
    id: Optional[str] = None
    model: Optional[str] = None
    content: Optional[ContentDelta] = None
    reasoning: Optional[ReasoningDelta] = None
    tool_call: Optional[ToolCallDelta] = None
    finish_reason: Optional[FinishReason] = None
    usage: Optional[Usage] = None
    error: Optional[StreamError] = None
    raw: Any = None


@dataclass
class SSEEvent:
    """One frame to be written by the transport: ``event`` name plus payload."""
    event: str
    data: Any


# ============================================================================
# Errors
# ============================================================================


@dataclass
class LLMErrorIR:
    """Provider error in intermediate representation."""
    type: ErrorType = ErrorType.UNKNOWN
    message: str = ""
    code: Optional[str] = None
    status: Optional[int] = None
    retryable: bool = False
    raw: Any = None
