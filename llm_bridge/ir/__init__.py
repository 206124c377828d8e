"""
Intermediate Representation (IR) Module

Provides a provider-neutral representation for LLM requests, responses and
stream events. Every conversion goes source -> IR -> target.
"""

from .types import (
    # Core types
    LLMRequestIR,
    LLMResponseIR,
    LLMStreamEvent,
    LLMErrorIR,
    Message,
    Choice,
    Usage,
    UsageDetails,
    GenerationConfig,
    ResponseFormat,
    ThinkingConfig,
    SSEEvent,
    # Content types
    ContentPart,
    TextContent,
    ImageContent,
    ImageSource,
    UrlImageSource,
    Base64ImageSource,
    # Tool types
    Tool,
    ToolFunction,
    ToolCall,
    ToolCallFunction,
    ToolChoice,
    ToolChoiceFunction,
    # Stream payloads
    ContentDelta,
    ReasoningDelta,
    ToolCallDelta,
    StreamError,
    # Enums
    Role,
    FinishReason,
    StreamEventType,
    ErrorType,
    ToolChoiceMode,
)

__all__ = [
    "LLMRequestIR",
    "LLMResponseIR",
    "LLMStreamEvent",
    "LLMErrorIR",
    "Message",
    "Choice",
    "Usage",
    "UsageDetails",
    "GenerationConfig",
    "ResponseFormat",
    "ThinkingConfig",
    "SSEEvent",
    "ContentPart",
    "TextContent",
    "ImageContent",
    "ImageSource",
    "UrlImageSource",
    "Base64ImageSource",
    "Tool",
    "ToolFunction",
    "ToolCall",
    "ToolCallFunction",
    "ToolChoice",
    "ToolChoiceFunction",
    "ContentDelta",
    "ReasoningDelta",
    "ToolCallDelta",
    "StreamError",
    "Role",
    "FinishReason",
    "StreamEventType",
    "ErrorType",
    "ToolChoiceMode",
]
