"""
Provider Adapters

Each adapter pairs a Decoder (wire -> IR) with an Encoder (IR -> wire) for
one provider API.
"""

from .base import (
    AdapterCapabilities,
    AdapterInfo,
    Decoder,
    Encoder,
    LLMAdapter,
    ProviderEndpoint,
    StreamEventBuilder,
    ValidationResult,
)
from .anthropic import AnthropicAdapter
from .deepseek import DeepSeekAdapter
from .gemini import GeminiAdapter
from .minimax import MinimaxAdapter
from .openai_chat import OpenAIChatAdapter
from .openai_responses import OpenAIResponsesAdapter
from .zhipu import ZhipuAdapter
from .registry import AdapterRegistry, Provider, create_adapter, create_default_registry

__all__ = [
    "AdapterCapabilities",
    "AdapterInfo",
    "Decoder",
    "Encoder",
    "LLMAdapter",
    "ProviderEndpoint",
    "StreamEventBuilder",
    "ValidationResult",
    "AnthropicAdapter",
    "DeepSeekAdapter",
    "GeminiAdapter",
    "MinimaxAdapter",
    "OpenAIChatAdapter",
    "OpenAIResponsesAdapter",
    "ZhipuAdapter",
    "AdapterRegistry",
    "Provider",
    "create_adapter",
    "create_default_registry",
]
