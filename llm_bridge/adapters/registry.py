"""
Adapter Registry

Holds adapters by name. Registries are created explicitly and passed where
they are needed; ``create_default_registry()`` builds one holding every
built-in adapter.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

from llm_bridge.common.errors import AdapterError

from .anthropic import AnthropicAdapter
from .base import AdapterInfo, LLMAdapter
from .deepseek import DeepSeekAdapter
from .gemini import GeminiAdapter
from .minimax import MinimaxAdapter
from .openai_chat import OpenAIChatAdapter
from .openai_responses import OpenAIResponsesAdapter
from .zhipu import ZhipuAdapter

logger = logging.getLogger(__name__)


class Provider(str, Enum):
    """Built-in adapter names."""
    OPENAI = "openai"
    OPENAI_RESPONSES = "openai-responses"
    ANTHROPIC = "anthropic"
    DEEPSEEK = "deepseek"
    MINIMAX = "minimax"
    ZHIPU = "zhipu"
    GEMINI = "google"

    @classmethod
    def from_string(cls, value: str) -> "Provider":
        """Convert string to Provider enum with normalization."""
        normalized = value.lower().strip().replace("_", "-")
        mapping = {
            "openai": cls.OPENAI,
            "openai-chat": cls.OPENAI,
            "openai-responses": cls.OPENAI_RESPONSES,
            "responses": cls.OPENAI_RESPONSES,
            "anthropic": cls.ANTHROPIC,
            "claude": cls.ANTHROPIC,
            "deepseek": cls.DEEPSEEK,
            "minimax": cls.MINIMAX,
            "zhipu": cls.ZHIPU,
            "glm": cls.ZHIPU,
            "google": cls.GEMINI,
            "gemini": cls.GEMINI,
        }
        if normalized in mapping:
            return mapping[normalized]
        raise ValueError(f"Unknown provider: {value}")


ADAPTER_CLASSES = {
    Provider.OPENAI: OpenAIChatAdapter,
    Provider.OPENAI_RESPONSES: OpenAIResponsesAdapter,
    Provider.ANTHROPIC: AnthropicAdapter,
    Provider.DEEPSEEK: DeepSeekAdapter,
    Provider.MINIMAX: MinimaxAdapter,
    Provider.ZHIPU: ZhipuAdapter,
    Provider.GEMINI: GeminiAdapter,
}


def create_adapter(provider: str) -> LLMAdapter:
    """
    Instantiate a built-in adapter.

    Args:
        provider: Adapter name or alias (see ``Provider.from_string``)
    """
    return ADAPTER_CLASSES[Provider.from_string(provider)]()


class AdapterRegistry:
    """Registry of adapters keyed by ``adapter.name``."""

    def __init__(self):
        self._adapters: Dict[str, LLMAdapter] = {}

    def register(self, adapter: LLMAdapter) -> None:
        """
        Register an adapter.

        Raises:
            AdapterError: If an adapter with the same name is registered
        """
        if adapter.name in self._adapters:
            raise AdapterError(
                f"Adapter '{adapter.name}' is already registered",
                adapter_name=adapter.name,
            )
        self._adapters[adapter.name] = adapter
        logger.debug("Registered adapter: %s", adapter.name)

    def unregister(self, name: str) -> bool:
        """Remove an adapter; returns False when it was not registered."""
        return self._adapters.pop(name, None) is not None

    def get(self, name: str) -> Optional[LLMAdapter]:
        return self._adapters.get(name)

    def has(self, name: str) -> bool:
        return name in self._adapters

    def list(self) -> List[AdapterInfo]:
        return [adapter.get_info() for adapter in self._adapters.values()]

    def clear(self) -> None:
        self._adapters.clear()

    def __len__(self) -> int:
        return len(self._adapters)


def create_default_registry() -> AdapterRegistry:
    """Registry with one instance of every built-in adapter."""
    registry = AdapterRegistry()
    for adapter_class in ADAPTER_CLASSES.values():
        registry.register(adapter_class())
    return registry
