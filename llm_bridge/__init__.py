"""
LLM Bridge

Converts LLM API traffic between provider wire formats through a shared
intermediate representation, and relays it to the upstream provider.
"""

from llm_bridge.adapters import (
    AdapterRegistry,
    LLMAdapter,
    Provider,
    create_adapter,
    create_default_registry,
)
from llm_bridge.bridge import Bridge, BridgeConfig, BridgeHooks, CompatibilityReport
from llm_bridge.common.errors import (
    AdapterError,
    APIError,
    BridgeError,
    LLMBridgeError,
    NetworkError,
    RequestTimeoutError,
    ValidationError,
)

__version__ = "0.1.0"

__all__ = [
    "AdapterRegistry",
    "LLMAdapter",
    "Provider",
    "create_adapter",
    "create_default_registry",
    "Bridge",
    "BridgeConfig",
    "BridgeHooks",
    "CompatibilityReport",
    "AdapterError",
    "APIError",
    "BridgeError",
    "LLMBridgeError",
    "NetworkError",
    "RequestTimeoutError",
    "ValidationError",
]
