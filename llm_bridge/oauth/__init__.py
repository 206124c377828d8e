"""
OAuth Account Pool

Pooled dispatch for providers reached with per-account OAuth tokens.
"""

from .pool_manager import (
    AccountSelection,
    AccountSelector,
    InMemoryAccountPool,
    OAuthAccount,
    OAuthPoolManager,
    PoolExhaustedError,
)
from .codex import CodexAPIError, CodexTranslator
from .antigravity import AntigravityTranslator, unwrap_response, wrap_request

__all__ = [
    "AccountSelection",
    "AccountSelector",
    "InMemoryAccountPool",
    "OAuthAccount",
    "OAuthPoolManager",
    "PoolExhaustedError",
    "CodexAPIError",
    "CodexTranslator",
    "AntigravityTranslator",
    "unwrap_response",
    "wrap_request",
]
