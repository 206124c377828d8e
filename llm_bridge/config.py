"""
Configuration Management Module

Configures bridge defaults via environment variables or .env file.
"""

import json
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Bridge Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "LLM Bridge"
    DEBUG: bool = False

    # HTTP Client Config
    # Request timeout (ms)
    HTTP_TIMEOUT_MS: int = 60000
    # Retries after the first attempt (5xx, timeout and network errors only)
    HTTP_MAX_RETRIES: int = 3
    # Backoff base (ms), delay is 2**retry * base
    HTTP_RETRY_BASE_DELAY_MS: int = 1000
    # Largest response body accepted (bytes)
    HTTP_MAX_RESPONSE_SIZE: int = 100 * 1024 * 1024

    # OAuth Pool Config
    OAUTH_MAX_RETRY_ATTEMPTS: int = 3

    # OAuth-fronted upstreams
    ANTIGRAVITY_BASE_URLS: List[str] = [
        "https://daily-cloudcode-pa.googleapis.com",
        "https://cloudcode-pa.googleapis.com",
    ]
    CODEX_API_URL: str = "https://chatgpt.com/backend-api/codex/responses"

    # Proxy Server Config
    # Format spoken by clients of the proxy
    PROXY_INBOUND: str = "openai"
    # Format of the upstream provider
    PROXY_OUTBOUND: str = "anthropic"
    PROXY_API_KEY: str = ""
    PROXY_BASE_URL: Optional[str] = None
    PROXY_TARGET_MODEL: Optional[str] = None
    # JSON object, e.g. {"gpt-4": "claude-haiku-4-5-20251001"}
    PROXY_MODEL_MAPPING: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @field_validator("PROXY_MODEL_MAPPING", mode="after")
    @classmethod
    def _validate_model_mapping(cls, v: str) -> str:
        """Reject anything but a JSON object at load time."""
        if not v.strip():
            return ""
        try:
            mapping = json.loads(v)
        except json.JSONDecodeError as e:
            raise ValueError(f"PROXY_MODEL_MAPPING is not valid JSON: {e}")
        if not isinstance(mapping, dict):
            raise ValueError("PROXY_MODEL_MAPPING must be a JSON object")
        return v

    def model_mapping(self) -> Dict[str, str]:
        """Parse PROXY_MODEL_MAPPING into a dict (empty when unset)."""
        if not self.PROXY_MODEL_MAPPING:
            return {}
        mapping = json.loads(self.PROXY_MODEL_MAPPING)
        return {str(k): str(v) for k, v in mapping.items()}


@lru_cache()
def get_settings() -> Settings:
    """
    Get bridge configuration (Singleton)

    Returns:
        Settings: Configuration instance
    """
    return Settings()
