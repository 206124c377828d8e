"""
Error Definitions

Typed exceptions raised by the HTTP client, the adapters and the Bridge.
Every error knows whether it is worth retrying and which HTTP status the
proxy boundary should answer with.
"""

from typing import Any, Optional


class LLMBridgeError(Exception):
    """
    Bridge Base Exception

    Base class for all custom exceptions, containing message, code and
    retryability.
    """

    error_type = "bridge_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "bridge_error",
        retryable: bool = False,
        details: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize exception

        Args:
            message: Error message
            code: Error code
            retryable: Whether the failed operation may be attempted again
            details: Extra error details
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary format (for API response)

        Returns:
            dict: Error information dictionary
        """
        result: dict[str, Any] = {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "code": self.code,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


class APIError(LLMBridgeError):
    """
    Upstream API Error

    Raised when the provider answers with a non-2xx status. Retryable for 5xx.
    """

    error_type = "api_error"

    def __init__(
        self,
        message: str,
        status: int,
        provider: Optional[str] = None,
        data: Any = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(
            message=message,
            code="api_error",
            retryable=status >= 500,
            details={"status": status, "provider": provider} if provider else {"status": status},
        )
        self.status = status
        self.provider = provider
        self.data = data
        self.headers = headers or {}

    @property
    def status_code(self) -> int:  # type: ignore[override]
        return self.status


class NetworkError(LLMBridgeError):
    """Connection-level failure (DNS, reset, oversize body)."""

    error_type = "network_error"
    status_code = 502

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message=message, code="network_error", retryable=True)
        self.cause = cause


class RequestTimeoutError(LLMBridgeError):
    """Request did not complete within the configured timeout."""

    error_type = "timeout_error"
    status_code = 504

    def __init__(self, message: str, timeout_ms: Optional[int] = None):
        super().__init__(
            message=message,
            code="timeout",
            retryable=True,
            details={"timeout_ms": timeout_ms} if timeout_ms is not None else None,
        )
        self.timeout_ms = timeout_ms


class ValidationError(LLMBridgeError):
    """
    Validation Error

    Raised when the request is malformed or asks for a capability the
    upstream adapter lacks. Never retryable.
    """

    error_type = "invalid_request_error"
    status_code = 400

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(
            message=message,
            code="validation_error",
            retryable=False,
            details={"errors": errors} if errors else None,
        )
        self.errors = errors or []


class AdapterError(LLMBridgeError):
    """Conversion failure inside an adapter."""

    error_type = "adapter_error"

    def __init__(self, message: str, adapter_name: str):
        super().__init__(
            message=message,
            code="adapter_error",
            details={"adapter": adapter_name},
        )
        self.adapter_name = adapter_name


class BridgeError(LLMBridgeError):
    """Orchestration-level failure."""

    def __init__(self, message: str):
        super().__init__(message=message, code="bridge_error")
