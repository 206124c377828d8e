"""
Shared error, finish reason and usage parsing for OpenAI-shaped providers.
"""

from typing import Any, Dict, Optional

from llm_bridge.ir import ErrorType, FinishReason, LLMErrorIR, Usage, UsageDetails

STANDARD_ERROR_TYPE_MAP: Dict[str, ErrorType] = {
    "invalid_request_error": ErrorType.VALIDATION,
    "authentication_error": ErrorType.AUTHENTICATION,
    "permission_error": ErrorType.PERMISSION,
    "not_found_error": ErrorType.NOT_FOUND,
    "rate_limit_error": ErrorType.RATE_LIMIT,
    "api_error": ErrorType.API,
    "server_error": ErrorType.SERVER,
    "insufficient_quota": ErrorType.RATE_LIMIT,
    "invalid_api_key": ErrorType.AUTHENTICATION,
}

STANDARD_ERROR_CODE_MAP: Dict[str, ErrorType] = {
    "InvalidParameter": ErrorType.VALIDATION,
    "InvalidApiKey": ErrorType.AUTHENTICATION,
    "AccessDenied": ErrorType.PERMISSION,
    "ModelNotFound": ErrorType.NOT_FOUND,
    "Throttling": ErrorType.RATE_LIMIT,
    "InternalError": ErrorType.SERVER,
}

STANDARD_FINISH_REASON_MAP: Dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "tool_calls": FinishReason.TOOL_CALLS,
    "content_filter": FinishReason.CONTENT_FILTER,
    # Legacy OpenAI
    "function_call": FinishReason.TOOL_CALLS,
    # DeepSeek
    "insufficient_system_resource": FinishReason.ERROR,
    # Zhipu
    "sensitive": FinishReason.CONTENT_FILTER,
}

RETRYABLE_ERROR_TYPES = {ErrorType.RATE_LIMIT, ErrorType.SERVER, ErrorType.NETWORK}


def map_finish_reason(
    reason: Optional[str],
    custom: Optional[Dict[str, FinishReason]] = None,
    default: FinishReason = FinishReason.STOP,
) -> FinishReason:
    """
    Map a provider finish reason to the IR one.

    Args:
        reason: Provider value
        custom: Extra mappings overriding the standard ones
        default: Used when ``reason`` is empty or unknown
    """
    if not reason:
        return default
    if custom and reason in custom:
        return custom[reason]
    return STANDARD_FINISH_REASON_MAP.get(reason, default)


def map_error_type(
    error_type: Optional[str] = None,
    code: Optional[str] = None,
    custom_types: Optional[Dict[str, ErrorType]] = None,
    custom_codes: Optional[Dict[str, ErrorType]] = None,
) -> ErrorType:
    """Map provider error type/code to ErrorType; the code is checked first."""
    if code:
        code_map = {**STANDARD_ERROR_CODE_MAP, **(custom_codes or {})}
        if code in code_map:
            return code_map[code]
    if error_type:
        type_map = {**STANDARD_ERROR_TYPE_MAP, **(custom_types or {})}
        return type_map.get(error_type, ErrorType.UNKNOWN)
    return ErrorType.UNKNOWN


def parse_openai_compatible_error(
    error: Any,
    custom_types: Optional[Dict[str, ErrorType]] = None,
    custom_codes: Optional[Dict[str, ErrorType]] = None,
) -> LLMErrorIR:
    """Parse ``{"error": {"message", "type", "code"}}`` bodies."""
    if isinstance(error, dict) and isinstance(error.get("error"), dict):
        err = error["error"]
        code = err.get("code")
        code = str(code) if code is not None else None
        mapped = map_error_type(err.get("type"), code, custom_types, custom_codes)
        return LLMErrorIR(
            type=mapped,
            message=err.get("message", ""),
            code=code,
            retryable=mapped in RETRYABLE_ERROR_TYPES,
            raw=error,
        )
    return LLMErrorIR(type=ErrorType.UNKNOWN, message=str(error), raw=error)


def parse_openai_usage(usage: Optional[Dict[str, Any]]) -> Optional[Usage]:
    """Parse an OpenAI-style usage object (DeepSeek cache hits included)."""
    if not usage:
        return None
    reasoning = (usage.get("completion_tokens_details") or {}).get("reasoning_tokens")
    cached = usage.get("prompt_cache_hit_tokens")
    if cached is None:
        cached = (usage.get("prompt_tokens_details") or {}).get("cached_tokens")
    details = None
    if reasoning or cached:
        details = UsageDetails(reasoning_tokens=reasoning, cached_tokens=cached)
    return Usage(
        prompt_tokens=usage.get("prompt_tokens", 0) or 0,
        completion_tokens=usage.get("completion_tokens", 0) or 0,
        total_tokens=usage.get("total_tokens", 0) or 0,
        details=details,
    )


def build_openai_usage(
    usage: Optional[Usage],
    include_reasoning_tokens: bool = True,
    include_cache_tokens: bool = False,
) -> Optional[Dict[str, Any]]:
    """Render IR usage as an OpenAI-style usage object."""
    if usage is None:
        return None
    result: Dict[str, Any] = {
        "prompt_tokens": usage.prompt_tokens,
        "completion_tokens": usage.completion_tokens,
        "total_tokens": usage.total_tokens,
    }
    details = usage.details
    if include_reasoning_tokens and details and details.reasoning_tokens:
        result["completion_tokens_details"] = {"reasoning_tokens": details.reasoning_tokens}
    if include_cache_tokens and details and details.cached_tokens:
        result["prompt_cache_hit_tokens"] = details.cached_tokens
    return result
