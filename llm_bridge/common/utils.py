"""
Utility Functions

Small helpers shared by the adapters: identifiers, timestamps and JSON
argument handling.
"""

import json
import time
import uuid
from typing import Any, Dict, Optional


def drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` without keys whose value is None."""
    return {key: value for key, value in data.items() if value is not None}


def now_ts() -> int:
    """Current Unix time in seconds."""
    return int(time.time())


def now_ms() -> int:
    """Current Unix time in milliseconds."""
    return int(time.time() * 1000)


def generate_id(prefix: str) -> str:
    """
    Generate an identifier such as ``msg_1712345678901_3f9a1c2e``.

    The random suffix keeps ids unique within the same millisecond.

    Args:
        prefix: Identifier prefix without the trailing underscore
    """
    return f"{prefix}_{now_ms()}_{uuid.uuid4().hex[:8]}"


def generate_uuid() -> str:
    return str(uuid.uuid4())


def dump_arguments(arguments: Any) -> str:
    """Tool call arguments as a JSON string (already-serialised strings pass through)."""
    if arguments is None:
        return "{}"
    if isinstance(arguments, str):
        return arguments
    return json.dumps(arguments, ensure_ascii=False)


def load_arguments(arguments: Optional[str]) -> Any:
    """
    Parse tool call arguments into an object.

    Invalid JSON is kept as ``{"raw": ...}`` so the call is not lost.
    """
    if not arguments:
        return {}
    try:
        return json.loads(arguments)
    except json.JSONDecodeError:
        return {"raw": arguments}
