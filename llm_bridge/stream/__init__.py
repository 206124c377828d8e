"""
Stream Utilities Module

Line reassembly for Server-Sent Events read over arbitrary chunk boundaries,
and the SSE serialiser used by the HTTP boundary.
"""

import json
from typing import Any, List, Optional

from ..ir import SSEEvent

DONE_SENTINEL = "[DONE]"


class SSELineParser:
    """
    Stateful line splitter for SSE text.

    Complete lines are returned as soon as their newline arrives; a trailing
    partial line is buffered until the next chunk or ``flush()``.
    """

    def __init__(self):
        self._buffer = ""

    def process_chunk(self, chunk: str) -> List[str]:
        """
        Feed a chunk and return the lines it completed.

        Args:
            chunk: Raw text, may end mid-line

        Returns:
            Complete non-empty lines, trailing ``\\r`` removed
        """
        self._buffer += chunk
        parts = self._buffer.split("\n")
        self._buffer = parts.pop()
        return self._clean(parts)

    def flush(self) -> List[str]:
        """Return whatever is left in the buffer and reset it."""
        remaining = self._buffer
        self._buffer = ""
        return self._clean(remaining.split("\n"))

    def has_remaining(self) -> bool:
        return bool(self._buffer)

    def clear(self) -> None:
        self._buffer = ""

    @staticmethod
    def _clean(lines: List[str]) -> List[str]:
        result = []
        for line in lines:
            if line.endswith("\r"):
                line = line[:-1]
            if line:
                result.append(line)
        return result


def parse_data_line(line: str) -> Optional[str]:
    """
    Extract the payload of a ``data:`` line.

    Returns None for other SSE fields (event, id, comments) and for the
    ``[DONE]`` sentinel.
    """
    if not line.startswith("data:"):
        return None
    payload = line[5:].strip()
    if not payload or payload == DONE_SENTINEL:
        return None
    return payload


class SSEFormatter:
    """Formatter for Server-Sent Events (SSE) format."""

    @staticmethod
    def format(frame: SSEEvent, named: bool = True) -> str:
        """
        Serialise one frame.

        Args:
            frame: Event name and payload
            named: Emit an ``event:`` line (Anthropic/Responses style); bare
                ``data:`` otherwise (OpenAI Chat style)

        Returns:
            Formatted SSE string ending with a blank line
        """
        data: Any = frame.data
        payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
        if named and frame.event:
            return f"event: {frame.event}\ndata: {payload}\n\n"
        return f"data: {payload}\n\n"

    @staticmethod
    def done() -> str:
        return f"data: {DONE_SENTINEL}\n\n"


__all__ = [
    "DONE_SENTINEL",
    "SSELineParser",
    "SSEFormatter",
    "parse_data_line",
]
