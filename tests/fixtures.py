"""
Test Fixtures

Sample payloads for the adapters and test doubles for the Bridge.
"""

import json
from typing import Any, AsyncIterator, Dict, List, Optional

from llm_bridge.common.http_client import HttpResponse, RequestOptions

# =============================================================================
# OpenAI Chat Completions Fixtures
# =============================================================================

OPENAI_CHAT_SIMPLE_REQUEST = {
    "model": "gpt-4",
    "messages": [{"role": "user", "content": "Hi"}],
}

OPENAI_CHAT_WITH_SYSTEM_REQUEST = {
    "model": "gpt-4o",
    "messages": [
        {"role": "system", "content": "You are a helpful assistant."},
        {"role": "user", "content": "What is 2+2?"},
    ],
    "max_tokens": 100,
    "temperature": 0.7,
    "stop": "END",
    "user": "user-42",
}

OPENAI_CHAT_WITH_TOOLS_REQUEST = {
    "model": "gpt-4o",
    "messages": [{"role": "user", "content": "What's the weather in Paris?"}],
    "tools": [
        {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Get current weather for a location",
                "parameters": {
                    "type": "object",
                    "properties": {"location": {"type": "string"}},
                    "required": ["location"],
                },
            },
        }
    ],
    "tool_choice": {"type": "function", "function": {"name": "get_weather"}},
}

OPENAI_CHAT_TOOL_RESULT_REQUEST = {
    "model": "gpt-4o",
    "messages": [
        {"role": "user", "content": "What's the weather in Paris?"},
        {
            "role": "assistant",
            "content": None,
            "tool_calls": [
                {
                    "id": "call_abc123",
                    "type": "function",
                    "function": {"name": "get_weather", "arguments": '{"location": "Paris"}'},
                }
            ],
        },
        {"role": "tool", "tool_call_id": "call_abc123", "content": "Sunny, 22C"},
    ],
}

OPENAI_CHAT_IMAGE_REQUEST = {
    "model": "gpt-4o",
    "messages": [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": "What's in this image?"},
                {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="}},
            ],
        }
    ],
}

OPENAI_CHAT_SIMPLE_RESPONSE = {
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "created": 1700000000,
    "model": "gpt-4o",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Hello there!"},
            "finish_reason": "stop",
        }
    ],
    "usage": {"prompt_tokens": 10, "completion_tokens": 15, "total_tokens": 25},
}

OPENAI_CHAT_TOOL_CALL_RESPONSE = {
    "id": "chatcmpl-456",
    "object": "chat.completion",
    "created": 1700000000,
    "model": "gpt-4o",
    "choices": [
        {
            "index": 0,
            "message": {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_abc123",
                        "type": "function",
                        "function": {"name": "get_weather", "arguments": '{"location": "Paris"}'},
                    }
                ],
            },
            "finish_reason": "tool_calls",
        }
    ],
    "usage": {"prompt_tokens": 20, "completion_tokens": 10, "total_tokens": 30},
}

OPENAI_CHAT_STREAM_CHUNKS = [
    {
        "id": "chatcmpl-789",
        "object": "chat.completion.chunk",
        "model": "gpt-4o",
        "choices": [{"index": 0, "delta": {"role": "assistant", "content": ""}, "finish_reason": None}],
    },
    {
        "id": "chatcmpl-789",
        "object": "chat.completion.chunk",
        "model": "gpt-4o",
        "choices": [{"index": 0, "delta": {"content": "Hello"}, "finish_reason": None}],
    },
    {
        "id": "chatcmpl-789",
        "object": "chat.completion.chunk",
        "model": "gpt-4o",
        "choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}],
    },
    {
        "id": "chatcmpl-789",
        "object": "chat.completion.chunk",
        "model": "gpt-4o",
        "choices": [],
        "usage": {"prompt_tokens": 5, "completion_tokens": 1, "total_tokens": 6},
    },
]

# =============================================================================
# Anthropic Messages Fixtures
# =============================================================================

ANTHROPIC_SIMPLE_REQUEST = {
    "model": "claude-3-5-sonnet-20241022",
    "max_tokens": 1024,
    "system": [{"type": "text", "text": "Be brief."}],
    "messages": [{"role": "user", "content": "Hello"}],
    "metadata": {"user_id": "user-7"},
}

ANTHROPIC_TOOL_RESULT_REQUEST = {
    "model": "claude-3-5-sonnet-20241022",
    "max_tokens": 1024,
    "messages": [
        {"role": "user", "content": "What's the weather in Paris?"},
        {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Let me check."},
                {"type": "tool_use", "id": "toolu_1", "name": "get_weather", "input": {"location": "Paris"}},
            ],
        },
        {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "toolu_1", "content": "Sunny"},
                {"type": "text", "text": "And tomorrow?"},
            ],
        },
    ],
    "tools": [
        {
            "name": "get_weather",
            "description": "Get weather",
            "input_schema": {"type": "object", "properties": {"location": {"type": "string"}}},
        }
    ],
    "tool_choice": {"type": "any"},
}

ANTHROPIC_THINKING_REQUEST = {
    "model": "claude-3-7-sonnet-20250219",
    "max_tokens": 2048,
    "thinking": {"type": "enabled", "budget_tokens": 1024},
    "messages": [{"role": "user", "content": "Think about it"}],
}

ANTHROPIC_SIMPLE_RESPONSE = {
    "id": "msg_01",
    "type": "message",
    "role": "assistant",
    "model": "claude-haiku-4-5-20251001",
    "content": [{"type": "text", "text": "Hello"}],
    "stop_reason": "end_turn",
    "stop_sequence": None,
    "usage": {"input_tokens": 5, "output_tokens": 3},
}

ANTHROPIC_TOOL_USE_RESPONSE = {
    "id": "msg_02",
    "type": "message",
    "role": "assistant",
    "model": "claude-3-5-sonnet-20241022",
    "content": [
        {"type": "thinking", "thinking": "Need the weather."},
        {"type": "tool_use", "id": "toolu_9", "name": "get_weather", "input": {"location": "Paris"}},
    ],
    "stop_reason": "tool_use",
    "usage": {"input_tokens": 30, "output_tokens": 12, "cache_read_input_tokens": 8},
}

ANTHROPIC_STREAM_BODY = (
    "event: message_start\n"
    'data: {"type":"message_start","message":{"id":"msg_s1","model":"claude-haiku-4-5-20251001",'
    '"usage":{"input_tokens":5,"output_tokens":0}}}\n\n'
    "event: content_block_start\n"
    'data: {"type":"content_block_start","index":0,"content_block":{"type":"text","text":""}}\n\n'
    "event: ping\n"
    'data: {"type":"ping"}\n\n'
    "event: content_block_delta\n"
    'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"Hel"}}\n\n'
    "event: content_block_delta\n"
    'data: {"type":"content_block_delta","index":0,"delta":{"type":"text_delta","text":"lo"}}\n\n'
    "event: content_block_stop\n"
    'data: {"type":"content_block_stop","index":0}\n\n'
    "event: message_delta\n"
    'data: {"type":"message_delta","delta":{"stop_reason":"end_turn"},"usage":{"output_tokens":3}}\n\n'
    "event: message_stop\n"
    'data: {"type":"message_stop"}\n\n'
)

ANTHROPIC_RATE_LIMIT_ERROR = {
    "type": "error",
    "error": {"type": "rate_limit_error", "message": "Slow down"},
}

# =============================================================================
# OpenAI Responses Fixtures
# =============================================================================

OPENAI_RESPONSES_REQUEST = {
    "model": "gpt-5",
    "instructions": "You are terse.",
    "input": [
        {"type": "message", "role": "developer", "content": "Prefer metric units."},
        {
            "type": "message",
            "role": "user",
            "content": [
                {"type": "input_text", "text": "Weather?"},
                {"type": "input_image", "image_url": "https://example.com/sky.png"},
            ],
        },
        {"type": "function_call", "call_id": "call_1", "name": "get_weather", "arguments": '{"city":"Oslo"}'},
        {"type": "function_call", "call_id": "call_2", "name": "get_time", "arguments": "{}"},
        {"type": "function_call_output", "call_id": "call_1", "output": "Rain"},
    ],
    "tools": [
        {"type": "function", "name": "get_weather", "parameters": {"type": "object"}},
        {"type": "web_search_preview"},
    ],
    "max_output_tokens": 256,
    "store": False,
    "reasoning": {"effort": "low"},
    "text": {"format": {"type": "json_schema", "name": "weather", "schema": {"type": "object"}}},
    "metadata": {"trace": "t-1"},
}

OPENAI_RESPONSES_RESPONSE = {
    "id": "resp_1",
    "object": "response",
    "created_at": 1700000000,
    "model": "gpt-5",
    "status": "completed",
    "output": [
        {
            "type": "reasoning",
            "id": "rs_1",
            "summary": [{"type": "summary_text", "text": "Checked the sky."}],
        },
        {
            "type": "message",
            "id": "msg_1",
            "role": "assistant",
            "content": [{"type": "output_text", "text": "It is raining.", "annotations": []}],
        },
    ],
    "usage": {
        "input_tokens": 40,
        "output_tokens": 9,
        "total_tokens": 49,
        "output_tokens_details": {"reasoning_tokens": 4},
    },
}

# =============================================================================
# Gemini Fixtures
# =============================================================================

GEMINI_REQUEST = {
    "systemInstruction": {"parts": [{"text": "Be helpful."}]},
    "contents": [
        {"role": "user", "parts": [{"text": "Weather in Paris?"}]},
        {"role": "model", "parts": [{"functionCall": {"name": "get_weather", "args": {"city": "Paris"}}}]},
        {
            "role": "user",
            "parts": [{"functionResponse": {"name": "get_weather", "response": {"result": "Sunny"}}}],
        },
    ],
    "tools": [{"functionDeclarations": [{"name": "get_weather", "parameters": {"type": "object"}}]}],
    "toolConfig": {"functionCallingConfig": {"mode": "ANY", "allowedFunctionNames": ["get_weather"]}},
    "generationConfig": {"temperature": 0.2, "maxOutputTokens": 512, "responseMimeType": "application/json"},
}

GEMINI_RESPONSE = {
    "candidates": [
        {
            "content": {"role": "model", "parts": [{"text": "Sunny in Paris."}]},
            "finishReason": "STOP",
            "index": 0,
        }
    ],
    "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 4, "totalTokenCount": 16},
    "responseId": "gem-1",
    "modelVersion": "gemini-2.5-flash",
}

GEMINI_TOOL_CALL_RESPONSE = {
    "candidates": [
        {
            "content": {
                "role": "model",
                "parts": [{"functionCall": {"name": "get_weather", "args": {"city": "Paris"}}}],
            },
            "finishReason": "STOP",
        }
    ],
    "modelVersion": "gemini-2.5-flash",
}


# =============================================================================
# Test Doubles
# =============================================================================


class FakeHttpClient:
    """
    Stand-in for HttpClient that records requests.

    ``response`` is returned by ``request``; ``stream_chunks`` are yielded by
    ``request_stream``; ``error`` is raised by both when set.
    ``stream_released`` turns true once a stream is finished or closed.
    """

    def __init__(
        self,
        response: Any = None,
        stream_chunks: Optional[List[str]] = None,
        error: Optional[Exception] = None,
    ):
        self.response = response
        self.stream_chunks = stream_chunks or []
        self.error = error
        self.requests: List[RequestOptions] = []
        self.closed = False
        self.stream_released = False

    async def request(self, options: RequestOptions) -> HttpResponse:
        self.requests.append(options)
        if self.error is not None:
            raise self.error
        return HttpResponse(status=200, headers={}, data=self.response)

    async def request_stream(self, options: RequestOptions) -> AsyncIterator[str]:
        self.requests.append(options)
        if self.error is not None:
            raise self.error
        try:
            for chunk in self.stream_chunks:
                yield chunk
        finally:
            self.stream_released = True

    async def close(self) -> None:
        self.closed = True


def sse_body(chunks: List[Dict[str, Any]], done: bool = True) -> str:
    """Render JSON payloads as a bare ``data:`` SSE stream."""
    body = "".join(f"data: {json.dumps(chunk)}\n\n" for chunk in chunks)
    if done:
        body += "data: [DONE]\n\n"
    return body
