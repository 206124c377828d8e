"""
Unit Tests for request round trips

Decoding a request and encoding it again with the same adapter must give
back the original payload when it is already in the adapter's canonical
shape.
"""

import pytest

from llm_bridge.adapters import (
    AnthropicAdapter,
    DeepSeekAdapter,
    GeminiAdapter,
    MinimaxAdapter,
    OpenAIChatAdapter,
    ZhipuAdapter,
)

WEATHER_SCHEMA = {
    "type": "object",
    "properties": {"city": {"type": "string"}},
    "required": ["city"],
}

OPENAI_TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "get_weather",
            "description": "Current weather for a city",
            "parameters": WEATHER_SCHEMA,
        },
    }
]

OPENAI_TOOL_TURN = [
    {
        "role": "assistant",
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "get_weather", "arguments": '{"city": "Paris"}'},
            }
        ],
    },
    {"role": "tool", "content": "18C and sunny", "tool_call_id": "call_1"},
]

OPENAI_REQUEST = {
    "model": "gpt-4o",
    "messages": [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "Weather in Paris?"},
        *OPENAI_TOOL_TURN,
        {"role": "assistant", "content": "18C and sunny."},
        {"role": "user", "content": "And tomorrow?"},
    ],
    "stream": False,
    "tools": OPENAI_TOOLS,
    "tool_choice": "auto",
    "temperature": 0.2,
    "top_p": 0.9,
    "max_tokens": 256,
    "stop": ["END"],
    "presence_penalty": 0.1,
    "frequency_penalty": 0.2,
    "seed": 7,
    "user": "u-1",
}

ANTHROPIC_REQUEST = {
    "model": "claude-sonnet-4-5",
    "max_tokens": 1024,
    "system": "You are terse.",
    "messages": [
        {"role": "user", "content": "Weather in Paris?"},
        {"role": "assistant", "content": "Checking."},
        {"role": "user", "content": [{"type": "text", "text": "Answer in Celsius."}]},
    ],
    "temperature": 0.3,
    "top_p": 0.9,
    "top_k": 40,
    "stop_sequences": ["END"],
    "thinking": {"type": "enabled", "budget_tokens": 2048},
    "tools": [
        {
            "name": "get_weather",
            "description": "Current weather for a city",
            "input_schema": WEATHER_SCHEMA,
        }
    ],
    "tool_choice": {"type": "auto"},
    "metadata": {"user_id": "u-1"},
}

# The model travels in the URL path, not the body
GEMINI_REQUEST = {
    "systemInstruction": {"parts": [{"text": "You are terse."}]},
    "contents": [
        {"role": "user", "parts": [{"text": "Weather in Paris?"}]},
        {"role": "model", "parts": [{"functionCall": {"name": "get_weather", "args": {"city": "Paris"}}}]},
        {
            "role": "user",
            "parts": [{"functionResponse": {"name": "get_weather", "response": {"result": "18C and sunny"}}}],
        },
        {"role": "model", "parts": [{"text": "18C and sunny."}]},
        {"role": "user", "parts": [{"text": "And tomorrow?"}]},
    ],
    "tools": [
        {
            "functionDeclarations": [
                {
                    "name": "get_weather",
                    "description": "Current weather for a city",
                    "parameters": WEATHER_SCHEMA,
                }
            ]
        }
    ],
    "toolConfig": {"functionCallingConfig": {"mode": "AUTO"}},
    "generationConfig": {
        "temperature": 0.4,
        "topP": 0.95,
        "topK": 32,
        "maxOutputTokens": 512,
        "stopSequences": ["END"],
        "responseMimeType": "application/json",
    },
}

DEEPSEEK_REQUEST = {
    "model": "deepseek-chat",
    "messages": [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "Weather in Paris?"},
        *OPENAI_TOOL_TURN,
        {"role": "assistant", "content": "18C and sunny.", "reasoning_content": "The tool answered."},
        {"role": "user", "content": "And tomorrow?"},
    ],
    "stream": False,
    "tools": OPENAI_TOOLS,
    "tool_choice": "auto",
    "temperature": 0.2,
    "top_p": 0.9,
    "max_tokens": 1024,
    "stop": ["END"],
    "presence_penalty": 0.1,
    "frequency_penalty": 0.2,
    "response_format": {"type": "json_object"},
    "thinking": {"type": "enabled"},
}

MINIMAX_REQUEST = {
    "model": "MiniMax-M2.1",
    "messages": [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "Weather in Paris?"},
        *OPENAI_TOOL_TURN,
        {
            "role": "assistant",
            "content": "18C and sunny.",
            "reasoning_details": [{"type": "thinking", "text": "The tool answered."}],
        },
        {"role": "user", "content": "And tomorrow?"},
    ],
    "stream": False,
    "tools": OPENAI_TOOLS,
    "tool_choice": "auto",
    "temperature": 0.7,
    "top_p": 0.9,
    "max_tokens": 1024,
    "stop": ["END"],
    "response_format": {"type": "json_object"},
    "reasoning_split": True,
}

ZHIPU_REQUEST = {
    "model": "glm-4-plus",
    "messages": [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "Weather in Paris?"},
        *OPENAI_TOOL_TURN,
        {"role": "assistant", "content": "18C and sunny."},
        {"role": "user", "content": "And tomorrow?"},
    ],
    "stream": False,
    "tools": [
        *OPENAI_TOOLS,
        {"type": "web_search", "web_search": {"enable": True, "search_result": True}},
    ],
    "tool_choice": "auto",
    "temperature": 0.6,
    "top_p": 0.8,
    "max_tokens": 512,
    "stop": ["END"],
    "do_sample": True,
    "request_id": "req-1",
    "user_id": "u-1",
}


@pytest.mark.parametrize(
    "adapter_class, request_payload",
    [
        pytest.param(OpenAIChatAdapter, OPENAI_REQUEST, id="openai"),
        pytest.param(AnthropicAdapter, ANTHROPIC_REQUEST, id="anthropic"),
        pytest.param(GeminiAdapter, GEMINI_REQUEST, id="gemini"),
        pytest.param(DeepSeekAdapter, DEEPSEEK_REQUEST, id="deepseek"),
        pytest.param(MinimaxAdapter, MINIMAX_REQUEST, id="minimax"),
        pytest.param(ZhipuAdapter, ZHIPU_REQUEST, id="zhipu"),
    ],
)
class TestRequestRoundTrip:
    """build_request(parse_request(x)) == x for canonical requests."""

    def test_round_trip(self, adapter_class, request_payload):
        adapter = adapter_class()

        rebuilt = adapter.outbound.build_request(adapter.inbound.parse_request(request_payload))

        assert rebuilt == request_payload

    def test_message_order_and_tools(self, adapter_class, request_payload):
        adapter = adapter_class()

        ir = adapter.inbound.parse_request(request_payload)

        assert ir.system == "You are terse."
        assert ir.messages[0].get_text_content() == "Weather in Paris?"
        assert [tool.function.name for tool in ir.tools] == ["get_weather"]
        assert ir.tools[0].function.parameters == WEATHER_SCHEMA
