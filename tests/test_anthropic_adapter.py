"""
Unit Tests for the Anthropic Messages adapter
"""

from llm_bridge.adapters.anthropic import AnthropicStreamBuilder
from llm_bridge.ir import (
    Choice,
    ContentDelta,
    ErrorType,
    FinishReason,
    GenerationConfig,
    LLMRequestIR,
    LLMResponseIR,
    LLMStreamEvent,
    Message,
    ReasoningDelta,
    Role,
    StreamError,
    StreamEventType,
    ThinkingConfig,
    ToolCall,
    ToolCallDelta,
    ToolCallFunction,
    ToolChoiceMode,
    Usage,
)
from tests.fixtures import (
    ANTHROPIC_RATE_LIMIT_ERROR,
    ANTHROPIC_SIMPLE_REQUEST,
    ANTHROPIC_SIMPLE_RESPONSE,
    ANTHROPIC_THINKING_REQUEST,
    ANTHROPIC_TOOL_RESULT_REQUEST,
    ANTHROPIC_TOOL_USE_RESPONSE,
)


class TestAnthropicDecoder:
    """Tests for Anthropic -> IR."""

    def test_simple_request(self, anthropic_adapter):
        ir = anthropic_adapter.inbound.parse_request(ANTHROPIC_SIMPLE_REQUEST)

        assert ir.system == "Be brief."
        assert ir.messages == [Message(role=Role.USER, content="Hello")]
        assert ir.generation.max_tokens == 1024
        assert ir.metadata["user_id"] == "user-7"

    def test_tool_results_become_tool_messages(self, anthropic_adapter):
        ir = anthropic_adapter.inbound.parse_request(ANTHROPIC_TOOL_RESULT_REQUEST)

        roles = [msg.role for msg in ir.messages]
        assert roles == [Role.USER, Role.ASSISTANT, Role.TOOL, Role.USER]
        assistant = ir.messages[1]
        assert assistant.get_text_content() == "Let me check."
        assert assistant.tool_calls[0].id == "toolu_1"
        assert assistant.tool_calls[0].function.arguments == '{"location": "Paris"}'
        assert ir.messages[2].tool_call_id == "toolu_1"
        assert ir.messages[2].content == "Sunny"
        assert ir.messages[3].get_text_content() == "And tomorrow?"
        assert ir.tools[0].function.parameters["type"] == "object"
        assert ir.tool_choice == ToolChoiceMode.REQUIRED

    def test_thinking_config(self, anthropic_adapter):
        ir = anthropic_adapter.inbound.parse_request(ANTHROPIC_THINKING_REQUEST)
        assert ir.generation.thinking == ThinkingConfig(enabled=True, budget_tokens=1024)

    def test_parse_response(self, anthropic_adapter):
        ir = anthropic_adapter.inbound.parse_response(ANTHROPIC_SIMPLE_RESPONSE)

        assert ir.choices[0].message.content == "Hello"
        assert ir.choices[0].finish_reason == FinishReason.STOP
        assert ir.usage == Usage(prompt_tokens=5, completion_tokens=3, total_tokens=8)

    def test_parse_tool_use_response(self, anthropic_adapter):
        ir = anthropic_adapter.inbound.parse_response(ANTHROPIC_TOOL_USE_RESPONSE)

        message = ir.choices[0].message
        assert ir.choices[0].finish_reason == FinishReason.TOOL_CALLS
        assert message.reasoning_content == "Need the weather."
        assert message.tool_calls[0].function.name == "get_weather"
        assert ir.usage.details.cache_read_tokens == 8

    def test_parse_stream_events(self, anthropic_adapter):
        decoder = anthropic_adapter.inbound

        start = decoder.parse_stream(
            {"type": "message_start", "message": {"id": "msg_1", "model": "claude", "usage": {"input_tokens": 9}}}
        )
        tool = decoder.parse_stream(
            {"type": "content_block_start", "index": 1, "content_block": {"type": "tool_use", "id": "t1", "name": "f"}}
        )
        args = decoder.parse_stream(
            {"type": "content_block_delta", "index": 1, "delta": {"type": "input_json_delta", "partial_json": "{}"}}
        )
        end = decoder.parse_stream(
            {"type": "message_delta", "delta": {"stop_reason": "tool_use"}, "usage": {"output_tokens": 4}}
        )

        assert start.type == StreamEventType.START
        assert start.usage.prompt_tokens == 9
        assert tool.tool_call == ToolCallDelta(id="t1", name="f", index=1)
        assert args.tool_call.arguments == "{}"
        assert end.finish_reason == FinishReason.TOOL_CALLS
        assert end.usage.completion_tokens == 4
        assert decoder.parse_stream({"type": "ping"}) is None
        assert decoder.parse_stream({"type": "message_stop"}) is None

    def test_parse_error(self, anthropic_adapter):
        error = anthropic_adapter.inbound.parse_error(ANTHROPIC_RATE_LIMIT_ERROR)

        assert error.type == ErrorType.RATE_LIMIT
        assert error.message == "Slow down"
        assert error.retryable


class TestAnthropicEncoder:
    """Tests for IR -> Anthropic."""

    def test_system_and_default_max_tokens(self, anthropic_adapter):
        ir = LLMRequestIR(
            model="claude-haiku-4-5-20251001",
            system="Be brief.",
            messages=[Message(role=Role.USER, content="Hi")],
        )
        request = anthropic_adapter.outbound.build_request(ir)

        assert request["system"] == "Be brief."
        assert request["max_tokens"] == 4096
        assert request["messages"] == [{"role": "user", "content": "Hi"}]
        assert "stream" not in request

    def test_consecutive_tool_results_are_merged(self, anthropic_adapter):
        ir = LLMRequestIR(
            messages=[
                Message(role=Role.USER, content="Go"),
                Message(
                    role=Role.ASSISTANT,
                    content="",
                    tool_calls=[
                        ToolCall(id="a", function=ToolCallFunction(name="f", arguments='{"x": 1}')),
                        ToolCall(id="b", function=ToolCallFunction(name="g", arguments="{}")),
                    ],
                ),
                Message(role=Role.TOOL, content="1", tool_call_id="a"),
                Message(role=Role.TOOL, content="2", tool_call_id="b"),
            ]
        )
        messages = anthropic_adapter.outbound.build_request(ir)["messages"]

        assert len(messages) == 3
        assert messages[1]["content"][0] == {"type": "tool_use", "id": "a", "name": "f", "input": {"x": 1}}
        assert messages[2] == {
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "a", "content": "1"},
                {"type": "tool_result", "tool_use_id": "b", "content": "2"},
            ],
        }

    def test_thinking_gets_default_budget(self, anthropic_adapter):
        ir = LLMRequestIR(generation=GenerationConfig(thinking=ThinkingConfig(enabled=True)))
        request = anthropic_adapter.outbound.build_request(ir)
        assert request["thinking"] == {"type": "enabled", "budget_tokens": 10000}

    def test_tool_choice_required(self, anthropic_adapter):
        request = anthropic_adapter.outbound.build_request(
            LLMRequestIR(tool_choice=ToolChoiceMode.REQUIRED)
        )
        assert request["tool_choice"] == {"type": "any"}

    def test_build_response(self, anthropic_adapter):
        ir = LLMResponseIR(
            id="msg_x",
            model="claude",
            choices=[
                Choice(
                    message=Message(role=Role.ASSISTANT, content="Done", reasoning_content="hmm"),
                    finish_reason=FinishReason.LENGTH,
                )
            ],
            usage=Usage(prompt_tokens=4, completion_tokens=2, total_tokens=6),
        )
        response = anthropic_adapter.outbound.build_response(ir)

        assert response["content"] == [
            {"type": "thinking", "thinking": "hmm"},
            {"type": "text", "text": "Done"},
        ]
        assert response["stop_reason"] == "max_tokens"
        assert response["usage"] == {"input_tokens": 4, "output_tokens": 2}

    def test_build_response_with_tool_calls(self, anthropic_adapter):
        ir = LLMResponseIR(
            id="msg_y",
            choices=[
                Choice(
                    message=Message(
                        role=Role.ASSISTANT,
                        tool_calls=[ToolCall(id="c1", function=ToolCallFunction(name="f", arguments='{"q": 1}'))],
                    ),
                    finish_reason=FinishReason.STOP,
                )
            ],
        )
        response = anthropic_adapter.outbound.build_response(ir)

        assert response["stop_reason"] == "tool_use"
        assert response["content"] == [{"type": "tool_use", "id": "c1", "name": "f", "input": {"q": 1}}]


class TestAnthropicStreamBuilder:
    """Tests for IR stream events -> Anthropic named events."""

    def _events(self, builder, events):
        frames = []
        for event in events:
            frames.extend(builder.process(event))
        frames.extend(builder.finalize())
        return frames

    def test_text_stream_sequence(self):
        frames = self._events(
            AnthropicStreamBuilder(),
            [
                LLMStreamEvent(type=StreamEventType.START, id="msg_1", model="claude", usage=Usage(prompt_tokens=7)),
                LLMStreamEvent(type=StreamEventType.CONTENT, content=ContentDelta(delta="Hel")),
                LLMStreamEvent(type=StreamEventType.CONTENT, content=ContentDelta(delta="lo")),
                LLMStreamEvent(
                    type=StreamEventType.END,
                    finish_reason=FinishReason.STOP,
                    usage=Usage(completion_tokens=2),
                ),
            ],
        )

        assert [frame.event for frame in frames] == [
            "message_start",
            "content_block_start",
            "content_block_delta",
            "content_block_delta",
            "content_block_stop",
            "message_delta",
            "message_stop",
        ]
        message = frames[0].data["message"]
        assert message["id"] == "msg_1"
        assert message["usage"]["input_tokens"] == 7
        assert frames[1].data["content_block"] == {"type": "text", "text": ""}
        assert frames[2].data["delta"] == {"type": "text_delta", "text": "Hel"}
        assert frames[5].data["delta"]["stop_reason"] == "end_turn"
        assert frames[5].data["usage"] == {"output_tokens": 2}

    def test_block_indices_increase_per_block(self):
        frames = self._events(
            AnthropicStreamBuilder(),
            [
                LLMStreamEvent(type=StreamEventType.REASONING, reasoning=ReasoningDelta(delta="think")),
                LLMStreamEvent(type=StreamEventType.CONTENT, content=ContentDelta(delta="answer")),
                LLMStreamEvent(
                    type=StreamEventType.TOOL_CALL,
                    tool_call=ToolCallDelta(id="t1", name="f", arguments='{"a"'),
                ),
                LLMStreamEvent(type=StreamEventType.TOOL_CALL, tool_call=ToolCallDelta(arguments=": 1}")),
                LLMStreamEvent(type=StreamEventType.END, finish_reason=FinishReason.TOOL_CALLS),
            ],
        )

        starts = [f.data for f in frames if f.event == "content_block_start"]
        stops = [f.data["index"] for f in frames if f.event == "content_block_stop"]
        assert [s["index"] for s in starts] == [0, 1, 2]
        assert [s["content_block"]["type"] for s in starts] == ["thinking", "text", "tool_use"]
        assert starts[2]["content_block"]["id"] == "t1"
        assert stops == [0, 1, 2]
        json_deltas = [
            f.data["delta"]["partial_json"]
            for f in frames
            if f.event == "content_block_delta" and f.data["delta"]["type"] == "input_json_delta"
        ]
        assert json_deltas == ['{"a"', ": 1}"]
        assert frames[-2].data["delta"]["stop_reason"] == "tool_use"

    def test_usage_trailer_after_finish_reason(self):
        """OpenAI upstreams send usage in a choice-less chunk after finish_reason."""
        builder = AnthropicStreamBuilder()
        builder.process(LLMStreamEvent(type=StreamEventType.START, id="chatcmpl-1", model="gpt-4o"))
        builder.process(LLMStreamEvent(type=StreamEventType.CONTENT, content=ContentDelta(delta="Hi")))

        finish = builder.process(LLMStreamEvent(type=StreamEventType.END, finish_reason=FinishReason.STOP))
        trailer = builder.process(
            LLMStreamEvent(
                type=StreamEventType.END,
                usage=Usage(prompt_tokens=4, completion_tokens=3, total_tokens=7),
            )
        )

        assert [frame.event for frame in finish] == ["content_block_stop"]
        assert [frame.event for frame in trailer] == ["message_delta", "message_stop"]
        assert trailer[0].data["delta"]["stop_reason"] == "end_turn"
        assert trailer[0].data["usage"] == {"output_tokens": 3}
        assert builder.finalize() == []

    def test_finalize_emits_held_end(self):
        builder = AnthropicStreamBuilder()
        builder.process(LLMStreamEvent(type=StreamEventType.END, finish_reason=FinishReason.LENGTH))

        frames = builder.finalize()

        assert [frame.event for frame in frames] == ["message_delta", "message_stop"]
        assert frames[0].data["delta"]["stop_reason"] == "max_tokens"

    def test_events_after_finish_are_ignored(self):
        builder = AnthropicStreamBuilder()
        builder.process(
            LLMStreamEvent(type=StreamEventType.END, finish_reason=FinishReason.STOP, usage=Usage(completion_tokens=1))
        )

        trailing = builder.process(
            LLMStreamEvent(type=StreamEventType.END, usage=Usage(prompt_tokens=1, completion_tokens=1))
        )
        assert trailing == []
        assert builder.finalize() == []

    def test_interleaved_tool_calls_keep_their_arguments(self):
        frames = self._events(
            AnthropicStreamBuilder(),
            [
                LLMStreamEvent(type=StreamEventType.TOOL_CALL, tool_call=ToolCallDelta(name="weather", index=0)),
                LLMStreamEvent(type=StreamEventType.TOOL_CALL, tool_call=ToolCallDelta(name="time", index=1)),
                LLMStreamEvent(
                    type=StreamEventType.TOOL_CALL, tool_call=ToolCallDelta(arguments='{"city": "Paris"}', index=0)
                ),
                LLMStreamEvent(
                    type=StreamEventType.TOOL_CALL, tool_call=ToolCallDelta(arguments='{"tz": "CET"}', index=1)
                ),
                LLMStreamEvent(type=StreamEventType.END, finish_reason=FinishReason.TOOL_CALLS),
            ],
        )

        starts = {
            f.data["index"]: f.data["content_block"] for f in frames if f.event == "content_block_start"
        }
        arguments = {}
        for frame in frames:
            if frame.event == "content_block_delta":
                arguments.setdefault(frame.data["index"], "")
                arguments[frame.data["index"]] += frame.data["delta"]["partial_json"]
        by_name = {starts[index]["name"]: json_text for index, json_text in arguments.items()}

        assert by_name == {"weather": '{"city": "Paris"}', "time": '{"tz": "CET"}'}
        assert starts[0]["id"] != starts[1]["id"]
        stops = [f.data["index"] for f in frames if f.event == "content_block_stop"]
        assert sorted(stops) == sorted(starts)
        assert frames[-1].event == "message_stop"

    def test_error_event(self):
        frames = AnthropicStreamBuilder().process(
            LLMStreamEvent(type=StreamEventType.ERROR, error=StreamError(message="overloaded"))
        )
        assert frames[0].event == "error"
        assert frames[0].data == {"type": "error", "error": {"type": "api_error", "message": "overloaded"}}
