"""
Anthropic Messages Adapter

Converts between the Anthropic Messages API format and the IR.
"""

from typing import Any, Dict, List, Optional, Union

from llm_bridge.common.error_parser import RETRYABLE_ERROR_TYPES
from llm_bridge.common.utils import dump_arguments, generate_id, load_arguments
from llm_bridge.ir import (
    Base64ImageSource,
    Choice,
    ContentDelta,
    ContentPart,
    ErrorType,
    FinishReason,
    GenerationConfig,
    ImageContent,
    LLMErrorIR,
    LLMRequestIR,
    LLMResponseIR,
    LLMStreamEvent,
    Message,
    ReasoningDelta,
    Role,
    SSEEvent,
    StreamError,
    StreamEventType,
    TextContent,
    ThinkingConfig,
    Tool,
    ToolCall,
    ToolCallDelta,
    ToolCallFunction,
    ToolChoice,
    ToolChoiceFunction,
    ToolChoiceMode,
    ToolFunction,
    UrlImageSource,
    Usage,
    UsageDetails,
)
from .base import (
    AdapterCapabilities,
    Decoder,
    Encoder,
    LLMAdapter,
    ProviderEndpoint,
    StreamEventBuilder,
    StreamParseResult,
)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_THINKING_BUDGET = 10000
ANTHROPIC_VERSION = "2023-06-01"

STOP_REASON_TO_FINISH = {
    "end_turn": FinishReason.STOP,
    "max_tokens": FinishReason.LENGTH,
    "stop_sequence": FinishReason.STOP,
    "tool_use": FinishReason.TOOL_CALLS,
    "refusal": FinishReason.CONTENT_FILTER,
}

FINISH_TO_STOP_REASON = {
    FinishReason.STOP: "end_turn",
    FinishReason.LENGTH: "max_tokens",
    FinishReason.TOOL_CALLS: "tool_use",
    FinishReason.CONTENT_FILTER: "end_turn",
    FinishReason.ERROR: "end_turn",
}

ERROR_TYPE_MAP = {
    "invalid_request_error": ErrorType.VALIDATION,
    "authentication_error": ErrorType.AUTHENTICATION,
    "permission_error": ErrorType.PERMISSION,
    "not_found_error": ErrorType.NOT_FOUND,
    "rate_limit_error": ErrorType.RATE_LIMIT,
    "api_error": ErrorType.API,
    "overloaded_error": ErrorType.SERVER,
}


def _stop_reason(reason: Optional[FinishReason]) -> str:
    if reason is None:
        return "end_turn"
    return FINISH_TO_STOP_REASON.get(reason, "end_turn")


class AnthropicDecoder(Decoder):
    """Decodes Anthropic Messages API format to IR."""

    def parse_request(self, payload: Dict[str, Any]) -> LLMRequestIR:
        """Decode an Anthropic Messages request to IR."""
        ir = LLMRequestIR(
            model=payload.get("model"),
            stream=bool(payload.get("stream", False)),
            messages=self._decode_messages(payload.get("messages", [])),
            raw=payload,
        )

        # System can be a string or an array of text blocks
        system = payload.get("system")
        if isinstance(system, str) and system:
            ir.system = system
        elif isinstance(system, list):
            ir.system = self._extract_text_from_blocks(system) or None

        ir.generation = self._decode_generation(payload)

        if payload.get("tools"):
            ir.tools = [
                Tool(
                    function=ToolFunction(
                        name=tool.get("name", ""),
                        description=tool.get("description"),
                        parameters=tool.get("input_schema"),
                    )
                )
                for tool in payload["tools"]
            ]

        if payload.get("tool_choice"):
            ir.tool_choice = self._decode_tool_choice(payload["tool_choice"])

        metadata = payload.get("metadata") or {}
        if metadata.get("user_id"):
            ir.metadata["user_id"] = metadata["user_id"]

        return ir

    def _decode_messages(self, messages: List[Dict[str, Any]]) -> List[Message]:
        """
        Decode messages to IR.

        ``tool_use`` blocks become ``Message.tool_calls``; each ``tool_result``
        block becomes its own TOOL message, placed before any remaining user
        content of the same source message.
        """
        result: List[Message] = []

        for msg in messages:
            role = Role.ASSISTANT if msg.get("role") == "assistant" else Role.USER
            content = msg.get("content", "")

            if isinstance(content, str):
                result.append(Message(role=role, content=content))
                continue

            parts: List[ContentPart] = []
            tool_calls: List[ToolCall] = []
            reasoning: List[str] = []
            for block in content:
                block_type = block.get("type", "text")
                if block_type == "text":
                    parts.append(TextContent(text=block.get("text", "")))
                elif block_type == "image":
                    parts.append(ImageContent(source=self._decode_image_source(block)))
                elif block_type == "tool_use":
                    tool_calls.append(
                        ToolCall(
                            id=block.get("id", ""),
                            function=ToolCallFunction(
                                name=block.get("name", ""),
                                arguments=dump_arguments(block.get("input", {})),
                            ),
                        )
                    )
                elif block_type == "tool_result":
                    result.append(
                        Message(
                            role=Role.TOOL,
                            content=self._decode_tool_result_content(block.get("content", "")),
                            tool_call_id=block.get("tool_use_id", ""),
                        )
                    )
                elif block_type == "thinking":
                    reasoning.append(block.get("thinking", ""))

            if role == Role.USER and not parts:
                # Message held only tool results
                continue

            result.append(
                Message(
                    role=role,
                    content=parts,
                    tool_calls=tool_calls or None,
                    reasoning_content="".join(reasoning) if reasoning else None,
                )
            )

        return result

    def _decode_image_source(self, block: Dict[str, Any]) -> Union[UrlImageSource, Base64ImageSource]:
        source = block.get("source") or {}
        if source.get("type") == "url":
            return UrlImageSource(url=source.get("url", ""))
        return Base64ImageSource(
            media_type=source.get("media_type", "image/png"),
            data=source.get("data", ""),
        )

    def _decode_tool_result_content(self, content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return self._extract_text_from_blocks(content)
        return str(content)

    def _decode_generation(self, payload: Dict[str, Any]) -> GenerationConfig:
        config = GenerationConfig(
            max_tokens=payload.get("max_tokens"),
            temperature=payload.get("temperature"),
            top_p=payload.get("top_p"),
            top_k=payload.get("top_k"),
            stop_sequences=payload.get("stop_sequences"),
        )
        thinking = payload.get("thinking")
        if thinking:
            config.thinking = ThinkingConfig(
                enabled=thinking.get("type") == "enabled",
                budget_tokens=thinking.get("budget_tokens"),
            )
        return config

    def _decode_tool_choice(self, tool_choice: Dict[str, Any]) -> Optional[ToolChoice]:
        choice_type = tool_choice.get("type")
        if choice_type == "any":
            return ToolChoiceMode.REQUIRED
        if choice_type == "tool":
            return ToolChoiceFunction(name=tool_choice.get("name", ""))
        if choice_type == "none":
            return ToolChoiceMode.NONE
        return ToolChoiceMode.AUTO

    def _extract_text_from_blocks(self, blocks: List[Dict[str, Any]]) -> str:
        return "".join(b.get("text", "") for b in blocks if b.get("type") == "text")

    def parse_response(self, payload: Dict[str, Any]) -> LLMResponseIR:
        """Decode an Anthropic message response to IR."""
        texts: List[str] = []
        reasoning: List[str] = []
        tool_calls: List[ToolCall] = []
        for block in payload.get("content", []):
            block_type = block.get("type")
            if block_type == "text":
                texts.append(block.get("text", ""))
            elif block_type == "thinking":
                reasoning.append(block.get("thinking", ""))
            elif block_type == "tool_use":
                tool_calls.append(
                    ToolCall(
                        id=block.get("id", ""),
                        function=ToolCallFunction(
                            name=block.get("name", ""),
                            arguments=dump_arguments(block.get("input", {})),
                        ),
                    )
                )

        message = Message(
            role=Role.ASSISTANT,
            content="".join(texts),
            tool_calls=tool_calls or None,
            reasoning_content="".join(reasoning) if reasoning else None,
        )

        return LLMResponseIR(
            id=payload.get("id", ""),
            model=payload.get("model", ""),
            choices=[
                Choice(
                    index=0,
                    message=message,
                    finish_reason=STOP_REASON_TO_FINISH.get(
                        payload.get("stop_reason") or "", FinishReason.STOP
                    ),
                )
            ],
            usage=self._decode_usage(payload.get("usage")),
            raw=payload,
        )

    def _decode_usage(self, usage: Optional[Dict[str, Any]]) -> Optional[Usage]:
        if not usage:
            return None
        input_tokens = usage.get("input_tokens", 0) or 0
        output_tokens = usage.get("output_tokens", 0) or 0
        details = None
        cache_read = usage.get("cache_read_input_tokens")
        cache_creation = usage.get("cache_creation_input_tokens")
        if cache_read or cache_creation:
            details = UsageDetails(
                cached_tokens=cache_read,
                cache_read_tokens=cache_read,
                cache_creation_tokens=cache_creation,
            )
        return Usage(
            prompt_tokens=input_tokens,
            completion_tokens=output_tokens,
            total_tokens=input_tokens + output_tokens,
            details=details,
        )

    def parse_stream(self, chunk: Dict[str, Any]) -> StreamParseResult:
        """Decode one Anthropic SSE event payload to IR."""
        event_type = chunk.get("type")

        if event_type == "message_start":
            message = chunk.get("message") or {}
            usage = message.get("usage") or {}
            return LLMStreamEvent(
                type=StreamEventType.START,
                id=message.get("id"),
                model=message.get("model"),
                usage=Usage(prompt_tokens=usage.get("input_tokens", 0) or 0) if usage else None,
                raw=chunk,
            )

        if event_type == "content_block_start":
            block = chunk.get("content_block") or {}
            if block.get("type") == "tool_use":
                return LLMStreamEvent(
                    type=StreamEventType.TOOL_CALL,
                    tool_call=ToolCallDelta(
                        id=block.get("id"),
                        name=block.get("name"),
                        index=chunk.get("index", 0),
                    ),
                    raw=chunk,
                )
            return None

        if event_type == "content_block_delta":
            delta = chunk.get("delta") or {}
            delta_type = delta.get("type")
            if delta_type == "text_delta":
                return LLMStreamEvent(
                    type=StreamEventType.CONTENT,
                    content=ContentDelta(delta=delta.get("text", ""), index=chunk.get("index", 0)),
                    raw=chunk,
                )
            if delta_type == "thinking_delta":
                return LLMStreamEvent(
                    type=StreamEventType.REASONING,
                    reasoning=ReasoningDelta(delta=delta.get("thinking", "")),
                    raw=chunk,
                )
            if delta_type == "input_json_delta":
                return LLMStreamEvent(
                    type=StreamEventType.TOOL_CALL,
                    tool_call=ToolCallDelta(
                        arguments=delta.get("partial_json", ""),
                        index=chunk.get("index", 0),
                    ),
                    raw=chunk,
                )
            return None

        if event_type == "message_delta":
            delta = chunk.get("delta") or {}
            usage = chunk.get("usage") or {}
            output_tokens = usage.get("output_tokens")
            return LLMStreamEvent(
                type=StreamEventType.END,
                finish_reason=STOP_REASON_TO_FINISH.get(
                    delta.get("stop_reason") or "", FinishReason.STOP
                ),
                usage=Usage(
                    prompt_tokens=usage.get("input_tokens", 0) or 0,
                    completion_tokens=output_tokens or 0,
                    total_tokens=(usage.get("input_tokens", 0) or 0) + (output_tokens or 0),
                )
                if output_tokens is not None
                else None,
                raw=chunk,
            )

        if event_type == "error":
            err = chunk.get("error") or {}
            return LLMStreamEvent(
                type=StreamEventType.ERROR,
                error=StreamError(message=err.get("message", ""), code=err.get("type")),
                raw=chunk,
            )

        # ping, content_block_stop, message_stop
        return None

    def parse_error(self, payload: Any) -> LLMErrorIR:
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            err = payload["error"]
            error_type = ERROR_TYPE_MAP.get(err.get("type") or "", ErrorType.UNKNOWN)
            return LLMErrorIR(
                type=error_type,
                message=err.get("message", ""),
                code=err.get("type"),
                retryable=error_type in RETRYABLE_ERROR_TYPES,
                raw=payload,
            )
        return LLMErrorIR(type=ErrorType.UNKNOWN, message=str(payload), raw=payload)


class AnthropicEncoder(Encoder):
    """Encodes IR to Anthropic Messages API format."""

    def build_request(self, ir: LLMRequestIR) -> Dict[str, Any]:
        """Encode an IR request as an Anthropic Messages request."""
        gen = ir.generation or GenerationConfig()

        system_parts = [ir.system] if ir.system else []
        system_parts.extend(
            msg.get_text_content() for msg in ir.messages if msg.role == Role.SYSTEM
        )

        payload: Dict[str, Any] = {
            "model": ir.model or DEFAULT_MODEL,
            "messages": self._encode_messages(ir.messages),
            "max_tokens": gen.max_tokens or DEFAULT_MAX_TOKENS,
        }
        if system_parts:
            payload["system"] = "\n".join(system_parts)
        if ir.stream:
            payload["stream"] = True

        if gen.temperature is not None:
            payload["temperature"] = gen.temperature
        if gen.top_p is not None:
            payload["top_p"] = gen.top_p
        if gen.top_k is not None:
            payload["top_k"] = gen.top_k
        if gen.stop_sequences:
            payload["stop_sequences"] = gen.stop_sequences
        if gen.thinking and gen.thinking.enabled:
            payload["thinking"] = {
                "type": "enabled",
                "budget_tokens": gen.thinking.budget_tokens or DEFAULT_THINKING_BUDGET,
            }

        if ir.tools:
            payload["tools"] = [self._encode_tool(tool) for tool in ir.tools]
        if ir.tool_choice is not None:
            payload["tool_choice"] = self._encode_tool_choice(ir.tool_choice)

        if ir.metadata.get("user_id"):
            payload["metadata"] = {"user_id": ir.metadata["user_id"]}

        return payload

    def _encode_messages(self, messages: List[Message]) -> List[Dict[str, Any]]:
        """Encode IR messages; consecutive tool results share one user message."""
        result: List[Dict[str, Any]] = []

        for msg in messages:
            if msg.role == Role.SYSTEM:
                continue

            if msg.role == Role.TOOL:
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id or "",
                    "content": msg.get_text_content(),
                }
                last = result[-1] if result else None
                if (
                    last
                    and last["role"] == "user"
                    and isinstance(last["content"], list)
                    and all(b.get("type") == "tool_result" for b in last["content"])
                ):
                    last["content"].append(block)
                else:
                    result.append({"role": "user", "content": [block]})
                continue

            role = "assistant" if msg.role == Role.ASSISTANT else "user"
            if isinstance(msg.content, str) and not msg.tool_calls:
                result.append({"role": role, "content": msg.content})
                continue

            content = self._encode_content(msg.content)
            for tc in msg.tool_calls or []:
                content.append(
                    {
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.function.name,
                        "input": load_arguments(tc.function.arguments),
                    }
                )
            result.append({"role": role, "content": content})

        return result

    def _encode_content(self, content: Union[str, List[ContentPart]]) -> List[Dict[str, Any]]:
        if isinstance(content, str):
            return [{"type": "text", "text": content}] if content else []

        blocks = []
        for part in content:
            if isinstance(part, TextContent):
                blocks.append({"type": "text", "text": part.text})
            elif isinstance(part, ImageContent):
                source = part.source
                if isinstance(source, Base64ImageSource):
                    blocks.append(
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": source.media_type,
                                "data": source.data,
                            },
                        }
                    )
                else:
                    blocks.append({"type": "image", "source": {"type": "url", "url": source.url}})
        return blocks

    def _encode_tool(self, tool: Tool) -> Dict[str, Any]:
        encoded: Dict[str, Any] = {
            "name": tool.function.name,
            "input_schema": tool.function.parameters or {"type": "object", "properties": {}},
        }
        if tool.function.description:
            encoded["description"] = tool.function.description
        return encoded

    def _encode_tool_choice(self, choice: ToolChoice) -> Dict[str, Any]:
        if isinstance(choice, ToolChoiceFunction):
            return {"type": "tool", "name": choice.name}
        if choice == ToolChoiceMode.REQUIRED:
            return {"type": "any"}
        return {"type": choice.value}

    def build_response(self, ir: LLMResponseIR) -> Dict[str, Any]:
        """Encode an IR response as an Anthropic message."""
        choice = ir.choices[0] if ir.choices else Choice()
        message = choice.message

        content: List[Dict[str, Any]] = []
        if message.reasoning_content:
            content.append({"type": "thinking", "thinking": message.reasoning_content})
        text = message.get_text_content()
        if text:
            content.append({"type": "text", "text": text})
        for tc in message.tool_calls or []:
            content.append(
                {
                    "type": "tool_use",
                    "id": tc.id,
                    "name": tc.function.name,
                    "input": load_arguments(tc.function.arguments),
                }
            )
        if not content:
            content.append({"type": "text", "text": ""})

        stop_reason = "tool_use" if message.tool_calls else _stop_reason(choice.finish_reason)

        response: Dict[str, Any] = {
            "id": ir.id or generate_id("msg"),
            "type": "message",
            "role": "assistant",
            "model": ir.model,
            "content": content,
            "stop_reason": stop_reason,
            "stop_sequence": None,
        }

        usage = ir.usage or Usage()
        response["usage"] = {
            "input_tokens": usage.prompt_tokens,
            "output_tokens": usage.completion_tokens,
        }
        if usage.details:
            if usage.details.cache_creation_tokens:
                response["usage"]["cache_creation_input_tokens"] = usage.details.cache_creation_tokens
            cache_read = usage.details.cache_read_tokens or usage.details.cached_tokens
            if cache_read:
                response["usage"]["cache_read_input_tokens"] = cache_read

        return response

    def create_stream_builder(self) -> StreamEventBuilder:
        return AnthropicStreamBuilder()


class AnthropicStreamBuilder(StreamEventBuilder):
    """
    IR stream events -> Anthropic named SSE events.

    Text and thinking blocks are opened one at a time. Tool-use blocks stay
    open until text, thinking or the end arrives, and argument deltas are
    routed to the block of their tool call ``index`` so interleaved parallel
    calls keep their own arguments. Every ``content_block_start`` gets a
    matching ``content_block_stop``.

    ``message_delta``/``message_stop`` wait for an ``end`` carrying usage or
    for ``finalize()``, because OpenAI-style upstreams report usage in a
    trailer after the finish reason.
    """

    def __init__(self):
        self.has_started = False
        self.has_finished = False
        self.end_pending = False
        self.message_id: Optional[str] = None
        self.model = ""
        self.next_index = 0
        self.current_block_type: Optional[str] = None
        self.current_index = 0
        # tool call index -> content block index, open blocks only
        self.tool_blocks: Dict[int, int] = {}
        self.finish_reason: Optional[FinishReason] = None
        self.output_tokens = 0
        self.input_tokens = 0

    def process(self, event: LLMStreamEvent) -> List[SSEEvent]:
        if event.type == StreamEventType.ERROR:
            return [self._error_frame(event)]
        if self.has_finished:
            return []
        if self.end_pending and event.type != StreamEventType.END:
            return []

        frames: List[SSEEvent] = []
        if not self.has_started:
            frames.extend(self._start(event))

        if event.type == StreamEventType.CONTENT:
            if event.content and event.content.delta:
                frames.extend(self._ensure_block("text"))
                frames.append(
                    self._delta(self.current_index, {"type": "text_delta", "text": event.content.delta})
                )

        elif event.type == StreamEventType.REASONING:
            if event.reasoning and event.reasoning.delta:
                frames.extend(self._ensure_block("thinking"))
                frames.append(
                    self._delta(
                        self.current_index, {"type": "thinking_delta", "thinking": event.reasoning.delta}
                    )
                )

        elif event.type == StreamEventType.TOOL_CALL and event.tool_call:
            frames.extend(self._tool_call(event.tool_call))

        elif event.type == StreamEventType.END:
            if event.finish_reason is not None:
                self.finish_reason = event.finish_reason
            if event.usage:
                self.output_tokens = event.usage.completion_tokens
            frames.extend(self._close_block())
            frames.extend(self._close_tool_blocks())
            if event.usage:
                frames.extend(self._terminal_frames())
            else:
                self.end_pending = True

        return frames

    def finalize(self) -> List[SSEEvent]:
        if self.end_pending and not self.has_finished:
            return self._terminal_frames()
        return []

    def _tool_call(self, tc: ToolCallDelta) -> List[SSEEvent]:
        frames = self._close_block()
        if tc.name and tc.index in self.tool_blocks:
            # A second name for the same index starts a new call
            frames.append(self._stop(self.tool_blocks.pop(tc.index)))
        if tc.index not in self.tool_blocks:
            index = self.next_index
            self.next_index += 1
            self.tool_blocks[tc.index] = index
            block = {
                "type": "tool_use",
                "id": tc.id or generate_id("toolu"),
                "name": tc.name or "",
                "input": {},
            }
            frames.append(self._block_start(index, block))
        if tc.arguments:
            frames.append(
                self._delta(
                    self.tool_blocks[tc.index], {"type": "input_json_delta", "partial_json": tc.arguments}
                )
            )
        return frames

    def _start(self, event: LLMStreamEvent) -> List[SSEEvent]:
        self.has_started = True
        self.message_id = event.id or generate_id("msg")
        self.model = event.model or ""
        if event.usage:
            self.input_tokens = event.usage.prompt_tokens
        return [
            SSEEvent(
                event="message_start",
                data={
                    "type": "message_start",
                    "message": {
                        "id": self.message_id,
                        "type": "message",
                        "role": "assistant",
                        "content": [],
                        "model": self.model,
                        "stop_reason": None,
                        "stop_sequence": None,
                        "usage": {"input_tokens": self.input_tokens, "output_tokens": 0},
                    },
                },
            )
        ]

    def _terminal_frames(self) -> List[SSEEvent]:
        self.has_finished = True
        return [
            SSEEvent(
                event="message_delta",
                data={
                    "type": "message_delta",
                    "delta": {
                        "stop_reason": _stop_reason(self.finish_reason),
                        "stop_sequence": None,
                    },
                    "usage": {"output_tokens": self.output_tokens},
                },
            ),
            SSEEvent(event="message_stop", data={"type": "message_stop"}),
        ]

    def _ensure_block(self, block_type: str) -> List[SSEEvent]:
        if self.current_block_type == block_type:
            return []
        frames = self._close_block() + self._close_tool_blocks()
        if block_type == "thinking":
            block: Dict[str, Any] = {"type": "thinking", "thinking": ""}
        else:
            block = {"type": "text", "text": ""}
        self.current_index = self.next_index
        self.next_index += 1
        self.current_block_type = block_type
        frames.append(self._block_start(self.current_index, block))
        return frames

    def _close_block(self) -> List[SSEEvent]:
        if self.current_block_type is None:
            return []
        self.current_block_type = None
        return [self._stop(self.current_index)]

    def _close_tool_blocks(self) -> List[SSEEvent]:
        frames = [self._stop(index) for index in sorted(self.tool_blocks.values())]
        self.tool_blocks.clear()
        return frames

    def _block_start(self, index: int, block: Dict[str, Any]) -> SSEEvent:
        return SSEEvent(
            event="content_block_start",
            data={"type": "content_block_start", "index": index, "content_block": block},
        )

    def _stop(self, index: int) -> SSEEvent:
        return SSEEvent(event="content_block_stop", data={"type": "content_block_stop", "index": index})

    def _delta(self, index: int, delta: Dict[str, Any]) -> SSEEvent:
        return SSEEvent(
            event="content_block_delta",
            data={"type": "content_block_delta", "index": index, "delta": delta},
        )

    def _error_frame(self, event: LLMStreamEvent) -> SSEEvent:
        message = event.error.message if event.error else "Unknown error"
        return SSEEvent(
            event="error",
            data={"type": "error", "error": {"type": "api_error", "message": message}},
        )


class AnthropicAdapter(LLMAdapter):
    """Anthropic Messages API."""

    name = "anthropic"
    version = "1.0.0"
    capabilities = AdapterCapabilities(
        streaming=True,
        tools=True,
        vision=True,
        multimodal=True,
        system_prompt=True,
        tool_choice=True,
        reasoning=True,
        web_search=False,
        json_mode=False,
        logprobs=False,
        seed=False,
    )
    endpoint = ProviderEndpoint(
        base_url="https://api.anthropic.com",
        chat_path="/v1/messages",
        models_path="/v1/models",
    )
    default_headers = {"anthropic-version": ANTHROPIC_VERSION}

    def __init__(self):
        self.inbound = AnthropicDecoder()
        self.outbound = AnthropicEncoder()
