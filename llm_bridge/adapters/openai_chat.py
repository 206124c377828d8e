"""
OpenAI Chat Completions Adapter

Converts between the OpenAI Chat Completions format and the IR. The
decoder, encoder and stream builder here are also the base classes of the
OpenAI-compatible providers (DeepSeek, MiniMax, Zhipu), which override the
small ``_decode_*`` / ``_encode_*`` hooks for their extension fields.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

from llm_bridge.common.content import (
    content_to_string,
    image_source_from_url,
    image_to_data_url,
)
from llm_bridge.common.error_parser import (
    build_openai_usage,
    map_finish_reason,
    parse_openai_compatible_error,
    parse_openai_usage,
)
from llm_bridge.common.utils import drop_none, dump_arguments, generate_id, now_ts
from llm_bridge.ir import (
    Choice,
    ContentDelta,
    ContentPart,
    FinishReason,
    GenerationConfig,
    ImageContent,
    LLMErrorIR,
    LLMRequestIR,
    LLMResponseIR,
    LLMStreamEvent,
    Message,
    ReasoningDelta,
    ResponseFormat,
    Role,
    SSEEvent,
    StreamError,
    StreamEventType,
    TextContent,
    Tool,
    ToolCall,
    ToolCallDelta,
    ToolCallFunction,
    ToolChoice,
    ToolChoiceFunction,
    ToolChoiceMode,
    ToolFunction,
    Usage,
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


def decode_tool_calls(tool_calls: Optional[List[Dict[str, Any]]]) -> Optional[List[ToolCall]]:
    if not tool_calls:
        return None
    return [
        ToolCall(
            id=tc.get("id", ""),
            function=ToolCallFunction(
                name=(tc.get("function") or {}).get("name", ""),
                arguments=dump_arguments((tc.get("function") or {}).get("arguments")),
            ),
        )
        for tc in tool_calls
    ]


def encode_tool_calls(tool_calls: Optional[List[ToolCall]]) -> Optional[List[Dict[str, Any]]]:
    if not tool_calls:
        return None
    return [
        {
            "id": tc.id,
            "type": "function",
            "function": {"name": tc.function.name, "arguments": tc.function.arguments},
        }
        for tc in tool_calls
    ]


def decode_tool_choice(choice: Any) -> Optional[ToolChoice]:
    if choice is None:
        return None
    if isinstance(choice, str):
        return ToolChoiceMode(choice)
    return ToolChoiceFunction(name=(choice.get("function") or {}).get("name", ""))


def encode_tool_choice(choice: Optional[ToolChoice]) -> Any:
    if choice is None:
        return None
    if isinstance(choice, ToolChoiceFunction):
        return {"type": "function", "function": {"name": choice.name}}
    return choice.value


class OpenAIChatDecoder(Decoder):
    """Decodes OpenAI Chat Completions format to IR."""

    # Provider-specific finish reasons layered over the standard map
    finish_reason_map: Dict[str, FinishReason] = {}

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def parse_request(self, payload: Dict[str, Any]) -> LLMRequestIR:
        """Decode an OpenAI Chat request to IR."""
        system_parts: List[str] = []
        messages: List[Message] = []
        for msg in payload.get("messages", []):
            if msg.get("role") in ("system", "developer"):
                text = content_to_string(self._decode_content(msg.get("content")))
                if text:
                    system_parts.append(text)
                continue
            messages.append(self._decode_message(msg))

        ir = LLMRequestIR(
            messages=messages,
            model=payload.get("model"),
            stream=bool(payload.get("stream", False)),
            system="\n".join(system_parts) if system_parts else None,
            generation=self._decode_generation(payload),
            raw=payload,
        )

        if payload.get("tools"):
            ir.tools = [self._decode_tool(tool) for tool in payload["tools"]]
        ir.tool_choice = decode_tool_choice(payload.get("tool_choice"))

        if payload.get("user"):
            ir.metadata["user_id"] = payload["user"]

        self._decode_request_extensions(payload, ir)
        return ir

    def _decode_message(self, msg: Dict[str, Any]) -> Message:
        return Message(
            role=Role(msg.get("role", "user")),
            content=self._decode_content(msg.get("content")),
            name=msg.get("name"),
            tool_call_id=msg.get("tool_call_id"),
            tool_calls=decode_tool_calls(msg.get("tool_calls")),
            reasoning_content=self._decode_reasoning(msg),
        )

    def _decode_content(self, content: Any) -> Union[str, List[ContentPart]]:
        if content is None:
            return ""
        if isinstance(content, str):
            return content

        parts: List[ContentPart] = []
        for part in content:
            part_type = part.get("type")
            if part_type == "text":
                parts.append(TextContent(text=part.get("text", "")))
            elif part_type == "image_url":
                image_url = part.get("image_url") or {}
                url = image_url if isinstance(image_url, str) else image_url.get("url", "")
                parts.append(ImageContent(source=image_source_from_url(url)))
        return parts

    def _decode_reasoning(self, msg: Dict[str, Any]) -> Optional[str]:
        """Reasoning text carried on a message or delta (none for plain OpenAI)."""
        return None

    def _decode_tool(self, tool: Dict[str, Any]) -> Tool:
        function = tool.get("function") or {}
        return Tool(
            function=ToolFunction(
                name=function.get("name", ""),
                description=function.get("description"),
                parameters=function.get("parameters"),
                strict=function.get("strict"),
            )
        )

    def _decode_generation(self, payload: Dict[str, Any]) -> GenerationConfig:
        stop = payload.get("stop")
        if isinstance(stop, str):
            stop = [stop]

        response_format = None
        if payload.get("response_format"):
            rf = payload["response_format"]
            response_format = ResponseFormat(
                type=rf.get("type", "text"),
                json_schema=rf.get("json_schema"),
            )

        max_tokens = payload.get("max_tokens")
        if max_tokens is None:
            max_tokens = payload.get("max_completion_tokens")

        return GenerationConfig(
            temperature=payload.get("temperature"),
            top_p=payload.get("top_p"),
            max_tokens=max_tokens,
            stop_sequences=stop,
            presence_penalty=payload.get("presence_penalty"),
            frequency_penalty=payload.get("frequency_penalty"),
            n=payload.get("n"),
            seed=payload.get("seed"),
            response_format=response_format,
            logprobs=payload.get("logprobs"),
            top_logprobs=payload.get("top_logprobs"),
        )

    def _decode_request_extensions(self, payload: Dict[str, Any], ir: LLMRequestIR) -> None:
        """Copy provider-specific request fields into ``ir.extensions``."""

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def parse_response(self, payload: Dict[str, Any]) -> LLMResponseIR:
        """Decode an OpenAI Chat completion to IR."""
        choices = []
        for choice in payload.get("choices", []):
            msg = choice.get("message") or {}
            choices.append(
                Choice(
                    index=choice.get("index", 0),
                    message=Message(
                        role=Role(msg.get("role", "assistant")),
                        content=self._decode_content(msg.get("content")),
                        tool_calls=decode_tool_calls(msg.get("tool_calls")),
                        reasoning_content=self._decode_reasoning(msg),
                    ),
                    finish_reason=map_finish_reason(
                        choice.get("finish_reason"), self.finish_reason_map
                    ),
                    logprobs=choice.get("logprobs"),
                )
            )

        ir = LLMResponseIR(
            id=payload.get("id", ""),
            model=payload.get("model", ""),
            choices=choices,
            created=payload.get("created"),
            system_fingerprint=payload.get("system_fingerprint"),
            usage=parse_openai_usage(payload.get("usage")),
            raw=payload,
        )
        self._decode_response_extensions(payload, ir)
        return ir

    def _decode_response_extensions(self, payload: Dict[str, Any], ir: LLMResponseIR) -> None:
        """Copy provider-specific response fields into ``ir.extensions``."""

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def parse_stream(self, chunk: Dict[str, Any]) -> StreamParseResult:
        """Decode one ``chat.completion.chunk`` to IR stream events."""
        if isinstance(chunk.get("error"), dict):
            err = chunk["error"]
            return LLMStreamEvent(
                type=StreamEventType.ERROR,
                error=StreamError(message=err.get("message", ""), code=err.get("code")),
                raw=chunk,
            )

        chunk_id = chunk.get("id")
        model = chunk.get("model")
        choices = chunk.get("choices") or []

        if not choices:
            # Usage-only chunk sent last when stream_options.include_usage is set
            if chunk.get("usage"):
                return LLMStreamEvent(
                    type=StreamEventType.END,
                    id=chunk_id,
                    model=model,
                    usage=parse_openai_usage(chunk["usage"]),
                    raw=chunk,
                )
            return None

        choice = choices[0]
        delta = choice.get("delta") or {}
        events: List[LLMStreamEvent] = []

        if self._is_stream_start(choice, delta):
            events.append(
                LLMStreamEvent(type=StreamEventType.START, id=chunk_id, model=model, raw=chunk)
            )

        reasoning = self._decode_reasoning(delta)
        if reasoning:
            events.append(
                LLMStreamEvent(
                    type=StreamEventType.REASONING,
                    id=chunk_id,
                    model=model,
                    reasoning=ReasoningDelta(delta=reasoning),
                    raw=chunk,
                )
            )

        if delta.get("content"):
            events.append(
                LLMStreamEvent(
                    type=StreamEventType.CONTENT,
                    id=chunk_id,
                    model=model,
                    content=ContentDelta(delta=delta["content"], index=choice.get("index", 0)),
                    raw=chunk,
                )
            )

        for tc in delta.get("tool_calls") or []:
            function = tc.get("function") or {}
            events.append(
                LLMStreamEvent(
                    type=StreamEventType.TOOL_CALL,
                    id=chunk_id,
                    model=model,
                    tool_call=ToolCallDelta(
                        id=tc.get("id"),
                        name=function.get("name"),
                        arguments=function.get("arguments"),
                        index=tc.get("index", 0),
                    ),
                    raw=chunk,
                )
            )

        if choice.get("finish_reason"):
            events.append(
                LLMStreamEvent(
                    type=StreamEventType.END,
                    id=chunk_id,
                    model=model,
                    finish_reason=map_finish_reason(
                        choice["finish_reason"], self.finish_reason_map
                    ),
                    usage=parse_openai_usage(chunk.get("usage")),
                    raw=chunk,
                )
            )

        if not events:
            return None
        return events[0] if len(events) == 1 else events

    def _is_stream_start(self, choice: Dict[str, Any], delta: Dict[str, Any]) -> bool:
        """First chunk: a role with nothing else in the delta."""
        return bool(
            delta.get("role")
            and not delta.get("content")
            and not delta.get("tool_calls")
            and not self._decode_reasoning(delta)
        )

    def parse_error(self, payload: Any) -> LLMErrorIR:
        return parse_openai_compatible_error(payload)


class OpenAIChatEncoder(Encoder):
    """Encodes IR to OpenAI Chat Completions format."""

    default_model = "gpt-4"

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def build_request(self, ir: LLMRequestIR) -> Dict[str, Any]:
        """Encode an IR request as an OpenAI Chat request."""
        messages: List[Dict[str, Any]] = []
        if ir.system and self._keep_system(ir):
            messages.append({"role": "system", "content": ir.system})
        for msg in ir.messages:
            if msg.role == Role.SYSTEM and not self._keep_system(ir):
                continue
            messages.append(self._encode_message(msg, ir))

        request: Dict[str, Any] = {
            "model": ir.model or self.default_model,
            "messages": messages,
            "stream": ir.stream,
        }

        if ir.tools:
            request["tools"] = [self._encode_tool(tool) for tool in ir.tools]
        if ir.tool_choice is not None:
            request["tool_choice"] = encode_tool_choice(ir.tool_choice)

        if ir.generation:
            self._encode_generation(ir.generation, request)

        if ir.metadata.get("user_id"):
            request["user"] = ir.metadata["user_id"]

        if ir.stream:
            request["stream_options"] = {"include_usage": True}

        self._encode_request_extensions(ir, request)
        return request

    def _keep_system(self, ir: LLMRequestIR) -> bool:
        return True

    def _encode_message(self, msg: Message, ir: LLMRequestIR) -> Dict[str, Any]:
        return drop_none(
            {
                "role": msg.role.value,
                "content": self._encode_content(msg.content),
                "name": msg.name,
                "tool_calls": encode_tool_calls(msg.tool_calls),
                "tool_call_id": msg.tool_call_id,
            }
        )

    def _encode_content(self, content: Union[str, List[ContentPart]]) -> Any:
        if isinstance(content, str):
            return content or None
        if not content:
            return None
        if all(isinstance(part, TextContent) for part in content):
            return "".join(part.text for part in content)

        parts = []
        for part in content:
            if isinstance(part, TextContent):
                parts.append({"type": "text", "text": part.text})
            elif isinstance(part, ImageContent):
                parts.append({"type": "image_url", "image_url": {"url": image_to_data_url(part.source)}})
        return parts

    def _encode_tool(self, tool: Tool) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": drop_none(
                {
                    "name": tool.function.name,
                    "description": tool.function.description,
                    "parameters": tool.function.parameters,
                    "strict": tool.function.strict,
                }
            ),
        }

    def _encode_generation(self, gen: GenerationConfig, request: Dict[str, Any]) -> None:
        if gen.temperature is not None:
            request["temperature"] = gen.temperature
        if gen.top_p is not None:
            request["top_p"] = gen.top_p
        if gen.max_tokens is not None:
            request["max_tokens"] = gen.max_tokens
        if gen.stop_sequences:
            request["stop"] = gen.stop_sequences
        if gen.presence_penalty is not None:
            request["presence_penalty"] = gen.presence_penalty
        if gen.frequency_penalty is not None:
            request["frequency_penalty"] = gen.frequency_penalty
        if gen.n is not None:
            request["n"] = gen.n
        if gen.seed is not None:
            request["seed"] = gen.seed
        if gen.response_format:
            request["response_format"] = drop_none(
                {
                    "type": gen.response_format.type,
                    "json_schema": gen.response_format.json_schema,
                }
            )
        if gen.logprobs is not None:
            request["logprobs"] = gen.logprobs
        if gen.top_logprobs is not None:
            request["top_logprobs"] = gen.top_logprobs

    def _encode_request_extensions(self, ir: LLMRequestIR, request: Dict[str, Any]) -> None:
        """Write provider-specific fields from ``ir.extensions``."""

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def build_response(self, ir: LLMResponseIR) -> Dict[str, Any]:
        """Encode an IR response as an OpenAI Chat completion."""
        choices = []
        for choice in ir.choices:
            message = drop_none(
                {
                    "role": choice.message.role.value,
                    "content": content_to_string(choice.message.content),
                    "tool_calls": encode_tool_calls(choice.message.tool_calls),
                }
            )
            message.setdefault("content", None)
            self._encode_response_message(choice.message, message)
            choices.append(
                {
                    "index": choice.index,
                    "message": message,
                    "finish_reason": (choice.finish_reason or FinishReason.STOP).value,
                    "logprobs": choice.logprobs,
                }
            )

        response = {
            "id": ir.id,
            "object": "chat.completion",
            "created": ir.created or now_ts(),
            "model": ir.model,
            "choices": choices,
        }
        if ir.system_fingerprint:
            response["system_fingerprint"] = ir.system_fingerprint
        usage = self._encode_usage(ir.usage)
        if usage:
            response["usage"] = usage
        return response

    def _encode_response_message(self, msg: Message, message: Dict[str, Any]) -> None:
        """Add provider-specific fields to a response message."""

    def _encode_usage(self, usage: Optional[Usage]) -> Optional[Dict[str, Any]]:
        return build_openai_usage(usage)

    def create_stream_builder(self) -> StreamEventBuilder:
        return OpenAIChatStreamBuilder()


# Finish reasons other providers use, rendered in OpenAI terms
OPENAI_FINISH_REASON_MAP = {
    "stop": "stop",
    "length": "length",
    "tool_calls": "tool_calls",
    "content_filter": "content_filter",
    "error": "stop",
}


class OpenAIChatStreamBuilder(StreamEventBuilder):
    """
    IR stream events -> ``chat.completion.chunk`` frames.

    ``finalize()`` appends the ``[DONE]`` sentinel payload.
    """

    def __init__(self):
        self.chunk_id = generate_id("chatcmpl")
        self.model = ""
        self.created = now_ts()
        self.prompt_tokens = 0

    def _chunk(self, delta: Dict[str, Any], finish_reason: Optional[str] = None) -> SSEEvent:
        return SSEEvent(
            event="data",
            data={
                "id": self.chunk_id,
                "object": "chat.completion.chunk",
                "created": self.created,
                "model": self.model,
                "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
            },
        )

    def _reasoning_delta(self, text: str) -> Dict[str, Any]:
        return {"reasoning_content": text}

    def _encode_usage(self, usage: Optional[Usage]) -> Optional[Dict[str, Any]]:
        return build_openai_usage(usage)

    def process(self, event: LLMStreamEvent) -> List[SSEEvent]:
        if event.id:
            self.chunk_id = event.id
        if event.model:
            self.model = event.model

        if event.type == StreamEventType.START:
            if event.usage:
                self.prompt_tokens = event.usage.prompt_tokens
            return [self._chunk({"role": "assistant", "content": ""})]

        if event.type == StreamEventType.CONTENT and event.content and event.content.delta:
            return [self._chunk({"content": event.content.delta})]

        if event.type == StreamEventType.REASONING and event.reasoning and event.reasoning.delta:
            return [self._chunk(self._reasoning_delta(event.reasoning.delta))]

        if event.type == StreamEventType.TOOL_CALL and event.tool_call:
            tc = event.tool_call
            tool_delta: Dict[str, Any] = {"index": tc.index}
            if tc.id or tc.name:
                tool_delta["id"] = tc.id or generate_id("call")
                tool_delta["type"] = "function"
            function = drop_none({"name": tc.name, "arguments": tc.arguments})
            if function:
                tool_delta["function"] = function
            return [self._chunk({"tool_calls": [tool_delta]})]

        if event.type == StreamEventType.END:
            usage = self._encode_usage(self._with_prompt_tokens(event.usage))
            if event.finish_reason is None and usage:
                # Usage-only trailer
                frame = self._chunk({})
                frame.data["choices"] = []
                frame.data["usage"] = usage
                return [frame]
            reason = event.finish_reason.value if event.finish_reason else "stop"
            frame = self._chunk({}, OPENAI_FINISH_REASON_MAP.get(reason, "stop"))
            if usage:
                frame.data["usage"] = usage
            return [frame]

        if event.type == StreamEventType.ERROR and event.error:
            return [
                SSEEvent(
                    event="data",
                    data={
                        "error": drop_none(
                            {
                                "message": event.error.message,
                                "type": "server_error",
                                "code": event.error.code,
                            }
                        )
                    },
                )
            ]

        return []

    def _with_prompt_tokens(self, usage: Optional[Usage]) -> Optional[Usage]:
        """Fill in prompt tokens reported only on the start event."""
        if usage is None or usage.prompt_tokens or not self.prompt_tokens:
            return usage
        return replace(
            usage,
            prompt_tokens=self.prompt_tokens,
            total_tokens=self.prompt_tokens + usage.completion_tokens,
        )

    def finalize(self) -> List[SSEEvent]:
        return [SSEEvent(event="data", data="[DONE]")]


class OpenAIChatAdapter(LLMAdapter):
    """OpenAI Chat Completions API."""

    name = "openai"
    version = "1.0.0"
    capabilities = AdapterCapabilities(
        streaming=True,
        tools=True,
        vision=True,
        multimodal=True,
        system_prompt=True,
        tool_choice=True,
        reasoning=False,
        web_search=False,
        json_mode=True,
        logprobs=True,
        seed=True,
    )
    endpoint = ProviderEndpoint(
        base_url="https://api.openai.com",
        chat_path="/v1/chat/completions",
        models_path="/v1/models",
    )

    def __init__(self):
        self.inbound = OpenAIChatDecoder()
        self.outbound = OpenAIChatEncoder()
