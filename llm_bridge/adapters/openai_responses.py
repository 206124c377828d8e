"""
OpenAI Responses API Adapter

The Responses API uses ``input`` items instead of ``messages``,
``instructions`` instead of a system message, an ``output`` item list in
responses, and a typed event stream with per-event ``sequence_number``.
Options that have no IR counterpart travel in ``extensions["responses"]``.
"""

from typing import Any, Dict, List, Optional, Union

from llm_bridge.common.content import content_to_string, image_source_from_url, image_to_data_url
from llm_bridge.common.error_parser import parse_openai_compatible_error
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

DEFAULT_MODEL = "gpt-5"

STATUS_TO_FINISH = {
    "completed": FinishReason.STOP,
    "failed": FinishReason.STOP,
    "incomplete": FinishReason.LENGTH,
    "in_progress": FinishReason.STOP,
}

# Request fields carried verbatim in extensions["responses"]
PASSTHROUGH_FIELDS = ("truncation", "store", "reasoning", "previous_response_id", "parallel_tool_calls")


def map_status(status: Optional[str], has_tool_calls: bool = False) -> FinishReason:
    reason = STATUS_TO_FINISH.get(status or "completed", FinishReason.STOP)
    if has_tool_calls and reason == FinishReason.STOP:
        return FinishReason.TOOL_CALLS
    return reason


def parse_responses_usage(usage: Optional[Dict[str, Any]]) -> Optional[Usage]:
    if not usage:
        return None
    reasoning = (usage.get("output_tokens_details") or {}).get("reasoning_tokens")
    cached = (usage.get("input_tokens_details") or {}).get("cached_tokens")
    details = None
    if reasoning or cached:
        details = UsageDetails(reasoning_tokens=reasoning or None, cached_tokens=cached or None)
    return Usage(
        prompt_tokens=usage.get("input_tokens", 0) or 0,
        completion_tokens=usage.get("output_tokens", 0) or 0,
        total_tokens=usage.get("total_tokens", 0) or 0,
        details=details,
    )


def build_responses_usage(usage: Optional[Usage]) -> Optional[Dict[str, Any]]:
    if usage is None:
        return None
    result: Dict[str, Any] = {
        "input_tokens": usage.prompt_tokens,
        "output_tokens": usage.completion_tokens,
        "total_tokens": usage.total_tokens,
    }
    if usage.details and usage.details.reasoning_tokens:
        result["output_tokens_details"] = {"reasoning_tokens": usage.details.reasoning_tokens}
    if usage.details and usage.details.cached_tokens:
        result["input_tokens_details"] = {"cached_tokens": usage.details.cached_tokens}
    return result


def extract_output(output: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Collect text, tool calls and reasoning from Responses ``output`` items.

    Returns:
        dict with ``content`` (str), ``tool_calls`` (list) and ``reasoning``
        (str or None)
    """
    content = ""
    tool_calls: List[ToolCall] = []
    reasoning = None

    for item in output or []:
        item_type = item.get("type")
        if item_type == "message":
            for part in item.get("content") or []:
                if part.get("type") == "output_text":
                    content += part.get("text", "")
                elif part.get("type") == "refusal":
                    content += f"[Refusal: {part.get('refusal', '')}]"
        elif item_type == "function_call":
            tool_calls.append(
                ToolCall(
                    id=item.get("call_id") or item.get("id", ""),
                    function=ToolCallFunction(
                        name=item.get("name", ""),
                        arguments=dump_arguments(item.get("arguments")),
                    ),
                )
            )
        elif item_type == "reasoning":
            summary = [s.get("text", "") for s in item.get("summary") or [] if s.get("type") == "summary_text"]
            texts = [c.get("text", "") for c in item.get("content") or [] if c.get("type") == "reasoning_text"]
            if summary or texts:
                reasoning = "".join(summary or texts)

    return {"content": content, "tool_calls": tool_calls, "reasoning": reasoning}


class OpenAIResponsesDecoder(Decoder):
    """Decodes Responses API format to IR."""

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def parse_request(self, payload: Dict[str, Any]) -> LLMRequestIR:
        system_parts: List[str] = []
        if payload.get("instructions"):
            system_parts.append(payload["instructions"])

        messages = self._decode_input(payload.get("input"), system_parts)

        ir = LLMRequestIR(
            messages=messages,
            model=payload.get("model"),
            stream=bool(payload.get("stream", False)),
            system="\n".join(system_parts) if system_parts else None,
            raw=payload,
        )

        tools = payload.get("tools") or []
        function_tools = [tool for tool in tools if tool.get("type") == "function"]
        if function_tools:
            ir.tools = [
                Tool(
                    function=ToolFunction(
                        name=tool.get("name", ""),
                        description=tool.get("description"),
                        parameters=tool.get("parameters"),
                        strict=tool.get("strict"),
                    )
                )
                for tool in function_tools
            ]
        ir.tool_choice = self._decode_tool_choice(payload.get("tool_choice"))

        ir.generation = GenerationConfig(
            temperature=payload.get("temperature"),
            top_p=payload.get("top_p"),
            max_tokens=payload.get("max_output_tokens"),
            response_format=self._decode_text_format(payload.get("text")),
        )

        if payload.get("user"):
            ir.metadata["user_id"] = payload["user"]
        ir.metadata.update(payload.get("metadata") or {})

        extension = {key: payload[key] for key in PASSTHROUGH_FIELDS if key in payload}
        built_in = [tool for tool in tools if tool.get("type") != "function"]
        if built_in:
            extension["built_in_tools"] = built_in
        if extension:
            ir.extensions["responses"] = extension
        return ir

    def _decode_input(self, items: Any, system_parts: List[str]) -> List[Message]:
        if items is None:
            return []
        if isinstance(items, str):
            return [Message(role=Role.USER, content=items)]

        messages: List[Message] = []
        for item in items:
            item_type = item.get("type", "message")
            if item_type == "item_reference":
                continue

            if item_type == "function_call":
                call = ToolCall(
                    id=item.get("call_id", ""),
                    function=ToolCallFunction(
                        name=item.get("name", ""),
                        arguments=dump_arguments(item.get("arguments")),
                    ),
                )
                # Consecutive calls belong to one assistant turn
                if messages and messages[-1].role == Role.ASSISTANT and not messages[-1].get_text_content():
                    messages[-1].tool_calls = (messages[-1].tool_calls or []) + [call]
                else:
                    messages.append(Message(role=Role.ASSISTANT, content="", tool_calls=[call]))
                continue

            if item_type == "function_call_output":
                output = item.get("output", "")
                messages.append(
                    Message(
                        role=Role.TOOL,
                        content=output if isinstance(output, str) else dump_arguments(output),
                        tool_call_id=item.get("call_id"),
                    )
                )
                continue

            if item_type != "message":
                continue

            role = item.get("role", "user")
            content = self._decode_content(item.get("content"))
            if role in ("system", "developer"):
                text = content_to_string(content)
                if text:
                    system_parts.append(text)
                continue
            messages.append(Message(role=Role(role), content=content))
        return messages

    def _decode_content(self, content: Any) -> Union[str, List[ContentPart]]:
        if content is None:
            return ""
        if isinstance(content, str):
            return content

        parts: List[ContentPart] = []
        for part in content:
            part_type = part.get("type")
            if part_type in ("input_text", "output_text"):
                parts.append(TextContent(text=part.get("text", "")))
            elif part_type == "input_image":
                parts.append(ImageContent(source=image_source_from_url(part.get("image_url", ""))))
            elif part_type == "input_file":
                parts.append(TextContent(text=f"[File: {part.get('file_id', '')}]"))
        return parts

    def _decode_tool_choice(self, choice: Any) -> Optional[ToolChoice]:
        if choice is None:
            return None
        if isinstance(choice, str):
            return ToolChoiceMode(choice)
        return ToolChoiceFunction(name=choice.get("name", ""))

    def _decode_text_format(self, text: Optional[Dict[str, Any]]) -> Optional[ResponseFormat]:
        fmt = (text or {}).get("format") or {}
        if fmt.get("type") == "json_object":
            return ResponseFormat(type="json_object")
        if fmt.get("type") == "json_schema":
            schema = fmt.get("json_schema") or {
                key: fmt[key] for key in ("name", "description", "schema", "strict") if key in fmt
            }
            return ResponseFormat(type="json_schema", json_schema=schema)
        return None

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def parse_response(self, payload: Dict[str, Any]) -> LLMResponseIR:
        extracted = extract_output(payload.get("output") or [])
        content = extracted["content"] or payload.get("output_text") or ""
        tool_calls = extracted["tool_calls"]

        return LLMResponseIR(
            id=payload.get("id", ""),
            model=payload.get("model", ""),
            created=payload.get("created_at"),
            choices=[
                Choice(
                    index=0,
                    message=Message(
                        role=Role.ASSISTANT,
                        content=content,
                        tool_calls=tool_calls or None,
                        reasoning_content=extracted["reasoning"],
                    ),
                    finish_reason=map_status(payload.get("status"), bool(tool_calls)),
                )
            ],
            usage=parse_responses_usage(payload.get("usage")),
            raw=payload,
        )

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def parse_stream(self, chunk: Dict[str, Any]) -> StreamParseResult:
        event_type = chunk.get("type")

        if event_type == "response.created":
            response = chunk.get("response") or {}
            return LLMStreamEvent(
                type=StreamEventType.START,
                id=response.get("id"),
                model=response.get("model"),
                raw=chunk,
            )

        if event_type == "response.output_text.delta":
            return LLMStreamEvent(
                type=StreamEventType.CONTENT,
                content=ContentDelta(delta=chunk.get("delta", ""), index=chunk.get("output_index", 0)),
                raw=chunk,
            )

        if event_type in ("response.reasoning_summary_text.delta", "response.reasoning_text.delta"):
            return LLMStreamEvent(
                type=StreamEventType.REASONING,
                reasoning=ReasoningDelta(delta=chunk.get("delta", "")),
                raw=chunk,
            )

        if event_type == "response.output_item.added":
            item = chunk.get("item") or {}
            if item.get("type") != "function_call":
                return None
            return LLMStreamEvent(
                type=StreamEventType.TOOL_CALL,
                tool_call=ToolCallDelta(
                    id=item.get("call_id"),
                    name=item.get("name"),
                    index=chunk.get("output_index", 0),
                ),
                raw=chunk,
            )

        if event_type == "response.function_call_arguments.delta":
            return LLMStreamEvent(
                type=StreamEventType.TOOL_CALL,
                tool_call=ToolCallDelta(arguments=chunk.get("delta"), index=chunk.get("output_index", 0)),
                raw=chunk,
            )

        if event_type in ("response.completed", "response.failed", "response.incomplete"):
            response = chunk.get("response") or {}
            has_tool_calls = any(
                item.get("type") == "function_call" for item in response.get("output") or []
            )
            return LLMStreamEvent(
                type=StreamEventType.END,
                id=response.get("id"),
                model=response.get("model"),
                finish_reason=map_status(response.get("status"), has_tool_calls),
                usage=parse_responses_usage(response.get("usage")),
                raw=chunk,
            )

        if event_type == "error":
            err = chunk.get("error") or chunk
            return LLMStreamEvent(
                type=StreamEventType.ERROR,
                error=StreamError(message=err.get("message", "Unknown error"), code=err.get("code")),
                raw=chunk,
            )

        return None

    def parse_error(self, payload: Any) -> LLMErrorIR:
        return parse_openai_compatible_error(payload)


class OpenAIResponsesEncoder(Encoder):
    """Encodes IR to Responses API format."""

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def build_request(self, ir: LLMRequestIR) -> Dict[str, Any]:
        items: List[Dict[str, Any]] = []
        for msg in ir.messages:
            if msg.role == Role.SYSTEM:
                continue
            items.extend(self._encode_message(msg))

        single_user_text = (
            len(items) == 1
            and items[0].get("role") == "user"
            and isinstance(items[0].get("content"), str)
        )
        request: Dict[str, Any] = {
            "model": ir.model or DEFAULT_MODEL,
            "input": items[0]["content"] if single_user_text else items,
            "stream": ir.stream,
        }
        if ir.system:
            request["instructions"] = ir.system

        extension = ir.extensions.get("responses") or {}

        tools = [
            drop_none(
                {
                    "type": "function",
                    "name": tool.function.name,
                    "description": tool.function.description,
                    "parameters": tool.function.parameters,
                    "strict": tool.function.strict,
                }
            )
            for tool in ir.tools or []
        ]
        tools.extend(extension.get("built_in_tools") or [])
        if tools:
            request["tools"] = tools

        if isinstance(ir.tool_choice, ToolChoiceFunction):
            request["tool_choice"] = {"type": "function", "name": ir.tool_choice.name}
        elif ir.tool_choice is not None:
            request["tool_choice"] = ir.tool_choice.value

        gen = ir.generation
        if gen:
            if gen.temperature is not None:
                request["temperature"] = gen.temperature
            if gen.top_p is not None:
                request["top_p"] = gen.top_p
            if gen.max_tokens is not None:
                request["max_output_tokens"] = gen.max_tokens

        if ir.metadata.get("user_id"):
            request["user"] = ir.metadata["user_id"]

        for key in PASSTHROUGH_FIELDS:
            if extension.get(key) is not None:
                request[key] = extension[key]

        if gen and gen.response_format:
            if gen.response_format.type == "json_object":
                request["text"] = {"format": {"type": "json_object"}}
            elif gen.response_format.type == "json_schema" and gen.response_format.json_schema:
                request["text"] = {"format": {"type": "json_schema", **gen.response_format.json_schema}}
        return request

    def _encode_message(self, msg: Message) -> List[Dict[str, Any]]:
        if msg.role == Role.TOOL:
            return [
                {
                    "type": "function_call_output",
                    "call_id": msg.tool_call_id or "",
                    "output": msg.get_text_content(),
                }
            ]

        items: List[Dict[str, Any]] = []
        content = self._encode_content(msg.content, msg.role)
        if content or not msg.tool_calls:
            items.append({"type": "message", "role": msg.role.value, "content": content})
        for tc in msg.tool_calls or []:
            items.append(
                {
                    "type": "function_call",
                    "call_id": tc.id,
                    "name": tc.function.name,
                    "arguments": tc.function.arguments,
                }
            )
        return items

    def _encode_content(self, content: Union[str, List[ContentPart]], role: Role) -> Any:
        if isinstance(content, str):
            return content
        if not content:
            return ""
        if all(isinstance(part, TextContent) for part in content):
            return "".join(part.text for part in content)

        text_type = "output_text" if role == Role.ASSISTANT else "input_text"
        parts = []
        for part in content:
            if isinstance(part, TextContent):
                parts.append({"type": text_type, "text": part.text})
            elif isinstance(part, ImageContent):
                parts.append({"type": "input_image", "image_url": image_to_data_url(part.source)})
        return parts

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def build_response(self, ir: LLMResponseIR) -> Dict[str, Any]:
        output: List[Dict[str, Any]] = []
        text = ""
        if ir.choices:
            message = ir.choices[0].message
            if message.reasoning_content:
                output.append(
                    {
                        "type": "reasoning",
                        "id": f"rs_{ir.id}",
                        "summary": [{"type": "summary_text", "text": message.reasoning_content}],
                    }
                )
            text = content_to_string(message.content) or ""
            if text:
                output.append(
                    {
                        "type": "message",
                        "id": f"msg_{ir.id}",
                        "role": "assistant",
                        "status": "completed",
                        "content": [{"type": "output_text", "text": text, "annotations": []}],
                    }
                )
            for tc in message.tool_calls or []:
                output.append(
                    {
                        "type": "function_call",
                        "id": f"fc_{tc.id}",
                        "call_id": tc.id,
                        "name": tc.function.name,
                        "arguments": tc.function.arguments,
                        "status": "completed",
                    }
                )

        finish = ir.choices[0].finish_reason if ir.choices else None
        response = {
            "id": ir.id,
            "object": "response",
            "created_at": ir.created or now_ts(),
            "model": ir.model,
            "status": "incomplete" if finish == FinishReason.LENGTH else "completed",
            "output": output,
        }
        if text:
            response["output_text"] = text
        usage = build_responses_usage(ir.usage)
        if usage:
            response["usage"] = usage
        return response

    def create_stream_builder(self) -> StreamEventBuilder:
        return OpenAIResponsesStreamBuilder()


class OpenAIResponsesStreamBuilder(StreamEventBuilder):
    """
    IR stream events -> Responses API events.

    Output items are opened lazily (reasoning, message, one per function
    call) and all closed on ``end`` before ``response.completed``. Every
    frame carries the next ``sequence_number``. Argument deltas are routed
    to the function call item of their tool call ``index``.

    An ``end`` without usage is held until a usage trailer or
    ``finalize()`` so the completed response carries the latest usage.
    """

    def __init__(self):
        self.response_id = ""
        self.model = ""
        self.created_at = now_ts()
        self.sequence_number = 0
        self.output_index = -1
        self.has_started = False
        self.has_finished = False
        self.reasoning_item: Optional[Dict[str, Any]] = None
        self.message_item: Optional[Dict[str, Any]] = None
        self.tool_items: List[Dict[str, Any]] = []
        self.tool_items_by_index: Dict[int, Dict[str, Any]] = {}
        self.end_pending = False
        self.finish_reason: Optional[FinishReason] = None
        self.usage: Optional[Usage] = None
        self.text = ""
        self.reasoning = ""

    def _emit(self, event_type: str, **fields: Any) -> SSEEvent:
        data = {"type": event_type, "sequence_number": self.sequence_number, **fields}
        self.sequence_number += 1
        return SSEEvent(event=event_type, data=data)

    def _response(self, status: str, **fields: Any) -> Dict[str, Any]:
        return {
            "id": self.response_id,
            "object": "response",
            "created_at": self.created_at,
            "model": self.model,
            "status": status,
            **fields,
        }

    def _start(self) -> List[SSEEvent]:
        if self.has_started:
            return []
        self.has_started = True
        if not self.response_id:
            self.response_id = generate_id("resp")
        return [self._emit("response.created", response=self._response("in_progress", output=[]))]

    def _open_item(self, item: Dict[str, Any]) -> SSEEvent:
        self.output_index += 1
        item["output_index"] = self.output_index
        public = {k: v for k, v in item.items() if k != "output_index"}
        return self._emit(
            "response.output_item.added",
            output_index=self.output_index,
            item_id=item["id"],
            item=public,
        )

    def _ensure_reasoning(self) -> List[SSEEvent]:
        if self.reasoning_item:
            return []
        self.reasoning_item = {"type": "reasoning", "id": f"rs_{self.response_id}", "summary": [], "status": "in_progress"}
        frames = [self._open_item(self.reasoning_item)]
        frames.append(
            self._emit(
                "response.reasoning_summary_part.added",
                item_id=self.reasoning_item["id"],
                output_index=self.reasoning_item["output_index"],
                summary_index=0,
                part={"type": "summary_text", "text": ""},
            )
        )
        return frames

    def _ensure_message(self) -> List[SSEEvent]:
        if self.message_item:
            return []
        self.message_item = {
            "type": "message",
            "id": f"msg_{self.response_id}",
            "role": "assistant",
            "content": [],
            "status": "in_progress",
        }
        frames = [self._open_item(self.message_item)]
        frames.append(
            self._emit(
                "response.content_part.added",
                item_id=self.message_item["id"],
                output_index=self.message_item["output_index"],
                content_index=0,
                part={"type": "output_text", "text": "", "annotations": []},
            )
        )
        return frames

    def process(self, event: LLMStreamEvent) -> List[SSEEvent]:
        if event.id and not self.has_started:
            self.response_id = event.id
        if event.model:
            self.model = event.model

        if event.type == StreamEventType.ERROR and event.error:
            return [
                self._emit(
                    "error",
                    error={
                        "type": "api_error",
                        "code": event.error.code or "unknown",
                        "message": event.error.message,
                    },
                )
            ]

        if self.has_finished:
            return []
        if self.end_pending and event.type != StreamEventType.END:
            return []

        frames = self._start()

        if event.type == StreamEventType.REASONING and event.reasoning and event.reasoning.delta:
            frames.extend(self._ensure_reasoning())
            self.reasoning += event.reasoning.delta
            frames.append(
                self._emit(
                    "response.reasoning_summary_text.delta",
                    item_id=self.reasoning_item["id"],
                    output_index=self.reasoning_item["output_index"],
                    summary_index=0,
                    delta=event.reasoning.delta,
                )
            )

        elif event.type == StreamEventType.CONTENT and event.content and event.content.delta:
            frames.extend(self._ensure_message())
            self.text += event.content.delta
            frames.append(
                self._emit(
                    "response.output_text.delta",
                    item_id=self.message_item["id"],
                    output_index=self.message_item["output_index"],
                    content_index=0,
                    delta=event.content.delta,
                )
            )

        elif event.type == StreamEventType.TOOL_CALL and event.tool_call:
            tc = event.tool_call
            item = self.tool_items_by_index.get(tc.index)
            if tc.name or item is None:
                call_id = tc.id or generate_id(f"call_{len(self.tool_items)}")
                item = {
                    "type": "function_call",
                    "id": f"fc_{call_id}",
                    "call_id": call_id,
                    "name": tc.name or "",
                    "arguments": "",
                    "status": "in_progress",
                }
                self.tool_items.append(item)
                self.tool_items_by_index[tc.index] = item
                frames.append(self._open_item(item))
            if tc.arguments:
                item["arguments"] += tc.arguments
                frames.append(
                    self._emit(
                        "response.function_call_arguments.delta",
                        item_id=item["id"],
                        output_index=item["output_index"],
                        delta=tc.arguments,
                    )
                )

        elif event.type == StreamEventType.END:
            if event.finish_reason is not None:
                self.finish_reason = event.finish_reason
            if event.usage:
                self.usage = event.usage
                frames.extend(self._finish())
            else:
                self.end_pending = True

        return frames

    def finalize(self) -> List[SSEEvent]:
        if self.end_pending and not self.has_finished:
            return self._finish()
        return []

    def _finish(self) -> List[SSEEvent]:
        frames: List[SSEEvent] = []
        output: List[Dict[str, Any]] = []

        if self.reasoning_item:
            item_id = self.reasoning_item["id"]
            index = self.reasoning_item["output_index"]
            summary = {"type": "summary_text", "text": self.reasoning}
            done = {"type": "reasoning", "id": item_id, "summary": [summary], "status": "completed"}
            frames.append(
                self._emit(
                    "response.reasoning_summary_text.done",
                    item_id=item_id,
                    output_index=index,
                    summary_index=0,
                    text=self.reasoning,
                )
            )
            frames.append(
                self._emit(
                    "response.reasoning_summary_part.done",
                    item_id=item_id,
                    output_index=index,
                    summary_index=0,
                    part=summary,
                )
            )
            frames.append(self._emit("response.output_item.done", output_index=index, item_id=item_id, item=done))
            output.append(done)

        if self.message_item:
            item_id = self.message_item["id"]
            index = self.message_item["output_index"]
            part = {"type": "output_text", "text": self.text, "annotations": []}
            done = {
                "type": "message",
                "id": item_id,
                "role": "assistant",
                "content": [part],
                "status": "completed",
            }
            frames.append(
                self._emit(
                    "response.output_text.done",
                    item_id=item_id,
                    output_index=index,
                    content_index=0,
                    text=self.text,
                )
            )
            frames.append(
                self._emit(
                    "response.content_part.done",
                    item_id=item_id,
                    output_index=index,
                    content_index=0,
                    part=part,
                )
            )
            frames.append(self._emit("response.output_item.done", output_index=index, item_id=item_id, item=done))
            output.append(done)

        for item in self.tool_items:
            done = {k: v for k, v in item.items() if k != "output_index"}
            done["status"] = "completed"
            frames.append(
                self._emit(
                    "response.function_call_arguments.done",
                    item_id=item["id"],
                    output_index=item["output_index"],
                    arguments=item["arguments"],
                )
            )
            frames.append(
                self._emit(
                    "response.output_item.done",
                    output_index=item["output_index"],
                    item_id=item["id"],
                    item=done,
                )
            )
            output.append(done)

        status = "incomplete" if self.finish_reason == FinishReason.LENGTH else "completed"
        response = self._response(status, output=output)
        if self.text:
            response["output_text"] = self.text
        usage = build_responses_usage(self.usage)
        if usage:
            response["usage"] = usage
        frames.append(self._emit(f"response.{status}", response=response))

        self.has_finished = True
        return frames


class OpenAIResponsesAdapter(LLMAdapter):
    """OpenAI Responses API."""

    name = "openai-responses"
    version = "1.0.0"
    capabilities = AdapterCapabilities(
        streaming=True,
        tools=True,
        vision=True,
        multimodal=True,
        system_prompt=True,
        tool_choice=True,
        reasoning=True,
        web_search=True,
        json_mode=True,
        logprobs=False,
        seed=False,
    )
    endpoint = ProviderEndpoint(
        base_url="https://api.openai.com",
        chat_path="/v1/responses",
        models_path="/v1/models",
    )

    def __init__(self):
        self.inbound = OpenAIResponsesDecoder()
        self.outbound = OpenAIResponsesEncoder()
