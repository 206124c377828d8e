"""
Google Gemini Adapter

Converts between the Gemini ``generateContent`` format and the IR. The
decoder also accepts OpenAI-shaped requests (a ``messages`` array), which
is what most OpenAI-compatible Gemini clients send.
"""

import json
from typing import Any, Dict, List, Optional, Union

from llm_bridge.common.utils import drop_none, generate_id, load_arguments, now_ms
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
    UrlImageSource,
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
from .openai_chat import OpenAIChatDecoder

FINISH_REASON_MAP = {
    "STOP": FinishReason.STOP,
    "MAX_TOKENS": FinishReason.LENGTH,
    "SAFETY": FinishReason.CONTENT_FILTER,
    "RECITATION": FinishReason.CONTENT_FILTER,
    "OTHER": FinishReason.STOP,
}

REVERSE_FINISH_REASON_MAP = {
    FinishReason.STOP: "STOP",
    FinishReason.LENGTH: "MAX_TOKENS",
    FinishReason.TOOL_CALLS: "STOP",
    FinishReason.CONTENT_FILTER: "SAFETY",
    FinishReason.ERROR: "OTHER",
}

ERROR_CODE_MAP = {
    400: ErrorType.VALIDATION,
    401: ErrorType.AUTHENTICATION,
    403: ErrorType.PERMISSION,
    404: ErrorType.NOT_FOUND,
    429: ErrorType.RATE_LIMIT,
    500: ErrorType.SERVER,
}

ERROR_STATUS_MAP = {
    "INVALID_ARGUMENT": ErrorType.VALIDATION,
    "UNAUTHENTICATED": ErrorType.AUTHENTICATION,
    "PERMISSION_DENIED": ErrorType.PERMISSION,
    "NOT_FOUND": ErrorType.NOT_FOUND,
    "RESOURCE_EXHAUSTED": ErrorType.RATE_LIMIT,
    "INTERNAL": ErrorType.SERVER,
}

TOOL_MODE_MAP = {
    "AUTO": ToolChoiceMode.AUTO,
    "NONE": ToolChoiceMode.NONE,
    "ANY": ToolChoiceMode.REQUIRED,
}

JSON_MIME_TYPE = "application/json"


def map_gemini_finish_reason(reason: Optional[str], has_tool_calls: bool = False) -> FinishReason:
    if has_tool_calls and reason in (None, "STOP"):
        return FinishReason.TOOL_CALLS
    return FINISH_REASON_MAP.get(reason or "STOP", FinishReason.STOP)


def parse_usage_metadata(usage: Optional[Dict[str, Any]]) -> Optional[Usage]:
    if not usage:
        return None
    cached = usage.get("cachedContentTokenCount")
    return Usage(
        prompt_tokens=usage.get("promptTokenCount", 0) or 0,
        completion_tokens=usage.get("candidatesTokenCount", 0) or 0,
        total_tokens=usage.get("totalTokenCount", 0) or 0,
        details=UsageDetails(cached_tokens=cached) if cached else None,
    )


def build_usage_metadata(usage: Usage) -> Dict[str, Any]:
    metadata = {
        "promptTokenCount": usage.prompt_tokens,
        "candidatesTokenCount": usage.completion_tokens,
        "totalTokenCount": usage.total_tokens,
    }
    if usage.details and usage.details.cached_tokens:
        metadata["cachedContentTokenCount"] = usage.details.cached_tokens
    return metadata


class GeminiDecoder(Decoder):
    """Decodes Gemini wire format to IR."""

    def __init__(self):
        # OpenAI-shaped requests are common from Gemini clients
        self._openai = OpenAIChatDecoder()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def parse_request(self, payload: Dict[str, Any]) -> LLMRequestIR:
        if isinstance(payload.get("messages"), list):
            return self._openai.parse_request(payload)

        ir = LLMRequestIR(
            model=payload.get("model"),
            stream=bool(payload.get("stream", False)),
            raw=payload,
        )

        system = payload.get("systemInstruction")
        if system:
            texts = [part["text"] for part in system.get("parts", []) if part.get("text")]
            if texts:
                ir.system = "\n".join(texts)

        for content in payload.get("contents", []):
            ir.messages.extend(self._decode_content(content))

        declarations = []
        for tool in payload.get("tools") or []:
            declarations.extend(tool.get("functionDeclarations") or [])
        if declarations:
            ir.tools = [
                Tool(
                    function=ToolFunction(
                        name=decl.get("name", ""),
                        description=decl.get("description"),
                        parameters=decl.get("parameters"),
                    )
                )
                for decl in declarations
            ]

        ir.tool_choice = self._decode_tool_config(payload.get("toolConfig"))
        ir.generation = self._decode_generation(payload.get("generationConfig"))
        return ir

    def _decode_content(self, content: Dict[str, Any]) -> List[Message]:
        """
        One Gemini content entry may carry text, function calls and function
        responses together; each function response becomes its own TOOL message.
        """
        role = Role.ASSISTANT if content.get("role") == "model" else Role.USER
        parts: List[ContentPart] = []
        tool_calls: List[ToolCall] = []
        tool_messages: List[Message] = []

        for part in content.get("parts", []):
            if "text" in part:
                parts.append(TextContent(text=part["text"]))
            elif "inlineData" in part:
                data = part["inlineData"]
                parts.append(
                    ImageContent(
                        source=Base64ImageSource(
                            media_type=data.get("mimeType", "image/png"),
                            data=data.get("data", ""),
                        )
                    )
                )
            elif "fileData" in part:
                parts.append(
                    ImageContent(source=UrlImageSource(url=part["fileData"].get("fileUri", "")))
                )
            elif "functionCall" in part:
                call = part["functionCall"]
                tool_calls.append(
                    ToolCall(
                        id=call.get("id") or generate_id(f"call_{len(tool_calls)}"),
                        function=ToolCallFunction(
                            name=call.get("name", ""),
                            arguments=json.dumps(call.get("args") or {}, ensure_ascii=False),
                        ),
                    )
                )
            elif "functionResponse" in part:
                response = part["functionResponse"]
                result = response.get("response")
                if isinstance(result, dict) and set(result) == {"result"}:
                    result = result["result"]
                tool_messages.append(
                    Message(
                        role=Role.TOOL,
                        content=result if isinstance(result, str) else json.dumps(result, ensure_ascii=False),
                        name=response.get("name"),
                        tool_call_id=response.get("id") or response.get("name"),
                    )
                )

        messages = list(tool_messages)
        if parts or tool_calls:
            content_value: Union[str, List[ContentPart]] = parts
            if parts and all(isinstance(p, TextContent) for p in parts):
                content_value = "".join(p.text for p in parts)
            messages.append(
                Message(role=role, content=content_value, tool_calls=tool_calls or None)
            )
        return messages

    def _decode_tool_config(self, config: Optional[Dict[str, Any]]) -> Optional[ToolChoice]:
        if not config:
            return None
        calling = config.get("functionCallingConfig") or {}
        mode = calling.get("mode")
        allowed = calling.get("allowedFunctionNames") or []
        if mode == "ANY" and len(allowed) == 1:
            return ToolChoiceFunction(name=allowed[0])
        return TOOL_MODE_MAP.get(mode)

    def _decode_generation(self, config: Optional[Dict[str, Any]]) -> Optional[GenerationConfig]:
        if not config:
            return None
        response_format = None
        if config.get("responseMimeType") == JSON_MIME_TYPE:
            response_format = ResponseFormat(type="json_object")
        return GenerationConfig(
            temperature=config.get("temperature"),
            top_p=config.get("topP"),
            top_k=config.get("topK"),
            max_tokens=config.get("maxOutputTokens"),
            stop_sequences=config.get("stopSequences"),
            presence_penalty=config.get("presencePenalty"),
            frequency_penalty=config.get("frequencyPenalty"),
            n=config.get("candidateCount"),
            seed=config.get("seed"),
            response_format=response_format,
        )

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def parse_response(self, payload: Dict[str, Any]) -> LLMResponseIR:
        choices = []
        for index, candidate in enumerate(payload.get("candidates") or []):
            messages = self._decode_content(
                {"role": "model", "parts": (candidate.get("content") or {}).get("parts", [])}
            )
            message = messages[-1] if messages else Message(role=Role.ASSISTANT, content="")
            choices.append(
                Choice(
                    index=candidate.get("index", index),
                    message=message,
                    finish_reason=map_gemini_finish_reason(
                        candidate.get("finishReason"), bool(message.tool_calls)
                    ),
                )
            )

        return LLMResponseIR(
            id=payload.get("responseId") or f"gemini-{now_ms()}",
            model=payload.get("modelVersion", ""),
            choices=choices,
            usage=parse_usage_metadata(payload.get("usageMetadata")),
            raw=payload,
        )

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def parse_stream(self, chunk: Dict[str, Any]) -> StreamParseResult:
        if "choices" in chunk:
            return self._openai.parse_stream(chunk)

        if isinstance(chunk.get("error"), dict):
            err = chunk["error"]
            return LLMStreamEvent(
                type=StreamEventType.ERROR,
                error=StreamError(message=err.get("message", ""), code=err.get("status")),
                raw=chunk,
            )

        chunk_id = chunk.get("responseId")
        model = chunk.get("modelVersion")
        usage = parse_usage_metadata(chunk.get("usageMetadata"))
        candidates = chunk.get("candidates") or []

        if not candidates:
            if usage:
                return LLMStreamEvent(
                    type=StreamEventType.END, id=chunk_id, model=model, usage=usage, raw=chunk
                )
            return None

        candidate = candidates[0]
        events: List[LLMStreamEvent] = []
        call_index = 0
        for part in (candidate.get("content") or {}).get("parts", []):
            if part.get("text"):
                events.append(
                    LLMStreamEvent(
                        type=StreamEventType.CONTENT,
                        id=chunk_id,
                        model=model,
                        content=ContentDelta(delta=part["text"], index=candidate.get("index", 0)),
                        raw=chunk,
                    )
                )
            elif "functionCall" in part:
                call = part["functionCall"]
                events.append(
                    LLMStreamEvent(
                        type=StreamEventType.TOOL_CALL,
                        id=chunk_id,
                        model=model,
                        tool_call=ToolCallDelta(
                            id=call.get("id") or generate_id(f"call_{call_index}"),
                            name=call.get("name"),
                            arguments=json.dumps(call.get("args") or {}, ensure_ascii=False),
                            index=call_index,
                        ),
                        raw=chunk,
                    )
                )
                call_index += 1

        if candidate.get("finishReason"):
            events.append(
                LLMStreamEvent(
                    type=StreamEventType.END,
                    id=chunk_id,
                    model=model,
                    finish_reason=map_gemini_finish_reason(
                        candidate["finishReason"], call_index > 0
                    ),
                    usage=usage,
                    raw=chunk,
                )
            )

        if not events:
            return None
        return events[0] if len(events) == 1 else events

    def parse_error(self, payload: Any) -> LLMErrorIR:
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            err = payload["error"]
            code = err.get("code")
            status = err.get("status")
            error_type = ERROR_CODE_MAP.get(code) or ERROR_STATUS_MAP.get(status, ErrorType.UNKNOWN)
            return LLMErrorIR(
                type=error_type,
                message=err.get("message", ""),
                code=status,
                status=code if isinstance(code, int) else None,
                retryable=error_type in (ErrorType.RATE_LIMIT, ErrorType.SERVER),
                raw=payload,
            )
        return LLMErrorIR(type=ErrorType.UNKNOWN, message=str(payload), raw=payload)


class GeminiEncoder(Encoder):
    """Encodes IR to Gemini wire format."""

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def build_request(self, ir: LLMRequestIR) -> Dict[str, Any]:
        request: Dict[str, Any] = {}

        system_parts = [ir.system] if ir.system else []
        system_parts.extend(
            msg.get_text_content() for msg in ir.messages if msg.role == Role.SYSTEM
        )
        if system_parts:
            request["systemInstruction"] = {"parts": [{"text": text} for text in system_parts]}

        # Function responses need the function name, which only the call carries
        call_names: Dict[str, str] = {}
        contents = []
        for msg in ir.messages:
            if msg.role == Role.SYSTEM:
                continue
            for tc in msg.tool_calls or []:
                call_names[tc.id] = tc.function.name
            contents.append(self._encode_message(msg, call_names))
        request["contents"] = contents

        if ir.tools:
            request["tools"] = [
                {
                    "functionDeclarations": [
                        drop_none(
                            {
                                "name": tool.function.name,
                                "description": tool.function.description,
                                "parameters": tool.function.parameters,
                            }
                        )
                        for tool in ir.tools
                    ]
                }
            ]

        tool_config = self._encode_tool_choice(ir.tool_choice)
        if tool_config:
            request["toolConfig"] = tool_config

        generation = self._encode_generation(ir.generation)
        if generation:
            request["generationConfig"] = generation
        return request

    def _encode_message(self, msg: Message, call_names: Dict[str, str]) -> Dict[str, Any]:
        if msg.role == Role.TOOL:
            name = call_names.get(msg.tool_call_id or "") or msg.name or "unknown"
            return {
                "role": "user",
                "parts": [
                    {
                        "functionResponse": {
                            "name": name,
                            "response": {"result": msg.get_text_content()},
                        }
                    }
                ],
            }

        parts: List[Dict[str, Any]] = []
        if isinstance(msg.content, str):
            if msg.content:
                parts.append({"text": msg.content})
        else:
            for part in msg.content:
                if isinstance(part, TextContent):
                    parts.append({"text": part.text})
                elif isinstance(part, ImageContent):
                    parts.append(self._encode_image(part))

        for tc in msg.tool_calls or []:
            parts.append(
                {"functionCall": {"name": tc.function.name, "args": load_arguments(tc.function.arguments)}}
            )

        return {
            "role": "model" if msg.role == Role.ASSISTANT else "user",
            "parts": parts,
        }

    def _encode_image(self, part: ImageContent) -> Dict[str, Any]:
        source = part.source
        if isinstance(source, Base64ImageSource):
            return {"inlineData": {"mimeType": source.media_type, "data": source.data}}
        return {"fileData": {"mimeType": "image/*", "fileUri": source.url}}

    def _encode_tool_choice(self, choice: Optional[ToolChoice]) -> Optional[Dict[str, Any]]:
        if choice is None:
            return None
        if isinstance(choice, ToolChoiceFunction):
            return {
                "functionCallingConfig": {"mode": "ANY", "allowedFunctionNames": [choice.name]}
            }
        mode = {
            ToolChoiceMode.AUTO: "AUTO",
            ToolChoiceMode.NONE: "NONE",
            ToolChoiceMode.REQUIRED: "ANY",
        }[choice]
        return {"functionCallingConfig": {"mode": mode}}

    def _encode_generation(self, gen: Optional[GenerationConfig]) -> Dict[str, Any]:
        if not gen:
            return {}
        config = drop_none(
            {
                "temperature": gen.temperature,
                "topP": gen.top_p,
                "topK": gen.top_k,
                "maxOutputTokens": gen.max_tokens,
                "stopSequences": gen.stop_sequences or None,
                "presencePenalty": gen.presence_penalty,
                "frequencyPenalty": gen.frequency_penalty,
                "candidateCount": gen.n,
                "seed": gen.seed,
            }
        )
        if gen.response_format and gen.response_format.type in ("json_object", "json_schema"):
            config["responseMimeType"] = JSON_MIME_TYPE
            schema = (gen.response_format.json_schema or {}).get("schema")
            if schema:
                config["responseSchema"] = schema
        return config

    # ------------------------------------------------------------------
    # Responses
    # ------------------------------------------------------------------

    def build_response(self, ir: LLMResponseIR) -> Dict[str, Any]:
        candidates = []
        for choice in ir.choices:
            content = self._encode_message(choice.message, {})
            if not content["parts"]:
                content["parts"] = [{"text": ""}]
            candidates.append(
                {
                    "content": content,
                    "finishReason": REVERSE_FINISH_REASON_MAP.get(
                        choice.finish_reason or FinishReason.STOP, "STOP"
                    ),
                    "index": choice.index,
                }
            )

        response: Dict[str, Any] = {
            "candidates": candidates,
            "responseId": ir.id,
            "modelVersion": ir.model,
        }
        if ir.usage:
            response["usageMetadata"] = build_usage_metadata(ir.usage)
        return response

    def create_stream_builder(self) -> StreamEventBuilder:
        return GeminiStreamBuilder()


class GeminiStreamBuilder(StreamEventBuilder):
    """
    IR stream events -> Gemini stream chunks.

    Gemini has no start frame: every chunk is a full response object
    carrying a slice of the candidate content.

    A ``functionCall`` part carries complete ``args``, so tool call deltas
    are accumulated per ``index`` and emitted with the finishing chunk.
    """

    def __init__(self):
        self.response_id = f"gemini-{now_ms()}"
        self.model = ""
        # tool call index -> {"name", "arguments"}, in arrival order
        self.tool_calls: Dict[int, Dict[str, str]] = {}

    def _chunk(self, parts: List[Dict[str, Any]], **candidate: Any) -> SSEEvent:
        return SSEEvent(
            event="data",
            data={
                "candidates": [
                    {"content": {"role": "model", "parts": parts}, **candidate, "index": 0}
                ],
                "modelVersion": self.model,
                "responseId": self.response_id,
            },
        )

    def process(self, event: LLMStreamEvent) -> List[SSEEvent]:
        if event.id:
            self.response_id = event.id
        if event.model:
            self.model = event.model

        if event.type == StreamEventType.CONTENT and event.content and event.content.delta:
            return [self._chunk([{"text": event.content.delta}])]

        if event.type == StreamEventType.TOOL_CALL and event.tool_call:
            return self._accumulate(event.tool_call)

        if event.type == StreamEventType.END:
            frame = self._chunk(
                self._function_call_parts() or [{"text": ""}],
                finishReason=REVERSE_FINISH_REASON_MAP.get(
                    event.finish_reason or FinishReason.STOP, "STOP"
                ),
            )
            if event.usage:
                frame.data["usageMetadata"] = build_usage_metadata(event.usage)
            return [frame]

        if event.type == StreamEventType.ERROR and event.error:
            return [
                SSEEvent(
                    event="data",
                    data={"error": {"code": 500, "message": event.error.message, "status": "INTERNAL"}},
                )
            ]

        return []

    def finalize(self) -> List[SSEEvent]:
        parts = self._function_call_parts()
        return [self._chunk(parts)] if parts else []

    def _accumulate(self, tc: ToolCallDelta) -> List[SSEEvent]:
        frames: List[SSEEvent] = []
        call = self.tool_calls.get(tc.index)
        if call is not None and tc.name and call["name"]:
            # A second name for the same index starts a new call
            frames.append(self._chunk([_function_call_part(self.tool_calls.pop(tc.index))]))
            call = None
        if call is None:
            call = self.tool_calls[tc.index] = {"name": "", "arguments": ""}
        if tc.name:
            call["name"] = tc.name
        if tc.arguments:
            call["arguments"] += tc.arguments
        return frames

    def _function_call_parts(self) -> List[Dict[str, Any]]:
        parts = [_function_call_part(call) for call in self.tool_calls.values() if call["name"]]
        self.tool_calls.clear()
        return parts


def _function_call_part(call: Dict[str, str]) -> Dict[str, Any]:
    args = load_arguments(call["arguments"])
    if not isinstance(args, dict) or "raw" in args:
        args = {}
    return {"functionCall": {"name": call["name"], "args": args}}


class GeminiAdapter(LLMAdapter):
    """Google Gemini API (generateContent)."""

    name = "google"
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
        logprobs=False,
        seed=False,
    )
    endpoint = ProviderEndpoint(
        base_url="https://generativelanguage.googleapis.com",
        chat_path="/v1beta/models/{model}:generateContent",
        models_path="/v1beta/models",
        stream_path="/v1beta/models/{model}:streamGenerateContent?alt=sse",
    )

    def __init__(self):
        self.inbound = GeminiDecoder()
        self.outbound = GeminiEncoder()
