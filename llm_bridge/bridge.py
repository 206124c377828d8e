"""
Bridge Orchestrator

Connects an inbound adapter (the format the caller speaks) to an outbound
adapter (the format the upstream provider speaks). Each call runs

    parse -> map model -> on_request -> validate -> capability gate
    -> build -> HTTP -> parse -> on_response -> build

and, for streams, re-frames every upstream SSE event in the inbound format.
"""

import inspect
import json
import logging
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Union

from llm_bridge.adapters.base import LLMAdapter
from llm_bridge.common.errors import (
    APIError,
    BridgeError,
    NetworkError,
    RequestTimeoutError,
    ValidationError,
)
from llm_bridge.common.http_client import HttpClient, RequestOptions
from llm_bridge.ir import (
    ErrorType,
    LLMErrorIR,
    LLMRequestIR,
    LLMResponseIR,
    LLMStreamEvent,
    SSEEvent,
)
from llm_bridge.stream import DONE_SENTINEL, SSELineParser, parse_data_line

logger = logging.getLogger(__name__)

Hook = Callable[..., Any]


@dataclass
class BridgeConfig:
    """
    Upstream connection settings.

    ``base_url`` and ``chat_path`` fall back to the outbound adapter's
    endpoint. With an empty ``auth_header_prefix`` the bare key is sent.
    """

    api_key: str = ""
    base_url: Optional[str] = None
    chat_path: Optional[str] = None
    models_path: Optional[str] = None
    timeout_ms: Optional[int] = None
    max_retries: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)
    auth_header_name: str = "Authorization"
    auth_header_prefix: str = "Bearer"


@dataclass
class BridgeHooks:
    """Optional callbacks; each may be a plain function or a coroutine function."""

    on_request: Optional[Hook] = None
    on_response: Optional[Hook] = None
    on_stream_event: Optional[Hook] = None
    on_error: Optional[Hook] = None


@dataclass
class CompatibilityReport:
    compatible: bool
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


async def _call_hook(hook: Optional[Hook], *args: Any) -> None:
    if hook is None:
        return
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


class Bridge:
    """
    One inbound/outbound adapter pair plus upstream configuration.

    Args:
        inbound: Adapter for the caller's wire format
        outbound: Adapter for the upstream provider's wire format
        config: Upstream connection settings
        hooks: Optional lifecycle callbacks
        target_model: Fixed model override, wins over everything else
        model_mapper: Function mapping a requested model name to another
        model_mapping: Static table of model names
        http_client: Client to use instead of one built from ``config``
    """

    def __init__(
        self,
        inbound: LLMAdapter,
        outbound: LLMAdapter,
        config: BridgeConfig,
        hooks: Optional[BridgeHooks] = None,
        target_model: Optional[str] = None,
        model_mapper: Optional[Callable[[str], str]] = None,
        model_mapping: Optional[Dict[str, str]] = None,
        http_client: Optional[HttpClient] = None,
    ):
        self.inbound = inbound
        self.outbound = outbound
        self.config = config
        self.hooks = hooks or BridgeHooks()
        self.target_model = target_model
        self.model_mapper = model_mapper
        self.model_mapping = model_mapping or {}
        self._owns_client = http_client is None
        self.http_client = http_client or HttpClient(
            timeout_ms=config.timeout_ms,
            max_retries=config.max_retries,
            provider=outbound.name,
        )

    async def close(self) -> None:
        if self._owns_client:
            await self.http_client.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def chat(self, request: Dict[str, Any]) -> Union[Dict[str, Any], LLMResponseIR]:
        """
        Send a non-streaming request.

        Returns:
            Response in the inbound wire format, or the IR when the inbound
            adapter cannot build responses
        """
        try:
            response_ir = await self._chat_ir(request)
            encoder = self.inbound.outbound
            if not encoder.can_build_response:
                return response_ir
            return encoder.build_response(response_ir)
        except Exception as exc:
            await self._handle_error(exc)
            raise

    async def chat_raw(self, request: Dict[str, Any]) -> LLMResponseIR:
        """Send a non-streaming request and return the response IR."""
        try:
            return await self._chat_ir(request)
        except Exception as exc:
            await self._handle_error(exc)
            raise

    async def chat_stream(self, request: Dict[str, Any]) -> AsyncIterator[SSEEvent]:
        """
        Send a streaming request, yielding frames in the inbound wire format.

        ``[DONE]`` payloads are never yielded; writing a transport-level end
        marker is up to the caller.
        """
        builder = self.inbound.outbound.create_stream_builder()
        try:
            async with aclosing(self._stream_events(request)) as events:
                async for event in events:
                    if builder is None:
                        yield SSEEvent(event="data", data=event)
                        continue
                    for frame in builder.process(event):
                        yield frame
            if builder is not None:
                for frame in builder.finalize():
                    if frame.data != DONE_SENTINEL:
                        yield frame
        except Exception as exc:
            await self._handle_error(exc)
            raise

    async def chat_stream_raw(self, request: Dict[str, Any]) -> AsyncIterator[LLMStreamEvent]:
        """Send a streaming request, yielding IR stream events."""
        try:
            async with aclosing(self._stream_events(request)) as events:
                async for event in events:
                    yield event
        except Exception as exc:
            await self._handle_error(exc)
            raise

    def check_compatibility(self) -> CompatibilityReport:
        """
        Compare adapter capabilities without making any call.

        Missing tool support upstream is an issue; vision, streaming and
        reasoning gaps are warnings.
        """
        source = self.inbound.capabilities
        target = self.outbound.capabilities
        issues: List[str] = []
        warnings: List[str] = []

        if source.tools and not target.tools:
            issues.append(f"Outbound adapter '{self.outbound.name}' does not support tools")
        if source.vision and not target.vision:
            warnings.append(f"Outbound adapter '{self.outbound.name}' does not support vision")
        if source.streaming and not target.streaming:
            warnings.append(f"Outbound adapter '{self.outbound.name}' does not support streaming")
        if source.reasoning and not target.reasoning:
            warnings.append(f"Outbound adapter '{self.outbound.name}' does not support reasoning")

        return CompatibilityReport(compatible=not issues, issues=issues, warnings=warnings)

    def get_adapters(self) -> Dict[str, Dict[str, Any]]:
        return {
            "inbound": self.inbound.get_info().to_dict(),
            "outbound": self.outbound.get_info().to_dict(),
        }

    def map_model(self, model: Optional[str]) -> Optional[str]:
        """
        Resolve the upstream model name.

        Priority: ``target_model``, then ``model_mapper``, then
        ``model_mapping`` (falling back to the original name).
        """
        if self.target_model:
            return self.target_model
        if model is None:
            return None
        if self.model_mapper is not None:
            return self.model_mapper(model)
        return self.model_mapping.get(model, model)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _prepare(self, request: Dict[str, Any], stream: bool) -> LLMRequestIR:
        ir = self.inbound.inbound.parse_request(request)
        if stream:
            ir.stream = True
        ir.model = self.map_model(ir.model)

        await _call_hook(self.hooks.on_request, ir)

        validation = self.inbound.validate_request(ir)
        if validation is not None and not validation.valid:
            raise ValidationError("Request validation failed", errors=validation.errors)

        self._check_capabilities(ir, stream)
        return ir

    def _check_capabilities(self, ir: LLMRequestIR, stream: bool) -> None:
        caps = self.outbound.capabilities
        name = self.outbound.name
        if ir.tools and not caps.tools:
            raise ValidationError(f"Outbound adapter '{name}' does not support tools")
        if not caps.vision and any(msg.has_image() for msg in ir.messages):
            raise ValidationError(f"Outbound adapter '{name}' does not support vision")
        thinking = ir.generation.thinking if ir.generation else None
        if thinking is not None and thinking.enabled and not caps.reasoning:
            raise ValidationError(f"Outbound adapter '{name}' does not support reasoning")
        if stream and not caps.streaming:
            raise ValidationError(f"Outbound adapter '{name}' does not support streaming")

    def _build_options(self, ir: LLMRequestIR, stream: bool) -> RequestOptions:
        body = self.outbound.outbound.build_request(ir)
        endpoint = self.outbound.endpoint

        path = self.config.chat_path
        if path is None:
            path = endpoint.stream_path if stream and endpoint.stream_path else endpoint.chat_path
        if "{model}" in path:
            model = body.get("model") or ir.model
            if not model:
                raise ValidationError("A model name is required for this endpoint")
            path = path.replace("{model}", model)

        base_url = (self.config.base_url or endpoint.base_url).rstrip("/")
        return RequestOptions(
            url=f"{base_url}{path}",
            headers=self._build_headers(),
            body=body,
            timeout_ms=self.config.timeout_ms,
        )

    def _build_headers(self) -> Dict[str, str]:
        headers = dict(self.outbound.default_headers)
        if self.config.api_key:
            prefix = self.config.auth_header_prefix
            value = f"{prefix} {self.config.api_key}" if prefix else self.config.api_key
            headers[self.config.auth_header_name] = value
        headers.update(self.config.headers)
        return headers

    async def _chat_ir(self, request: Dict[str, Any]) -> LLMResponseIR:
        ir = await self._prepare(request, stream=False)
        options = self._build_options(ir, stream=False)

        response = await self.http_client.request(options)

        decoder = self.outbound.inbound
        if not decoder.can_parse_response:
            raise BridgeError(f"Outbound adapter '{self.outbound.name}' cannot parse responses")
        response_ir = decoder.parse_response(response.data)

        await _call_hook(self.hooks.on_response, response_ir)
        return response_ir

    async def _stream_events(self, request: Dict[str, Any]) -> AsyncIterator[LLMStreamEvent]:
        ir = await self._prepare(request, stream=True)
        options = self._build_options(ir, stream=True)

        decoder = self.outbound.inbound
        if not decoder.can_parse_stream:
            raise BridgeError(f"Outbound adapter '{self.outbound.name}' cannot parse streams")

        parser = SSELineParser()
        async with aclosing(self.http_client.request_stream(options)) as chunks:
            async for chunk in chunks:
                for line in parser.process_chunk(chunk):
                    async for event in self._events_from_line(line):
                        yield event
        for line in parser.flush():
            async for event in self._events_from_line(line):
                yield event

    async def _events_from_line(self, line: str) -> AsyncIterator[LLMStreamEvent]:
        payload = parse_data_line(line)
        if payload is None:
            return
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug("Skipping non-JSON SSE data line: %s", payload[:200])
            return

        result = self.outbound.inbound.parse_stream(data)
        if result is None:
            return
        events = result if isinstance(result, list) else [result]
        for event in events:
            await _call_hook(self.hooks.on_stream_event, event)
            yield event

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    async def _handle_error(self, exc: Exception) -> None:
        """Report ``exc`` to ``on_error``; failures of the hook itself are only logged."""
        if self.hooks.on_error is None:
            return
        try:
            await _call_hook(self.hooks.on_error, self._to_error_ir(exc))
        except Exception:
            logger.exception("on_error hook failed")

    def _to_error_ir(self, exc: Exception) -> LLMErrorIR:
        if isinstance(exc, APIError) and exc.data:
            error_ir = self.outbound.inbound.parse_error(exc.data)
            error_ir.status = exc.status
            error_ir.retryable = error_ir.retryable or exc.retryable
            if not error_ir.message:
                error_ir.message = exc.message
            return error_ir

        if isinstance(exc, (NetworkError, RequestTimeoutError)):
            error_type = ErrorType.NETWORK
        elif isinstance(exc, ValidationError):
            error_type = ErrorType.VALIDATION
        elif isinstance(exc, APIError):
            error_type = ErrorType.API
        else:
            error_type = ErrorType.UNKNOWN
        return LLMErrorIR(
            type=error_type,
            message=str(exc),
            code=getattr(exc, "code", None),
            status=getattr(exc, "status", None),
            retryable=bool(getattr(exc, "retryable", False)),
            raw=exc,
        )
