"""
Adapter Base Classes

Defines the contract every provider adapter implements. The ``inbound``
side (a Decoder) turns wire payloads into IR, the ``outbound`` side (an
Encoder) turns IR back into wire payloads.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Union

from llm_bridge.ir import (
    ErrorType,
    LLMErrorIR,
    LLMRequestIR,
    LLMResponseIR,
    LLMStreamEvent,
    SSEEvent,
)

StreamParseResult = Union[None, LLMStreamEvent, List[LLMStreamEvent]]


@dataclass(frozen=True)
class AdapterCapabilities:
    """Static feature flags consulted before dispatch."""
    streaming: bool = True
    tools: bool = True
    vision: bool = False
    multimodal: bool = False
    system_prompt: bool = True
    tool_choice: bool = True
    reasoning: bool = False
    web_search: bool = False
    json_mode: bool = False
    logprobs: bool = False
    seed: bool = False


@dataclass(frozen=True)
class ProviderEndpoint:
    """Default upstream location; paths may contain ``{model}``."""
    base_url: str
    chat_path: str
    models_path: Optional[str] = None
    # Used instead of chat_path for streaming calls when the provider has one
    stream_path: Optional[str] = None


@dataclass
class AdapterInfo:
    name: str
    version: str
    capabilities: AdapterCapabilities
    endpoint: ProviderEndpoint

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationResult:
    valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class Decoder(ABC):
    """Wire format -> IR."""

    @abstractmethod
    def parse_request(self, payload: Dict[str, Any]) -> LLMRequestIR:
        """Decode a wire request to IR."""

    def parse_response(self, payload: Dict[str, Any]) -> LLMResponseIR:
        """Decode a wire response to IR."""
        raise NotImplementedError(f"{type(self).__name__} cannot parse responses")

    def parse_stream(self, chunk: Dict[str, Any]) -> StreamParseResult:
        """
        Decode one parsed SSE data payload.

        Returns:
            None for frames with no IR-relevant signal, else one or more events
        """
        raise NotImplementedError(f"{type(self).__name__} cannot parse streams")

    def parse_error(self, payload: Any) -> LLMErrorIR:
        """Decode a wire error body to IR."""
        return LLMErrorIR(type=ErrorType.UNKNOWN, message=str(payload), raw=payload)

    @property
    def can_parse_response(self) -> bool:
        return type(self).parse_response is not Decoder.parse_response

    @property
    def can_parse_stream(self) -> bool:
        return type(self).parse_stream is not Decoder.parse_stream


class StreamEventBuilder(ABC):
    """
    Per-stream converter from IR stream events to wire SSE frames.

    One instance serves exactly one stream; it is never shared.
    """

    @abstractmethod
    def process(self, event: LLMStreamEvent) -> List[SSEEvent]:
        """Convert one IR event into zero or more frames."""

    def finalize(self) -> List[SSEEvent]:
        """Frames to emit after the last event."""
        return []


class Encoder(ABC):
    """IR -> wire format."""

    @abstractmethod
    def build_request(self, ir: LLMRequestIR) -> Dict[str, Any]:
        """Encode an IR request for the provider."""

    def build_response(self, ir: LLMResponseIR) -> Dict[str, Any]:
        """Encode an IR response in this provider's wire format."""
        raise NotImplementedError(f"{type(self).__name__} cannot build responses")

    def create_stream_builder(self) -> Optional[StreamEventBuilder]:
        """Fresh stream builder, or None when streaming output is unsupported."""
        return None

    @property
    def can_build_response(self) -> bool:
        return type(self).build_response is not Encoder.build_response


class LLMAdapter:
    """
    A provider adapter.

    Subclasses set the class-level ``name``, ``version``, ``capabilities``
    and ``endpoint`` and create their decoder/encoder pair in ``__init__``.
    """

    name: str = ""
    version: str = "1.0.0"
    capabilities: AdapterCapabilities = AdapterCapabilities()
    endpoint: ProviderEndpoint = ProviderEndpoint(base_url="", chat_path="")

    # Sent with every upstream call, below user-supplied headers
    default_headers: Dict[str, str] = {}

    inbound: Decoder
    outbound: Encoder

    def get_info(self) -> AdapterInfo:
        return AdapterInfo(
            name=self.name,
            version=self.version,
            capabilities=self.capabilities,
            endpoint=self.endpoint,
        )

    def validate_request(self, ir: LLMRequestIR) -> Optional[ValidationResult]:
        """Optional adapter-specific validation; None means no opinion."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} version={self.version!r}>"
