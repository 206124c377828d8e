"""
MiniMax Adapter

OpenAI-compatible with reasoning carried as ``reasoning_details`` (a list
of ``{"type": "thinking", "text": ...}`` entries) and a ``reasoning_split``
switch. Several entries are joined with newlines when decoded; encoding
always produces exactly one entry.
"""

from typing import Any, Dict, List, Optional

from llm_bridge.ir import GenerationConfig, LLMRequestIR, Message
from .base import AdapterCapabilities, LLMAdapter, ProviderEndpoint, StreamEventBuilder
from .openai_chat import OpenAIChatDecoder, OpenAIChatEncoder, OpenAIChatStreamBuilder

MIN_TEMPERATURE = 0.01
MAX_TEMPERATURE = 1.0


def reasoning_details(text: str) -> List[Dict[str, str]]:
    return [{"type": "thinking", "text": text}]


class MinimaxDecoder(OpenAIChatDecoder):
    """Decodes MiniMax format to IR."""

    def _decode_reasoning(self, msg: Dict[str, Any]) -> Optional[str]:
        details = msg.get("reasoning_details")
        if not details:
            return None
        return "\n".join(detail.get("text", "") for detail in details)

    def _decode_request_extensions(self, payload: Dict[str, Any], ir: LLMRequestIR) -> None:
        if "reasoning_split" in payload:
            ir.extensions["minimax"] = {"reasoning_split": payload["reasoning_split"]}


class MinimaxEncoder(OpenAIChatEncoder):
    """Encodes IR to MiniMax format."""

    default_model = "MiniMax-M2.1"

    def _encode_message(self, msg: Message, ir: LLMRequestIR) -> Dict[str, Any]:
        message = super()._encode_message(msg, ir)
        if msg.reasoning_content is not None:
            message["reasoning_details"] = reasoning_details(msg.reasoning_content)
        return message

    def _encode_generation(self, gen: GenerationConfig, request: Dict[str, Any]) -> None:
        if gen.temperature is not None:
            request["temperature"] = min(max(gen.temperature, MIN_TEMPERATURE), MAX_TEMPERATURE)
        if gen.top_p is not None:
            request["top_p"] = gen.top_p
        if gen.max_tokens is not None:
            request["max_tokens"] = gen.max_tokens
        if gen.stop_sequences:
            request["stop"] = gen.stop_sequences
        if gen.response_format and gen.response_format.type == "json_object":
            request["response_format"] = {"type": "json_object"}

    def _encode_request_extensions(self, ir: LLMRequestIR, request: Dict[str, Any]) -> None:
        minimax = ir.extensions.get("minimax") or {}
        split = minimax.get("reasoning_split")
        request["reasoning_split"] = True if split is None else bool(split)

    def _encode_response_message(self, msg: Message, message: Dict[str, Any]) -> None:
        if msg.reasoning_content:
            message["reasoning_details"] = reasoning_details(msg.reasoning_content)

    def create_stream_builder(self) -> StreamEventBuilder:
        return MinimaxStreamBuilder()


class MinimaxStreamBuilder(OpenAIChatStreamBuilder):
    """OpenAI-style chunks with ``reasoning_details`` deltas."""

    def _reasoning_delta(self, text: str) -> Dict[str, Any]:
        return {"reasoning_details": reasoning_details(text)}


class MinimaxAdapter(LLMAdapter):
    """MiniMax Chat Completions API."""

    name = "minimax"
    version = "1.0.0"
    capabilities = AdapterCapabilities(
        streaming=True,
        tools=True,
        vision=False,
        multimodal=False,
        system_prompt=True,
        tool_choice=True,
        reasoning=True,
        web_search=False,
        json_mode=True,
        logprobs=False,
        seed=False,
    )
    endpoint = ProviderEndpoint(
        base_url="https://api.minimaxi.com/v1",
        chat_path="/chat/completions",
        models_path="/models",
    )

    def __init__(self):
        self.inbound = MinimaxDecoder()
        self.outbound = MinimaxEncoder()
