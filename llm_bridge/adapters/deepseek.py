"""
DeepSeek Adapter

OpenAI-compatible with ``reasoning_content``, a ``thinking`` switch and
prompt cache hit/miss accounting. Reasoner models reject system messages
and echoed reasoning, so both are dropped on build.
"""

from typing import Any, Dict, Optional

from llm_bridge.common.error_parser import build_openai_usage
from llm_bridge.ir import (
    GenerationConfig,
    LLMRequestIR,
    LLMResponseIR,
    Message,
    ThinkingConfig,
    Usage,
)
from .base import AdapterCapabilities, LLMAdapter, ProviderEndpoint
from .openai_chat import OpenAIChatDecoder, OpenAIChatEncoder

MAX_TOKENS_LIMIT = 8192


def is_reasoner_model(model: Optional[str]) -> bool:
    return bool(model and "reasoner" in model)


class DeepSeekDecoder(OpenAIChatDecoder):
    """Decodes DeepSeek format to IR."""

    def _decode_reasoning(self, msg: Dict[str, Any]) -> Optional[str]:
        return msg.get("reasoning_content")

    def _decode_generation(self, payload: Dict[str, Any]) -> GenerationConfig:
        config = super()._decode_generation(payload)
        thinking = payload.get("thinking")
        if thinking:
            config.thinking = ThinkingConfig(enabled=thinking.get("type") == "enabled")
        return config

    def _decode_response_extensions(self, payload: Dict[str, Any], ir: LLMResponseIR) -> None:
        usage = payload.get("usage") or {}
        if "prompt_cache_hit_tokens" in usage:
            ir.extensions["deepseek"] = {
                "prompt_cache_hit_tokens": usage.get("prompt_cache_hit_tokens"),
                "prompt_cache_miss_tokens": usage.get("prompt_cache_miss_tokens"),
            }


class DeepSeekEncoder(OpenAIChatEncoder):
    """Encodes IR to DeepSeek format."""

    default_model = "deepseek-chat"

    def _keep_system(self, ir: LLMRequestIR) -> bool:
        return not is_reasoner_model(ir.model)

    def _encode_message(self, msg: Message, ir: LLMRequestIR) -> Dict[str, Any]:
        message = super()._encode_message(msg, ir)
        # Reasoner answers 400 when reasoning_content is echoed back
        if msg.reasoning_content is not None and not is_reasoner_model(ir.model):
            message["reasoning_content"] = msg.reasoning_content
        return message

    def _encode_generation(self, gen: GenerationConfig, request: Dict[str, Any]) -> None:
        super()._encode_generation(gen, request)
        request.pop("n", None)
        request.pop("seed", None)
        if gen.max_tokens is not None:
            request["max_tokens"] = min(max(gen.max_tokens, 1), MAX_TOKENS_LIMIT)
        request.pop("response_format", None)
        if gen.response_format and gen.response_format.type == "json_object":
            request["response_format"] = {"type": "json_object"}
        if gen.thinking:
            request["thinking"] = {"type": "enabled" if gen.thinking.enabled else "disabled"}

    def build_response(self, ir: LLMResponseIR) -> Dict[str, Any]:
        response = super().build_response(ir)
        miss = (ir.extensions.get("deepseek") or {}).get("prompt_cache_miss_tokens")
        if miss is not None and "usage" in response:
            response["usage"]["prompt_cache_miss_tokens"] = miss
        return response

    def _encode_response_message(self, msg: Message, message: Dict[str, Any]) -> None:
        if msg.reasoning_content:
            message["reasoning_content"] = msg.reasoning_content

    def _encode_usage(self, usage: Optional[Usage]) -> Optional[Dict[str, Any]]:
        return build_openai_usage(usage, include_cache_tokens=True)


class DeepSeekAdapter(LLMAdapter):
    """DeepSeek Chat API."""

    name = "deepseek"
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
        logprobs=True,
        seed=False,
    )
    endpoint = ProviderEndpoint(
        base_url="https://api.deepseek.com",
        chat_path="/chat/completions",
        models_path="/models",
    )

    def __init__(self):
        self.inbound = DeepSeekDecoder()
        self.outbound = DeepSeekEncoder()
