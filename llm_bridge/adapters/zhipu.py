"""
Zhipu AI (GLM) Adapter

OpenAI-compatible with ``do_sample``/``request_id``/``user_id`` request
fields, a ``web_search`` built-in tool and the ``sensitive`` finish reason.
"""

from typing import Any, Dict, List

from llm_bridge.common.utils import drop_none
from llm_bridge.ir import FinishReason, GenerationConfig, LLMRequestIR
from .base import AdapterCapabilities, LLMAdapter, ProviderEndpoint
from .openai_chat import OpenAIChatDecoder, OpenAIChatEncoder

EXTENSION_FIELDS = ("do_sample", "request_id", "user_id")


class ZhipuDecoder(OpenAIChatDecoder):
    """Decodes Zhipu format to IR."""

    finish_reason_map = {"sensitive": FinishReason.CONTENT_FILTER}

    def parse_request(self, payload: Dict[str, Any]) -> LLMRequestIR:
        function_tools: List[Dict[str, Any]] = []
        enable_search = None
        for tool in payload.get("tools") or []:
            if tool.get("type") == "web_search":
                enable_search = bool((tool.get("web_search") or {}).get("enable", True))
            else:
                function_tools.append(tool)

        ir = super().parse_request({**payload, "tools": function_tools})
        if enable_search is not None:
            ir.generation = ir.generation or GenerationConfig()
            ir.generation.enable_search = enable_search
        ir.raw = payload
        return ir

    def _decode_request_extensions(self, payload: Dict[str, Any], ir: LLMRequestIR) -> None:
        zhipu = {key: payload[key] for key in EXTENSION_FIELDS if key in payload}
        if zhipu:
            ir.extensions["zhipu"] = zhipu

    def _is_stream_start(self, choice: Dict[str, Any], delta: Dict[str, Any]) -> bool:
        # Zhipu does not always send a role on the first chunk
        return bool(
            choice.get("index", 0) == 0
            and not delta.get("content")
            and not delta.get("tool_calls")
            and not choice.get("finish_reason")
        )


class ZhipuEncoder(OpenAIChatEncoder):
    """Encodes IR to Zhipu format."""

    default_model = "glm-4"

    def _encode_generation(self, gen: GenerationConfig, request: Dict[str, Any]) -> None:
        super()._encode_generation(gen, request)
        for unsupported in ("seed", "logprobs", "top_logprobs"):
            request.pop(unsupported, None)
        if gen.enable_search:
            request.setdefault("tools", []).append(
                {"type": "web_search", "web_search": {"enable": True, "search_result": True}}
            )

    def _encode_request_extensions(self, ir: LLMRequestIR, request: Dict[str, Any]) -> None:
        zhipu = ir.extensions.get("zhipu") or {}
        request.update(drop_none({key: zhipu.get(key) for key in EXTENSION_FIELDS}))


class ZhipuAdapter(LLMAdapter):
    """Zhipu AI (BigModel) Chat API."""

    name = "zhipu"
    version = "1.0.0"
    capabilities = AdapterCapabilities(
        streaming=True,
        tools=True,
        vision=True,
        multimodal=True,
        system_prompt=True,
        tool_choice=True,
        reasoning=False,
        web_search=True,
        json_mode=True,
        logprobs=False,
        seed=False,
    )
    endpoint = ProviderEndpoint(
        base_url="https://open.bigmodel.cn/api/paas",
        chat_path="/v4/chat/completions",
        models_path="/v4/models",
    )

    def __init__(self):
        self.inbound = ZhipuDecoder()
        self.outbound = ZhipuEncoder()
