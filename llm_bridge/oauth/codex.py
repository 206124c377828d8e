"""
Codex OAuth Translator

Serves OpenAI Chat Completions requests through the ChatGPT Codex backend,
which speaks a Responses-style protocol and authenticates with the OAuth
access token of a ChatGPT account from the pool.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from llm_bridge.common.errors import APIError, ValidationError
from llm_bridge.common.utils import generate_id, generate_uuid, now_ts
from llm_bridge.config import get_settings
from llm_bridge.stream import SSELineParser, parse_data_line

from .pool_manager import AccountSelection, OAuthPoolManager

logger = logging.getLogger(__name__)

PROVIDER_TYPE = "codex"
DEFAULT_MODEL = "gpt-5"

# Optional sampling fields copied from the Chat request
PASSTHROUGH_FIELDS = ("temperature", "max_tokens", "top_p", "frequency_penalty", "presence_penalty")

# Metadata-only Codex events with no Chat counterpart
SKIPPED_EVENTS = {
    "response.created",
    "response.in_progress",
    "response.output_item.added",
    "response.output_item.done",
    "response.content_part.added",
    "response.content_part.done",
    "response.output_text.done",
}


class CodexAPIError(APIError):
    """Codex answered with a non-2xx status; the status and body are kept for the caller."""

    def __init__(self, status: int, reason: str, error_body: Any):
        super().__init__(
            f"Codex API error: {status} {reason}".strip(),
            status=status,
            provider=PROVIDER_TYPE,
            data=error_body,
        )
        self.error_body = error_body


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {"error": {"message": response.text, "type": "unknown"}}


def _usage(usage: Optional[Dict[str, Any]]) -> Optional[Dict[str, int]]:
    if not usage:
        return None
    return {
        "prompt_tokens": usage.get("input_tokens", 0) or 0,
        "completion_tokens": usage.get("output_tokens", 0) or 0,
        "total_tokens": usage.get("total_tokens", 0) or 0,
    }


class CodexTranslator:
    """
    OpenAI Chat <-> Codex translation plus pooled dispatch.

    Args:
        pool_manager: Pool providing ``codex`` accounts
        api_url: Codex endpoint, defaults to configuration
        client: Shared httpx client; one is created per call when absent
    """

    standard_adapter_type = "openai"

    def __init__(
        self,
        pool_manager: OAuthPoolManager,
        api_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.pool_manager = pool_manager
        self.api_url = api_url or settings.CODEX_API_URL
        self.timeout = settings.HTTP_TIMEOUT_MS / 1000
        self._client = client

    # ------------------------------------------------------------------
    # Translation
    # ------------------------------------------------------------------

    def transform_request(self, openai_request: Dict[str, Any]) -> Dict[str, Any]:
        """Chat request -> Codex request; ``instructions`` and ``store`` are required by Codex."""
        items = []
        for msg in openai_request.get("messages") or []:
            text_type = "output_text" if msg.get("role") == "assistant" else "input_text"
            items.append(
                {
                    "type": "message",
                    "role": msg.get("role"),
                    "content": self._transform_content(msg.get("content"), text_type),
                }
            )

        request: Dict[str, Any] = {
            "model": openai_request.get("model"),
            "stream": openai_request.get("stream") is not False,
            "input": items,
            "instructions": "",
            "store": False,
        }
        for key in PASSTHROUGH_FIELDS:
            if openai_request.get(key) is not None:
                request[key] = openai_request[key]
        return request

    def _transform_content(self, content: Any, text_type: str) -> List[Dict[str, Any]]:
        if content is None:
            return []
        if isinstance(content, str):
            return [{"type": text_type, "text": content}]

        parts = []
        for item in content:
            if isinstance(item, str):
                parts.append({"type": text_type, "text": item})
            elif item.get("type") == "text":
                parts.append({"type": text_type, "text": item.get("text", "")})
            elif item.get("type") == "image_url":
                image_url = item.get("image_url") or {}
                url = image_url.get("url") if isinstance(image_url, dict) else image_url
                parts.append({"type": "input_image", "image_url": url or item.get("url")})
            else:
                parts.append(item)
        return parts

    def transform_stream_chunk(self, event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Codex SSE event -> ``chat.completion.chunk``.

        Returns:
            The chunk, or None for metadata-only events
        """
        event_type = event.get("type") if isinstance(event, dict) else None
        if not event_type:
            return None

        response = event.get("response") or {}
        chunk: Dict[str, Any] = {
            "id": event.get("item_id") or response.get("id") or generate_id("chatcmpl"),
            "object": "chat.completion.chunk",
            "created": now_ts(),
            "model": response.get("model") or DEFAULT_MODEL,
            "choices": [{"index": 0, "delta": {}, "finish_reason": None}],
        }

        if event_type == "response.output_text.delta":
            chunk["choices"][0]["delta"] = {"role": "assistant", "content": event.get("delta", "")}
        elif event_type == "response.completed":
            chunk["choices"][0]["finish_reason"] = "stop"
            usage = _usage(response.get("usage"))
            if usage:
                chunk["usage"] = usage
        else:
            if event_type not in SKIPPED_EVENTS:
                logger.debug("Ignoring Codex event type: %s", event_type)
            return None
        return chunk

    def transform_response(self, codex_response: Dict[str, Any]) -> Dict[str, Any]:
        """Codex response -> ``chat.completion``."""
        content = ""
        for item in codex_response.get("output") or []:
            if item.get("type") != "message":
                continue
            for part in item.get("content") or []:
                if part.get("type") == "output_text" and part.get("text"):
                    content += part["text"]

        response: Dict[str, Any] = {
            "id": codex_response.get("id") or generate_id("chatcmpl"),
            "object": "chat.completion",
            "created": now_ts(),
            "model": codex_response.get("model") or DEFAULT_MODEL,
            "choices": [
                {
                    "index": 0,
                    "message": {"role": "assistant", "content": content},
                    "finish_reason": "stop" if codex_response.get("status") == "completed" else "length",
                }
            ],
        }
        usage = _usage(codex_response.get("usage"))
        if usage:
            response["usage"] = usage
        return response

    def build_headers(self, access_token: str, metadata: Dict[str, Any]) -> Dict[str, str]:
        # Session_id and Conversation_id must carry the same value
        session_id = generate_uuid()
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "Version": "0.21.0",
            "Openai-Beta": "responses=experimental",
            "User-Agent": "codex_cli_rs/0.50.0",
            "Accept": "text/event-stream",
            "Originator": "codex_cli_rs",
            "Session_id": session_id,
            "Conversation_id": session_id,
        }
        if metadata.get("account_id"):
            headers["Chatgpt-Account-Id"] = str(metadata["account_id"])
        return headers

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _validate(self, openai_request: Dict[str, Any]) -> None:
        if not openai_request or not openai_request.get("messages"):
            raise ValidationError("Invalid request: messages are required")

    async def complete(self, openai_request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Non-streaming Chat completion through the account pool.

        Raises:
            ValidationError: No messages in the request
            CodexAPIError: Upstream error status from the last account tried
            PoolExhaustedError: No account available
        """
        self._validate(openai_request)
        codex_request = self.transform_request(openai_request)
        codex_request["stream"] = False

        async def executor(selection: AccountSelection) -> Dict[str, Any]:
            headers = self.build_headers(selection.access_token, selection.metadata)
            headers["Accept"] = "application/json"
            async with self._client_context() as client:
                response = await client.post(self.api_url, headers=headers, json=codex_request)
                if not response.is_success:
                    raise CodexAPIError(response.status_code, response.reason_phrase, _error_body(response))
                codex_response = response.json()

            result = self.transform_response(codex_response)
            if not (result.get("usage") or {}).get("completion_tokens"):
                # A legitimately empty answer is still an answer
                logger.warning(
                    "Codex returned an empty completion: account=%s, model=%s",
                    selection.account.id,
                    openai_request.get("model"),
                )
            return result

        return await self.pool_manager.execute_with_retry(PROVIDER_TYPE, executor)

    async def stream(self, openai_request: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        """
        Streaming Chat completion through the account pool.

        Accounts rotate only until an upstream stream is opened successfully;
        once chunks flow, a failure ends the stream.

        Yields:
            ``chat.completion.chunk`` dicts (no ``[DONE]`` marker)
        """
        self._validate(openai_request)
        codex_request = self.transform_request(openai_request)
        codex_request["stream"] = True

        async def executor(selection: AccountSelection) -> Tuple[httpx.AsyncClient, httpx.Response, bool]:
            headers = self.build_headers(selection.access_token, selection.metadata)
            client, owned = self._get_client()
            try:
                request = client.build_request("POST", self.api_url, headers=headers, json=codex_request)
                response = await client.send(request, stream=True)
            except BaseException:
                if owned:
                    await client.aclose()
                raise
            if not response.is_success:
                await response.aread()
                await response.aclose()
                if owned:
                    await client.aclose()
                raise CodexAPIError(response.status_code, response.reason_phrase, _error_body(response))
            return client, response, owned

        client, response, owned = await self.pool_manager.execute_with_retry(PROVIDER_TYPE, executor)
        parser = SSELineParser()
        output_tokens = 0
        try:
            async for text in response.aiter_text():
                for line in parser.process_chunk(text):
                    chunk = self._chunk_from_line(line)
                    if chunk is None:
                        continue
                    output_tokens = (chunk.get("usage") or {}).get("completion_tokens", output_tokens)
                    yield chunk
            for line in parser.flush():
                chunk = self._chunk_from_line(line)
                if chunk is not None:
                    yield chunk
        finally:
            await response.aclose()
            if owned:
                await client.aclose()

        if not output_tokens:
            logger.warning("Codex stream finished without output tokens: model=%s", openai_request.get("model"))

    def _chunk_from_line(self, line: str) -> Optional[Dict[str, Any]]:
        payload = parse_data_line(line)
        if payload is None:
            return None
        try:
            event = json.loads(payload)
        except json.JSONDecodeError:
            logger.debug("Skipping non-JSON Codex data line")
            return None
        return self.transform_stream_chunk(event)

    def _get_client(self) -> Tuple[httpx.AsyncClient, bool]:
        if self._client is not None:
            return self._client, False
        return httpx.AsyncClient(timeout=self.timeout), True

    def _client_context(self) -> "_ClientContext":
        return _ClientContext(*self._get_client())


class _ClientContext:
    """``async with`` over a client that is closed only when it was created for the call."""

    def __init__(self, client: httpx.AsyncClient, owned: bool):
        self.client = client
        self.owned = owned

    async def __aenter__(self) -> httpx.AsyncClient:
        return self.client

    async def __aexit__(self, *exc_info: Any) -> None:
        if self.owned:
            await self.client.aclose()
