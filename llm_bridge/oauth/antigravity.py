"""
Antigravity OAuth Translator

Sends standard Gemini ``generateContent`` requests to the Cloud Code
``v1internal`` API. Requests are wrapped in the v1internal envelope and
responses unwrapped from its ``response`` field, so callers see plain
Gemini payloads.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

import httpx

from llm_bridge.common.errors import APIError
from llm_bridge.common.utils import generate_uuid
from llm_bridge.config import get_settings
from llm_bridge.stream import SSELineParser, parse_data_line

from .pool_manager import AccountSelection, OAuthPoolManager

logger = logging.getLogger(__name__)

PROVIDER_TYPE = "antigravity"
DEFAULT_MODEL = "gemini-2.5-flash"


def wrap_request(body: Dict[str, Any], project_id: str, model: Optional[str] = None) -> Dict[str, Any]:
    """
    Wrap a Gemini request in the v1internal envelope.

    The ``model`` field moves from the request body to the envelope.
    """
    request = dict(body)
    body_model = request.pop("model", None)
    return {
        "project": project_id,
        "requestId": f"agent-{generate_uuid()}",
        "request": request,
        "model": model or body_model or DEFAULT_MODEL,
        "userAgent": "antigravity",
        "requestType": "code",
    }


def unwrap_response(body: Any) -> Any:
    """Return the ``response`` field of a v1internal payload, or the payload itself."""
    if isinstance(body, dict) and body.get("response"):
        return body["response"]
    return body


def _should_fall_through(status: int) -> bool:
    return status == 429 or status >= 500


class AntigravityTranslator:
    """
    Gemini requests through pooled Antigravity accounts.

    Each account tries every base URL in order: 429, 5xx and connection
    failures move on to the next URL, any other error status rotates to the
    next account.
    """

    standard_adapter_type = "google"

    def __init__(
        self,
        pool_manager: OAuthPoolManager,
        base_urls: Optional[List[str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        settings = get_settings()
        self.pool_manager = pool_manager
        self.base_urls = base_urls or list(settings.ANTIGRAVITY_BASE_URLS)
        self.timeout = settings.HTTP_TIMEOUT_MS / 1000
        self._client = client

    def build_headers(self, access_token: str, metadata: Dict[str, Any]) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "User-Agent": "antigravity/1.104.0 darwin/arm64",
            "X-Goog-Api-Client": "google-cloud-sdk vscode_cloudshelleditor/0.1",
        }
        if metadata.get("metadata"):
            headers["Client-Metadata"] = json.dumps(metadata["metadata"])
        return headers

    def build_url(self, base_url: str, method: str, stream: bool) -> str:
        url = f"{base_url.rstrip('/')}/v1internal:{method}"
        return f"{url}?alt=sse" if stream else url

    async def complete(self, body: Dict[str, Any], model: Optional[str] = None) -> Dict[str, Any]:
        """Non-streaming ``generateContent``; returns the unwrapped Gemini response."""

        async def executor(selection: AccountSelection) -> Dict[str, Any]:
            client, owned = self._get_client()
            try:
                response = await self._send(client, selection, body, model, stream=False)
                data = response.json()
            finally:
                if owned:
                    await client.aclose()
            return unwrap_response(data)

        return await self.pool_manager.execute_with_retry(PROVIDER_TYPE, executor)

    async def stream(self, body: Dict[str, Any], model: Optional[str] = None) -> AsyncIterator[Any]:
        """
        ``streamGenerateContent`` over SSE.

        Yields:
            Unwrapped Gemini stream chunks (dicts)
        """

        async def executor(selection: AccountSelection) -> Tuple[httpx.AsyncClient, httpx.Response, bool]:
            client, owned = self._get_client()
            try:
                response = await self._send(client, selection, body, model, stream=True)
            except BaseException:
                if owned:
                    await client.aclose()
                raise
            return client, response, owned

        client, response, owned = await self.pool_manager.execute_with_retry(PROVIDER_TYPE, executor)
        parser = SSELineParser()
        try:
            async for text in response.aiter_text():
                for line in parser.process_chunk(text):
                    chunk = self._chunk_from_line(line)
                    if chunk is not None:
                        yield chunk
            for line in parser.flush():
                chunk = self._chunk_from_line(line)
                if chunk is not None:
                    yield chunk
        finally:
            await response.aclose()
            if owned:
                await client.aclose()

    async def list_models(self) -> Dict[str, Any]:
        """``fetchAvailableModels`` for the first working account."""

        async def executor(selection: AccountSelection) -> Dict[str, Any]:
            client, owned = self._get_client()
            try:
                response = await self._post_with_fallback(
                    client, selection, "fetchAvailableModels", {}, stream=False
                )
                return response.json()
            finally:
                if owned:
                    await client.aclose()

        return await self.pool_manager.execute_with_retry(PROVIDER_TYPE, executor)

    async def _send(
        self,
        client: httpx.AsyncClient,
        selection: AccountSelection,
        body: Dict[str, Any],
        model: Optional[str],
        stream: bool,
    ) -> httpx.Response:
        project_id = str(selection.metadata.get("project_id") or "")
        wrapped = wrap_request(body, project_id, model)
        method = "streamGenerateContent" if stream else "generateContent"
        return await self._post_with_fallback(client, selection, method, wrapped, stream)

    async def _post_with_fallback(
        self,
        client: httpx.AsyncClient,
        selection: AccountSelection,
        method: str,
        payload: Dict[str, Any],
        stream: bool,
    ) -> httpx.Response:
        """
        POST to each base URL in turn.

        Returns:
            The first successful response (unread when ``stream`` is set)

        Raises:
            APIError: A non-fallthrough status, or every URL failed
        """
        headers = self.build_headers(selection.access_token, selection.metadata)
        last_status: Optional[int] = None
        last_body: Any = None

        for base_url in self.base_urls:
            url = self.build_url(base_url, method, stream)
            try:
                request = client.build_request("POST", url, headers=headers, json=payload)
                response = await client.send(request, stream=stream)
            except httpx.HTTPError as exc:
                logger.warning("Antigravity request failed on %s: %s", base_url, exc)
                last_body = str(exc)
                continue

            if response.is_success:
                return response

            await response.aread()
            await response.aclose()
            body = _safe_body(response)
            if _should_fall_through(response.status_code):
                logger.warning(
                    "Antigravity returned %s on %s, trying next base URL",
                    response.status_code,
                    base_url,
                )
                last_status, last_body = response.status_code, body
                continue

            raise APIError(
                f"Antigravity API error: {response.status_code}",
                status=response.status_code,
                provider=PROVIDER_TYPE,
                data=body,
            )

        raise APIError(
            "All Antigravity base URLs failed",
            status=last_status or 502,
            provider=PROVIDER_TYPE,
            data=last_body,
        )

    def _chunk_from_line(self, line: str) -> Optional[Any]:
        payload = parse_data_line(line)
        if payload is None:
            return None
        try:
            return unwrap_response(json.loads(payload))
        except json.JSONDecodeError:
            logger.debug("Skipping non-JSON Antigravity data line")
            return None

    def _get_client(self) -> Tuple[httpx.AsyncClient, bool]:
        if self._client is not None:
            return self._client, False
        return httpx.AsyncClient(timeout=self.timeout), True


def _safe_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
