"""
HTTP Client Wrapper Module

Provides the asynchronous HTTP client the Bridge uses to reach upstream
providers: JSON requests with timeout and exponential-backoff retry, and a
streaming variant yielding decoded text chunks.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional

import httpx

from llm_bridge.common.errors import APIError, NetworkError, RequestTimeoutError
from llm_bridge.common.retry import Err, Ok, Result, retry_async
from llm_bridge.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class RequestOptions:
    """A single upstream request."""

    url: str
    method: str = "POST"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    timeout_ms: Optional[int] = None


@dataclass
class HttpResponse:
    """Decoded JSON response."""

    status: int
    headers: Dict[str, str]
    data: Any


class HttpClient:
    """
    Asynchronous HTTP Client Wrapper

    Wraps httpx.AsyncClient. Non-stream requests are retried for 5xx,
    timeout and network errors with a ``2**retry * base`` ms delay; 4xx
    responses are never retried. Streams are never retried.
    """

    def __init__(
        self,
        headers: Optional[Dict[str, str]] = None,
        timeout_ms: Optional[int] = None,
        max_retries: Optional[int] = None,
        max_response_size: Optional[int] = None,
        provider: str = "unknown",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize HTTP Client

        Args:
            headers: Default request headers
            timeout_ms: Request timeout (ms), defaults to configuration
            max_retries: Retries after the first attempt, defaults to configuration
            max_response_size: Largest accepted body in bytes
            provider: Provider name attached to APIError
            sleep: Awaitable sleep used between retries
        """
        settings = get_settings()
        self.default_headers = headers or {}
        self.timeout_ms = timeout_ms if timeout_ms is not None else settings.HTTP_TIMEOUT_MS
        self.max_retries = max_retries if max_retries is not None else settings.HTTP_MAX_RETRIES
        self.max_response_size = (
            max_response_size
            if max_response_size is not None
            else settings.HTTP_MAX_RESPONSE_SIZE
        )
        self.retry_base_delay_ms = settings.HTTP_RETRY_BASE_DELAY_MS
        self.provider = provider
        self._sleep = sleep
        self._client: Optional[httpx.AsyncClient] = None
        # Every backoff delay actually slept, in order
        self.recorded_delays_ms: List[float] = []

    async def _get_client(self) -> httpx.AsyncClient:
        """
        Get or create HTTP client instance

        Returns:
            httpx.AsyncClient: HTTP client instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout_ms / 1000))
        return self._client

    async def close(self) -> None:
        """Close HTTP Client"""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_headers(self, options: RequestOptions, stream: bool = False) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if stream:
            headers["Accept"] = "text/event-stream"
        headers.update(self.default_headers)
        headers.update(options.headers)
        return headers

    def _backoff_ms(self, retry: int) -> float:
        return (2**retry) * self.retry_base_delay_ms

    async def request(self, options: RequestOptions) -> HttpResponse:
        """
        Send a JSON request with retry

        Args:
            options: Request options

        Returns:
            HttpResponse: Status, headers and decoded JSON body

        Raises:
            APIError: Non-2xx response (after retries for 5xx)
            RequestTimeoutError: Timed out on every attempt
            NetworkError: Connection failure on every attempt, or oversize body
        """

        async def attempt(n: int) -> Result[HttpResponse]:
            try:
                return Ok(await self._send(options))
            except (APIError, NetworkError, RequestTimeoutError) as exc:
                return Err(exc)

        def on_retry(n: int, err: Err, delay_ms: float) -> None:
            self.recorded_delays_ms.append(delay_ms)
            logger.warning(
                "Upstream request failed, retrying: provider=%s, url=%s, attempt=%s/%s, "
                "delay_ms=%s, status=%s, error=%s",
                self.provider,
                options.url,
                n + 1,
                self.max_retries + 1,
                delay_ms,
                getattr(err.error, "status", None),
                err.error,
            )

        return await retry_async(
            attempt,
            max_attempts=self.max_retries + 1,
            backoff_ms=self._backoff_ms,
            sleep=self._sleep,
            on_retry=on_retry,
        )

    async def _send(self, options: RequestOptions) -> HttpResponse:
        """Single attempt, errors typed."""
        client = await self._get_client()
        timeout_ms = options.timeout_ms or self.timeout_ms
        try:
            response = await client.request(
                method=options.method,
                url=options.url,
                headers=self._build_headers(options),
                json=options.body,
                timeout=httpx.Timeout(timeout_ms / 1000),
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError("Request timeout", timeout_ms) from exc
        except httpx.HTTPError as exc:
            raise NetworkError("Network request failed", cause=exc) from exc

        content_length = response.headers.get("content-length")
        if content_length and content_length.isdigit():
            size = int(content_length)
            if size > self.max_response_size:
                raise NetworkError(
                    f"Response size ({size} bytes) exceeds maximum allowed size "
                    f"({self.max_response_size} bytes)"
                )

        headers = dict(response.headers)
        if not response.is_success:
            raise APIError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status=response.status_code,
                provider=self.provider,
                data=_safe_json(response),
                headers=headers,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError("Invalid JSON in upstream response", cause=exc) from exc

        return HttpResponse(status=response.status_code, headers=headers, data=data)

    async def request_stream(self, options: RequestOptions) -> AsyncIterator[str]:
        """
        Send a streaming request

        Connection errors are typed like ``request``; nothing is retried.
        The response is released when the consumer stops iterating early.

        Args:
            options: Request options

        Yields:
            str: Decoded text chunk
        """
        client = await self._get_client()
        timeout_ms = options.timeout_ms or self.timeout_ms
        try:
            async with client.stream(
                method=options.method,
                url=options.url,
                headers=self._build_headers(options, stream=True),
                json=options.body,
                timeout=httpx.Timeout(timeout_ms / 1000),
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise APIError(
                        f"HTTP {response.status_code}: {response.reason_phrase}",
                        status=response.status_code,
                        provider=self.provider,
                        data=_safe_json(response),
                        headers=dict(response.headers),
                    )

                async for text in response.aiter_text():
                    total_bytes = response.num_bytes_downloaded
                    if total_bytes > self.max_response_size:
                        raise NetworkError(
                            f"Streaming response size ({total_bytes} bytes) exceeds "
                            f"maximum allowed size ({self.max_response_size} bytes)"
                        )
                    if text:
                        yield text
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError("Request timeout", timeout_ms) from exc
        except httpx.HTTPError as exc:
            raise NetworkError("Network request failed", cause=exc) from exc


def _safe_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}
