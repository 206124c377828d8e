"""
Unit Tests for HttpClient

Upstream calls are mocked with respx.
"""

import httpx
import pytest
import respx

from llm_bridge.common.errors import APIError, NetworkError, RequestTimeoutError
from llm_bridge.common.http_client import HttpClient, RequestOptions

URL = "https://upstream.test/v1/chat"


def make_client(sleep, max_retries=3, **kwargs) -> HttpClient:
    return HttpClient(timeout_ms=5000, max_retries=max_retries, provider="test", sleep=sleep, **kwargs)


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given byte chunks."""

    def __init__(self, chunks):
        self.chunks = chunks

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk


class TestRequest:
    """Tests for HttpClient.request."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_success(self, sleep_recorder):
        route = respx.post(URL).respond(200, json={"ok": True})
        client = make_client(sleep_recorder, headers={"X-Default": "1"})

        response = await client.request(
            RequestOptions(url=URL, headers={"Authorization": "Bearer k"}, body={"q": 1})
        )

        assert response.status == 200
        assert response.data == {"ok": True}
        sent = route.calls.last.request
        assert sent.headers["Authorization"] == "Bearer k"
        assert sent.headers["X-Default"] == "1"
        assert sent.headers["Content-Type"] == "application/json"
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_retries_server_errors_with_exponential_backoff(self, sleep_recorder):
        """Four 503s with three retries: delays 1s, 2s, 4s, then the error surfaces."""
        route = respx.post(URL).respond(503, json={"error": {"message": "overloaded"}})
        client = make_client(sleep_recorder)

        with pytest.raises(APIError) as exc_info:
            await client.request(RequestOptions(url=URL, body={}))

        assert exc_info.value.status == 503
        assert exc_info.value.provider == "test"
        assert exc_info.value.data == {"error": {"message": "overloaded"}}
        assert route.call_count == 4
        assert client.recorded_delays_ms == [1000, 2000, 4000]
        assert sleep_recorder.calls == [1.0, 2.0, 4.0]
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_recovers_after_retry(self, sleep_recorder):
        route = respx.post(URL).mock(
            side_effect=[httpx.Response(502), httpx.Response(200, json={"ok": 1})]
        )
        client = make_client(sleep_recorder)

        response = await client.request(RequestOptions(url=URL, body={}))

        assert response.data == {"ok": 1}
        assert route.call_count == 2
        assert client.recorded_delays_ms == [1000]
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_client_errors_are_not_retried(self, sleep_recorder):
        route = respx.post(URL).respond(400, json={"error": {"message": "bad"}})
        client = make_client(sleep_recorder)

        with pytest.raises(APIError) as exc_info:
            await client.request(RequestOptions(url=URL, body={}))

        assert exc_info.value.status == 400
        assert not exc_info.value.retryable
        assert route.call_count == 1
        assert sleep_recorder.calls == []
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_error(self, sleep_recorder):
        respx.post(URL).mock(side_effect=httpx.ConnectError)
        client = make_client(sleep_recorder, max_retries=0)

        with pytest.raises(NetworkError) as exc_info:
            await client.request(RequestOptions(url=URL, body={}))

        assert exc_info.value.retryable
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_connection_error_is_retried(self, sleep_recorder):
        route = respx.post(URL).mock(
            side_effect=[httpx.ConnectError("reset"), httpx.Response(200, json={})]
        )
        client = make_client(sleep_recorder, max_retries=1)

        await client.request(RequestOptions(url=URL, body={}))

        assert route.call_count == 2
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_timeout(self, sleep_recorder):
        respx.post(URL).mock(side_effect=httpx.ReadTimeout)
        client = make_client(sleep_recorder, max_retries=0)

        with pytest.raises(RequestTimeoutError) as exc_info:
            await client.request(RequestOptions(url=URL, body={}, timeout_ms=1234))

        assert exc_info.value.timeout_ms == 1234
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_oversize_response(self, sleep_recorder):
        respx.post(URL).respond(200, json={"text": "x" * 100})
        client = make_client(sleep_recorder, max_retries=0, max_response_size=10)

        with pytest.raises(NetworkError, match="exceeds maximum allowed size"):
            await client.request(RequestOptions(url=URL, body={}))
        await client.close()


class TestRequestStream:
    """Tests for HttpClient.request_stream."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_yields_decoded_text(self, sleep_recorder):
        body = 'data: {"text": "héllo"}\n\ndata: [DONE]\n\n'
        route = respx.post(URL).respond(
            200, content=body.encode("utf-8"), headers={"content-type": "text/event-stream"}
        )
        client = make_client(sleep_recorder)

        chunks = [chunk async for chunk in client.request_stream(RequestOptions(url=URL, body={}))]

        assert "".join(chunks) == body
        assert route.calls.last.request.headers["Accept"] == "text/event-stream"
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_multibyte_character_split_across_chunks(self, sleep_recorder):
        respx.post(URL).mock(
            return_value=httpx.Response(
                200,
                headers={"content-type": "text/event-stream; charset=utf-8"},
                stream=ChunkedStream([b'data: "h\xc3', b'\xa9llo"\n\n']),
            )
        )
        client = make_client(sleep_recorder)

        chunks = [chunk async for chunk in client.request_stream(RequestOptions(url=URL, body={}))]

        assert "".join(chunks) == 'data: "héllo"\n\n'
        assert "�" not in "".join(chunks)
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_error_status_raises_before_any_chunk(self, sleep_recorder):
        route = respx.post(URL).respond(401, json={"error": {"message": "bad key"}})
        client = make_client(sleep_recorder)

        with pytest.raises(APIError) as exc_info:
            async for _ in client.request_stream(RequestOptions(url=URL, body={})):
                pass

        assert exc_info.value.status == 401
        assert exc_info.value.data == {"error": {"message": "bad key"}}
        assert route.call_count == 1
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_streams_are_not_retried(self, sleep_recorder):
        route = respx.post(URL).respond(503)
        client = make_client(sleep_recorder)

        with pytest.raises(APIError):
            async for _ in client.request_stream(RequestOptions(url=URL, body={})):
                pass

        assert route.call_count == 1
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_early_exit_releases_response(self, sleep_recorder):
        respx.post(URL).respond(200, content=b"data: 1\n\ndata: 2\n\n")
        client = make_client(sleep_recorder)

        stream = client.request_stream(RequestOptions(url=URL, body={}))
        first = await stream.__anext__()
        await stream.aclose()

        assert first.startswith("data: 1")
        # The client is still usable afterwards
        chunks = [chunk async for chunk in client.request_stream(RequestOptions(url=URL, body={}))]
        assert "".join(chunks) == "data: 1\n\ndata: 2\n\n"
        await client.close()

    @pytest.mark.asyncio
    @respx.mock
    async def test_stream_size_limit(self, sleep_recorder):
        respx.post(URL).respond(200, content=b"data: " + b"x" * 64 + b"\n\n")
        client = make_client(sleep_recorder, max_response_size=16)

        with pytest.raises(NetworkError):
            async for _ in client.request_stream(RequestOptions(url=URL, body={})):
                pass
        await client.close()
