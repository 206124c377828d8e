"""
Proxy Routes

Each route feeds the request body to the Bridge registered for its wire
format and writes the result back in that same format.
"""

import logging
from dataclasses import asdict
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from llm_bridge.common.errors import ValidationError
from llm_bridge.ir import LLMResponseIR, LLMStreamEvent, SSEEvent
from llm_bridge.stream import SSEFormatter

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Proxy"])

STREAM_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _format_frame(frame: SSEEvent, named: bool) -> str:
    data = frame.data
    if isinstance(data, (LLMStreamEvent, LLMResponseIR)):
        # Inbound adapter without a stream builder; IR events go out as-is
        frame = SSEEvent(event=frame.event, data=asdict(data))
    return SSEFormatter.format(frame, named=named)


async def _read_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


async def _handle(request: Request, inbound_name: str, named_events: bool, done_marker: bool):
    """
    Dispatch one proxy request.

    For streams the first frame is pulled before responding, so failures
    before any output still produce a JSON error with the right status.
    After that, a failure only ends the stream.
    """
    body = await _read_body(request)
    bridge = request.app.state.bridges.get(inbound_name)

    if not body.get("stream"):
        result = await bridge.chat(body)
        if isinstance(result, LLMResponseIR):
            result = asdict(result)
        return JSONResponse(content=result)

    frames = bridge.chat_stream(body)
    try:
        first = await anext(frames)
    except StopAsyncIteration:
        first = None

    async def event_stream() -> AsyncIterator[str]:
        try:
            if first is not None:
                yield _format_frame(first, named_events)
                async for frame in frames:
                    yield _format_frame(frame, named_events)
            if done_marker:
                yield SSEFormatter.done()
        except Exception:
            logger.exception("Stream aborted after response start: inbound=%s", inbound_name)
        finally:
            await frames.aclose()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=STREAM_HEADERS)


@router.post("/v1/chat/completions")
async def chat_completions(request: Request):
    """OpenAI Chat Completions API."""
    return await _handle(request, "openai", named_events=False, done_marker=True)


@router.post("/v1/messages")
async def messages(request: Request):
    """Anthropic Messages API."""
    return await _handle(request, "anthropic", named_events=True, done_marker=False)


@router.post("/v1/responses")
async def responses(request: Request):
    """OpenAI Responses API."""
    return await _handle(request, "openai-responses", named_events=True, done_marker=False)
