"""Translation of upstream message fragments into OpenAI chat completion objects."""

import logging
import time
import uuid
from typing import AsyncIterable, AsyncIterator, Optional

import httpx

from ..types import ChatCompletionChunk, ChatCompletionResponse
from .sse import encode_sse_frame, iter_upstream_messages

logger = logging.getLogger("duckproxy")


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex}"


def build_chunk(
    content: str, model: str, completion_id: str, created: Optional[int] = None
) -> ChatCompletionChunk:
    return {
        "id": completion_id,
        "object": "chat.completion.chunk",
        "created": int(time.time()) if created is None else created,
        "model": model,
        "choices": [
            {
                "index": 0,
                "delta": {"content": content},
                "finish_reason": None,
            }
        ],
    }


def build_completion(
    content: str, model: str, completion_id: Optional[str] = None
) -> ChatCompletionResponse:
    return {
        "id": completion_id or new_completion_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": model,
        "usage": {
            "prompt_tokens": 0,
            "completion_tokens": 0,
            "total_tokens": 0,
        },
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


async def stream_chunks(
    lines: AsyncIterable[str], model: str, completion_id: Optional[str] = None
) -> AsyncIterator[str]:
    """Yield one SSE frame per non-empty upstream fragment.

    Frames are produced lazily, so the next upstream line is only read once
    the previous frame has been sent. No ``[DONE]`` frame is added. An
    upstream read error ends the stream quietly.
    """
    completion_id = completion_id or new_completion_id()
    emitted = 0
    try:
        async for message in iter_upstream_messages(lines):
            if not message:
                continue
            emitted += 1
            yield encode_sse_frame(build_chunk(message, model, completion_id))
    except httpx.HTTPError as exc:
        logger.error("Reading upstream stream failed: %s: %s", exc.__class__.__name__, exc)
    logger.info("Stream %s finished after %d chunks", completion_id, emitted)


async def aggregate_completion(
    lines: AsyncIterable[str], model: str
) -> ChatCompletionResponse:
    """Concatenate every upstream fragment into a single completion.

    An upstream read error keeps whatever was collected so far.
    """
    parts: list[str] = []
    try:
        async for message in iter_upstream_messages(lines):
            parts.append(message)
    except httpx.HTTPError as exc:
        logger.error("Reading upstream response failed: %s: %s", exc.__class__.__name__, exc)
    content = "".join(parts)
    logger.info("Aggregated %d fragments (%d chars)", len(parts), len(content))
    return build_completion(content, model)
