"""Per-request pipeline: token handshake, upstream call and response translation."""

import asyncio
import logging
from typing import AsyncIterator

import httpx
from fastapi import Response
from fastapi.responses import JSONResponse, StreamingResponse

from ..config_loader import Settings
from ..types import InboundChatRequest, UpstreamChatRequest
from .exceptions import UpstreamCallError, UpstreamError
from .messages import build_upstream_body
from .translator import aggregate_completion, new_completion_id, stream_chunks
from .upstream import acquire_token, invoke_chat
from .upstream_transport import build_upstream_client

logger = logging.getLogger("duckproxy")

MAX_RETRY_DELAY = 30.0

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class ChatRouter:
    """Runs chat requests against the upstream using read-only ``Settings``.

    Holds no per-request state, so one instance serves concurrent requests.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def open_chat(
        self, body: UpstreamChatRequest
    ) -> tuple[httpx.AsyncClient, httpx.Response]:
        """Acquire a token and open the upstream chat stream.

        Transport failures and retryable statuses from either call are
        retried up to ``max_retry_count`` attempts, each with a fresh token.

        Returns:
            The client and live response; the caller must close both.
        """
        attempts = max(1, self.settings.max_retry_count)
        delay = self.settings.retry_delay

        for attempt in range(attempts):
            client = build_upstream_client(
                self.settings.upstream_base_url, self.settings.chat_timeout
            )
            try:
                token = await acquire_token(client, self.settings)
                resp = await invoke_chat(client, self.settings, body, token)
                logger.debug("Upstream chat opened on attempt %d/%d", attempt + 1, attempts)
                return client, resp
            except UpstreamError as exc:
                await client.aclose()
                if not exc.retryable or attempt + 1 >= attempts:
                    raise
                logger.warning(
                    "Upstream attempt %d/%d failed (%s); retrying in %.2fs",
                    attempt + 1,
                    attempts,
                    exc.message,
                    delay,
                )
            except BaseException:
                await client.aclose()
                raise

            await asyncio.sleep(delay)
            delay = min(delay * 2, MAX_RETRY_DELAY)

        raise UpstreamCallError("upstream attempts exhausted without success")

    async def forward_request(self, payload: InboundChatRequest) -> Response:
        """Translate one inbound request and return the client response."""
        body = build_upstream_body(payload.get("model", ""), payload.get("messages", []))
        model = body["model"]
        is_stream = bool(payload.get("stream", False))
        logger.info(
            "Forwarding %d message(s) as model %s, stream=%s",
            len(payload.get("messages", [])),
            model,
            is_stream,
        )

        client, resp = await self.open_chat(body)

        if is_stream:
            return StreamingResponse(
                self._stream(client, resp, model),
                media_type="text/event-stream",
                headers=SSE_HEADERS,
            )

        try:
            completion = await aggregate_completion(resp.aiter_lines(), model)
        finally:
            await resp.aclose()
            await client.aclose()
        return JSONResponse(completion)

    async def _stream(
        self, client: httpx.AsyncClient, resp: httpx.Response, model: str
    ) -> AsyncIterator[str]:
        completion_id = new_completion_id()
        try:
            async for frame in stream_chunks(resp.aiter_lines(), model, completion_id):
                yield frame
        except asyncio.CancelledError:
            logger.info("Stream %s cancelled by client", completion_id)
            raise
        finally:
            await resp.aclose()
            await client.aclose()
