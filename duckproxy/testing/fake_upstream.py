"""Fake DuckDuckGo AI chat upstream as an in-process ASGI app."""

from __future__ import annotations

import asyncio
import itertools
import json
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse

from ..core.upstream import TOKEN_HEADER


@dataclass
class StatusResponse:
    """A queued reply for the token handshake.

    Attributes:
        status_code: HTTP status code (default 200)
        token: Value of the token header; None omits the header
        body: Response body
    """

    status_code: int = 200
    token: Optional[str] = "test-token"
    body: str = ""


@dataclass
class ChatResponse:
    """A queued reply for the chat endpoint.

    Attributes:
        status_code: HTTP status code (default 200)
        lines: Raw body lines, each sent followed by a newline
        body: Raw body used instead of ``lines`` when set
        chunk_size: Re-split the encoded body into chunks of this many bytes
        chunk_delay_s: Delay between chunks
    """

    status_code: int = 200
    lines: list[str] = field(default_factory=list)
    body: Optional[bytes] = None
    chunk_size: Optional[int] = None
    chunk_delay_s: Optional[float] = None

    def encode(self) -> bytes:
        if self.body is not None:
            return self.body
        return "".join(f"{line}\n" for line in self.lines).encode("utf-8")


def message_lines(messages: Iterable[Any], *, add_done: bool = True) -> list[str]:
    """Build upstream ``data:`` lines carrying the given message values."""
    lines = [
        "data: " + json.dumps({"role": "assistant", "message": message, "action": "success"})
        for message in messages
    ]
    if add_done:
        lines.append("data: [DONE]")
    return lines


class FakeDuckChat:
    """ASGI app serving the upstream status and chat endpoints.

    Replies are taken from per-endpoint queues. With an empty status queue a
    fresh token is issued; with an empty chat queue a 500 is returned. Every
    request is recorded for inspection.
    """

    def __init__(self) -> None:
        self.app = FastAPI(title="FakeDuckChat")
        self._status_queue: Deque[StatusResponse] = deque()
        self._chat_queue: Deque[ChatResponse] = deque()
        self._token_counter = itertools.count(1)
        self.status_requests: list[dict[str, Any]] = []
        self.chat_requests: list[dict[str, Any]] = []
        self.app.get("/duckchat/v1/status")(self._handle_status)
        self.app.post("/duckchat/v1/chat")(self._handle_chat)

    # -------------------------------------------------------------------------
    # Queueing
    # -------------------------------------------------------------------------

    def enqueue_status(self, response: StatusResponse) -> None:
        self._status_queue.append(response)

    def enqueue_token(self, token: str) -> None:
        self.enqueue_status(StatusResponse(token=token))

    def enqueue_chat(self, response: ChatResponse) -> None:
        self._chat_queue.append(response)

    def enqueue_messages(
        self,
        messages: Iterable[Any],
        *,
        add_done: bool = True,
        chunk_size: Optional[int] = None,
    ) -> None:
        """Queue a successful chat reply streaming the given fragments."""
        self.enqueue_chat(
            ChatResponse(lines=message_lines(messages, add_done=add_done), chunk_size=chunk_size)
        )

    def enqueue_lines(self, lines: Iterable[str]) -> None:
        self.enqueue_chat(ChatResponse(lines=list(lines)))

    def enqueue_chat_error(self, status_code: int, body: str = "upstream error") -> None:
        self.enqueue_chat(ChatResponse(status_code=status_code, body=body.encode("utf-8")))

    def clear(self) -> None:
        self._status_queue.clear()
        self._chat_queue.clear()
        self.status_requests.clear()
        self.chat_requests.clear()

    # -------------------------------------------------------------------------
    # Request handling
    # -------------------------------------------------------------------------

    async def _handle_status(self, request: Request) -> Response:
        self.status_requests.append({"headers": dict(request.headers)})
        if self._status_queue:
            reply = self._status_queue.popleft()
        else:
            reply = StatusResponse(token=f"token-{next(self._token_counter)}")

        headers = {TOKEN_HEADER: reply.token} if reply.token is not None else {}
        return PlainTextResponse(reply.body, status_code=reply.status_code, headers=headers)

    async def _handle_chat(self, request: Request) -> Response:
        payload: Any = None
        try:
            payload = await request.json()
        except ValueError:
            payload = None
        self.chat_requests.append({"headers": dict(request.headers), "json": payload})

        if not self._chat_queue:
            return PlainTextResponse("no chat responses queued", status_code=500)

        reply = self._chat_queue.popleft()
        if reply.status_code >= 400:
            return Response(content=reply.encode(), status_code=reply.status_code)

        return StreamingResponse(
            self._iter_body(reply),
            status_code=reply.status_code,
            media_type="text/event-stream",
        )

    async def _iter_body(self, reply: ChatResponse):
        encoded = reply.encode()
        size = reply.chunk_size or len(encoded) or 1
        for offset in range(0, len(encoded), size):
            yield encoded[offset : offset + size]
            if reply.chunk_delay_s:
                await asyncio.sleep(reply.chunk_delay_s)
