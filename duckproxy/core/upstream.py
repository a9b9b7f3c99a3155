"""Calls to the DuckDuckGo AI chat upstream: token handshake and chat request."""

import asyncio
import json
import logging
from typing import Any, Mapping

import httpx

from ..config_loader import Settings
from ..types import UpstreamChatRequest
from .exceptions import (
    TokenMissingError,
    TokenStatusError,
    TokenTransportError,
    UpstreamSerializationError,
    UpstreamStatusError,
    UpstreamTransportError,
)

logger = logging.getLogger("duckproxy")

TOKEN_HEADER = "x-vqd-4"
TOKEN_ACCEPT_HEADER = "x-vqd-accept"

# Cap on how much of an error body is kept for diagnostics
ERROR_BODY_LIMIT = 2048


def build_upstream_headers(settings: Settings, **extra: str) -> dict[str, str]:
    """Copy the impersonation headers and add per-call headers on top."""
    headers = dict(settings.headers)
    headers.update(extra)
    return headers


def format_httpx_error(exc: Exception, url: str, timeout: float) -> str:
    """Produce a detailed description of a transport error for the logs."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)
    parts.append(f"url={url}")
    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        parts.append(f"timeout={timeout}s")
    return "; ".join(parts)


def _truncate(text: str) -> str:
    if len(text) <= ERROR_BODY_LIMIT:
        return text
    return text[:ERROR_BODY_LIMIT] + "...(truncated)"


async def acquire_token(client: httpx.AsyncClient, settings: Settings) -> str:
    """Fetch a fresh session token from the upstream status endpoint.

    The token is single use: each chat call needs its own handshake.

    Raises:
        TokenTransportError: connection failure or ``token_timeout`` exceeded.
        TokenStatusError: non-2xx status; carries the status and body.
        TokenMissingError: 2xx response without the token header.
    """
    url = settings.status_url
    headers = build_upstream_headers(settings, **{TOKEN_ACCEPT_HEADER: "1"})

    logger.info("Requesting upstream token")
    try:
        resp = await asyncio.wait_for(
            client.get(url, headers=headers, timeout=settings.token_timeout),
            timeout=settings.token_timeout,
        )
    except (httpx.HTTPError, asyncio.TimeoutError) as exc:
        detail = format_httpx_error(exc, url, settings.token_timeout)
        logger.error("Token request failed: %s", detail)
        raise TokenTransportError(f"token request failed: {detail}") from exc

    if not resp.is_success:
        body = _truncate(resp.text)
        logger.error("Token request returned %d: %s", resp.status_code, body)
        raise TokenStatusError(resp.status_code, body)

    token = resp.headers.get(TOKEN_HEADER)
    if not token:
        logger.error("Token response is missing the %s header", TOKEN_HEADER)
        raise TokenMissingError(f"response did not include the {TOKEN_HEADER} header")

    logger.debug("Upstream token acquired")
    return token


def serialize_body(body: Mapping[str, Any]) -> bytes:
    """Encode the upstream body, mapping encoder failures to a proxy error."""
    try:
        return json.dumps(body, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise UpstreamSerializationError(f"failed to serialize request body: {exc}") from exc


async def invoke_chat(
    client: httpx.AsyncClient,
    settings: Settings,
    body: UpstreamChatRequest,
    token: str,
) -> httpx.Response:
    """Send the chat request and return the live, still-unread response.

    The caller owns the returned response and must ``aclose()`` it. Sending
    and receiving the response head is bounded by ``chat_timeout``; the same
    value bounds each read of the body afterwards.

    Raises:
        UpstreamSerializationError: ``body`` is not JSON-serializable.
        UpstreamTransportError: connection failure or timeout.
        UpstreamStatusError: non-2xx status; the response is already closed.
    """
    url = settings.chat_url
    content = serialize_body(body)
    headers = build_upstream_headers(
        settings,
        **{TOKEN_HEADER: token, "Content-Type": "application/json"},
    )

    logger.debug("Sending chat request to %s (%d bytes)", url, len(content))
    try:
        request = client.build_request(
            "POST", url, headers=headers, content=content, timeout=settings.chat_timeout
        )
        resp = await asyncio.wait_for(
            client.send(request, stream=True), timeout=settings.chat_timeout
        )
    except (httpx.HTTPError, asyncio.TimeoutError) as exc:
        detail = format_httpx_error(exc, url, settings.chat_timeout)
        logger.error("Chat request failed: %s", detail)
        raise UpstreamTransportError(f"chat request failed: {detail}") from exc

    if not resp.is_success:
        try:
            raw = await resp.aread()
        except httpx.HTTPError:
            raw = b""
        finally:
            await resp.aclose()
        body_text = _truncate(raw.decode("utf-8", errors="replace"))
        logger.error("Chat request returned %d: %s", resp.status_code, body_text)
        raise UpstreamStatusError(resp.status_code, body_text)

    logger.debug("Chat response received: status=%d", resp.status_code)
    return resp
