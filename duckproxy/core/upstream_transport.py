"""Per-host HTTPX transports and client construction for upstream calls.

Tests register an ``httpx.ASGITransport`` for the upstream host so the
gateway talks to an in-process fake instead of the network.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlparse

import httpx

logger = logging.getLogger("duckproxy")

_TRANSPORTS: dict[str, httpx.AsyncBaseTransport] = {}


def _host_of(url: str) -> str:
    return urlparse(url).netloc.strip().lower()


def register_upstream_transport(url: str, transport: httpx.AsyncBaseTransport) -> None:
    """Route every request to the host of ``url`` through ``transport``."""
    host = _host_of(url)
    if not host:
        raise ValueError(f"cannot extract host from {url!r}")
    _TRANSPORTS[host] = transport
    logger.debug("Registered upstream transport for host '%s'", host)


def clear_upstream_transports() -> None:
    """Clear all registered transports (useful for tests)."""
    _TRANSPORTS.clear()


def get_upstream_transport(url: str) -> Optional[httpx.AsyncBaseTransport]:
    """Return a registered transport for the URL's host (if any)."""
    if not url:
        return None
    return _TRANSPORTS.get(_host_of(url))


def build_upstream_client(base_url: str, timeout: float) -> httpx.AsyncClient:
    """Create the per-request client used for the token and chat calls.

    The caller owns the client and must ``aclose()`` it.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        transport=get_upstream_transport(base_url),
        follow_redirects=True,
    )
