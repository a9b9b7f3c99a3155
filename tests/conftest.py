"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

from typing import Generator

import httpx
import pytest

from duckproxy.config_loader import Settings
from duckproxy.core.upstream_transport import (
    clear_upstream_transports,
    register_upstream_transport,
)
from duckproxy.testing import FakeDuckChat

UPSTREAM_BASE_URL = "http://ddg.local"


def build_settings(**overrides) -> Settings:
    """Settings pointed at the fake upstream, with retries off by default."""
    values = {
        "upstream_base_url": UPSTREAM_BASE_URL,
        "max_retry_count": 1,
        "retry_delay": 0.0,
        "token_timeout": 5.0,
        "chat_timeout": 5.0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def clear_transport_registry() -> Generator[None, None, None]:
    """Clear upstream transport registry after test."""
    yield
    clear_upstream_transports()


@pytest.fixture
def settings() -> Settings:
    return build_settings()


@pytest.fixture
def fake_upstream(clear_transport_registry: None) -> FakeDuckChat:
    """A FakeDuckChat wired in as the upstream for UPSTREAM_BASE_URL.

    Usage:
        def test_chat(fake_upstream):
            fake_upstream.enqueue_messages(["Hello"])
            # ... test code ...
    """
    upstream = FakeDuckChat()
    register_upstream_transport(UPSTREAM_BASE_URL, httpx.ASGITransport(app=upstream.app))
    return upstream


def register_failing_upstream(exc: Exception) -> list[httpx.Request]:
    """Make every upstream request raise ``exc``; returns the attempted requests."""
    attempted: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempted.append(request)
        raise exc

    register_upstream_transport(UPSTREAM_BASE_URL, httpx.MockTransport(handler))
    return attempted
