"""Testing utilities for in-process gateway simulations."""

from .assertions import (
    assert_openai_chat_valid,
    assert_openai_chunks_valid,
    chunk_contents,
    parse_sse_frames,
)
from .fake_upstream import ChatResponse, FakeDuckChat, StatusResponse, message_lines

__all__ = [
    # Fake upstream
    "ChatResponse",
    "FakeDuckChat",
    "StatusResponse",
    "message_lines",
    # Assertions
    "assert_openai_chat_valid",
    "assert_openai_chunks_valid",
    "chunk_contents",
    "parse_sse_frames",
]
