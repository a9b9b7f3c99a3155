"""Core translation pipeline."""

from .exceptions import (
    AuthenticationError,
    EventParseError,
    InvalidRequestError,
    ProxyError,
    TokenAcquisitionError,
    UpstreamCallError,
    UpstreamError,
)
from .messages import build_upstream_body, flatten_messages, resolve_content
from .models import DEFAULT_MODEL, SUPPORTED_MODELS, map_model
from .router import ChatRouter
from .translator import aggregate_completion, stream_chunks
from .upstream import acquire_token, invoke_chat

__all__ = [
    "AuthenticationError",
    "ChatRouter",
    "DEFAULT_MODEL",
    "EventParseError",
    "InvalidRequestError",
    "ProxyError",
    "SUPPORTED_MODELS",
    "TokenAcquisitionError",
    "UpstreamCallError",
    "UpstreamError",
    "acquire_token",
    "aggregate_completion",
    "build_upstream_body",
    "flatten_messages",
    "invoke_chat",
    "map_model",
    "resolve_content",
    "stream_chunks",
]
