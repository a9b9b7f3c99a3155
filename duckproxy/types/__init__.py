"""Type definitions for the proxy."""

from .chat import (
    AssistantMessage,
    ChatCompletionChunk,
    ChatCompletionResponse,
    ChatMessage,
    Choice,
    ContentPart,
    Delta,
    InboundChatRequest,
    UpstreamChatRequest,
    UpstreamEvent,
    UpstreamMessage,
    Usage,
)

__all__ = [
    "AssistantMessage",
    "ChatCompletionChunk",
    "ChatCompletionResponse",
    "ChatMessage",
    "Choice",
    "ContentPart",
    "Delta",
    "InboundChatRequest",
    "UpstreamChatRequest",
    "UpstreamEvent",
    "UpstreamMessage",
    "Usage",
]
