"""Types for the chat payloads that pass through the gateway.

This module defines type schemas for both sides of the translation:
- OpenAI-compatible types: What clients send and what we send back
- Upstream types: The single-message request and event lines of DuckDuckGo AI chat
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# OpenAI-Compatible Types
# =============================================================================


class ContentPart(TypedDict, total=False):
    """A content part for multi-part messages (OpenAI format).

    Only the ``text`` field is used when flattening; image and audio parts
    are dropped.

    Attributes:
        type: Type of content part, e.g. "text" or "image_url".
        text: Text content (for "text" type).
    """
    type: str
    text: str | None


class ChatMessage(TypedDict, total=False):
    """A message in an inbound chat conversation (OpenAI format).

    Attributes:
        role: Role of the message sender; any string or null passes.
        content: Text content of the message. Can be:
            - A string (simple text messages)
            - An array of ContentPart for multi-part inputs
            - Anything else, rendered as text when flattened
    """
    role: str | None
    content: str | list[ContentPart] | Any


class InboundChatRequest(TypedDict, total=False):
    """The subset of an OpenAI chat completions request the gateway reads."""
    model: str
    messages: list[ChatMessage]
    stream: bool


class Delta(TypedDict, total=False):
    """A streamed delta carrying one upstream text fragment."""
    content: str


class AssistantMessage(TypedDict):
    """The full assistant reply of a non-streaming completion."""
    role: str
    content: str


class Choice(TypedDict, total=False):
    """A choice in a chat completion response (OpenAI format).

    Attributes:
        index: Always 0; the upstream produces a single choice.
        delta: The incremental content for streaming responses.
        message: The complete message for non-streaming responses.
        finish_reason: None while streaming, "stop" on aggregated completions.
    """
    index: int
    delta: Delta
    message: AssistantMessage
    finish_reason: str | None


class Usage(TypedDict):
    """Token usage information. The upstream reports none, so all zero."""
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionChunk(TypedDict):
    """A streamed chunk of a chat completion response (OpenAI format)."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]


class ChatCompletionResponse(TypedDict):
    """A complete (non-streaming) chat completion response (OpenAI format)."""
    id: str
    object: str
    created: int
    model: str
    usage: Usage
    choices: list[Choice]


# =============================================================================
# Upstream Types
# =============================================================================


class UpstreamMessage(TypedDict):
    role: str
    content: str


class UpstreamChatRequest(TypedDict):
    """Body of the POST to the upstream chat endpoint.

    The upstream only accepts a single-message conversation, so ``messages``
    always holds exactly one "user" message with the flattened text.
    """
    model: str
    messages: list[UpstreamMessage]


class UpstreamEvent(TypedDict, total=False):
    """Decoded payload of one ``data:`` line from the upstream body.

    Attributes:
        message: Text fragment of the reply. May be missing or null on
            bookkeeping events.
        role: Role reported by the upstream, usually "assistant".
        model: Upstream model name.
        created: Unix timestamp of the event.
        action: Event action, usually "success".
    """
    message: str | None
    role: str
    model: str
    created: int
    action: str
