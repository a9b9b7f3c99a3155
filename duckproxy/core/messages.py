"""Flattening of OpenAI chat messages into the upstream's single-turn prompt.

DuckDuckGo AI chat accepts exactly one "user" message per request and rejects
the "system" role, so the whole conversation is folded into one text blob of
``role:content;\\r\\n`` lines. This is specific to that upstream.
"""

import json
import logging
from typing import Any, Iterable, Mapping, Optional

from ..types import ChatMessage, UpstreamChatRequest
from .models import map_model

logger = logging.getLogger("duckproxy")

LINE_TEMPLATE = "{role}:{content};\r\n"
ROLE_REWRITES = {"system": "user"}


def normalize_role(role: Optional[str]) -> str:
    """Rewrite roles the upstream does not accept; pass everything else through."""
    role = role or ""
    return ROLE_REWRITES.get(role, role)


def resolve_content(content: Any) -> str:
    """Render a message's ``content`` value as plain text.

    - ``str``: used verbatim.
    - ``list``: the ``text`` of every part that is a mapping with a string
      ``text`` field, concatenated without a separator. Other parts are dropped.
    - anything else: its textual form. ``None`` renders as an empty string,
      booleans as ``true``/``false`` and mappings as compact JSON.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(_iter_part_texts(content))
    return _fallback_text(content)


def _iter_part_texts(parts: Iterable[Any]) -> Iterable[str]:
    for part in parts:
        if not isinstance(part, Mapping):
            continue
        text = part.get("text")
        if isinstance(text, str):
            yield text


def _fallback_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Mapping):
        try:
            return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError):
            logger.debug("Content mapping is not JSON-serializable, using str()")
    return str(value)


def flatten_messages(messages: Iterable[ChatMessage]) -> str:
    """Collapse a message sequence into one newline-delimited prompt.

    Messages keep their original order; none are dropped. An empty sequence
    yields an empty string.
    """
    lines = []
    for message in messages:
        lines.append(
            LINE_TEMPLATE.format(
                role=normalize_role(message.get("role")),
                content=resolve_content(message.get("content")),
            )
        )
    return "".join(lines)


def build_upstream_body(
    model_name: str, messages: Iterable[ChatMessage]
) -> UpstreamChatRequest:
    """Build the single-message request body the upstream chat endpoint expects."""
    return {
        "model": map_model(model_name),
        "messages": [{"role": "user", "content": flatten_messages(messages)}],
    }
