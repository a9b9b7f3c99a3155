"""Decoding of the upstream's line-oriented event body and SSE frame encoding.

The upstream body is consumed in independent stages so each can be tested on
its own: raw lines -> decoded events -> message fragments.
"""

import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Optional

from ..types import UpstreamEvent
from .exceptions import EventParseError

logger = logging.getLogger("duckproxy")

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class _Done:
    """Marker returned by ``parse_event_line`` for the terminator line."""

    def __repr__(self) -> str:
        return "DONE"


DONE = _Done()


def parse_event_line(line: str) -> Optional[Any]:
    """Decode one upstream line.

    Returns:
        ``None`` for lines without the data prefix, ``DONE`` for the
        terminator, otherwise the decoded JSON object.

    Raises:
        EventParseError: the payload is not valid JSON or not an object.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return DONE
    try:
        event = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise EventParseError(f"invalid JSON in event line: {exc}", line=line) from exc
    if not isinstance(event, dict):
        raise EventParseError(
            f"event payload is {type(event).__name__}, expected object", line=line
        )
    return event


def extract_message(event: UpstreamEvent) -> Optional[str]:
    """Return the event's text fragment, or None when it carries none."""
    message = event.get("message")
    if isinstance(message, str):
        return message
    if message is None:
        logger.debug("Event has no message: keys=%s", sorted(event))
    else:
        logger.debug("Event message is %s, not a string", type(message).__name__)
    return None


async def iter_upstream_messages(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Yield message fragments in arrival order.

    Malformed lines are logged and skipped; the loop stops at the ``[DONE]``
    terminator or at end of input. Read errors from ``lines`` propagate.
    """
    async for line in lines:
        try:
            event = parse_event_line(line)
        except EventParseError as exc:
            logger.warning("Skipping upstream line: %s", exc.message)
            continue
        if event is None:
            continue
        if event is DONE:
            logger.debug("Upstream sent the terminator")
            return
        message = extract_message(event)
        if message is not None:
            yield message


def encode_sse_frame(payload: Any) -> str:
    """Serialize one object as an SSE ``data:`` frame."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"
