"""OpenAI-compatible chat completions endpoint."""

import json
import logging
from typing import Any, Mapping

from fastapi import Request, Response

from ...core.exceptions import InvalidRequestError
from ...types import InboundChatRequest

logger = logging.getLogger("duckproxy")


def parse_chat_request(body: bytes) -> InboundChatRequest:
    """Decode and shape-check an inbound chat completions body.

    Only the fields the gateway reads are checked. ``messages`` may be
    empty, but every item must be an object whose ``role`` is a string or
    null.

    Raises:
        InvalidRequestError: invalid JSON or a field of the wrong type.
    """
    try:
        payload: Any = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidRequestError(f"Invalid JSON payload: {exc}", code="invalid_json") from exc

    if not isinstance(payload, Mapping):
        raise InvalidRequestError(
            "Request body must be a JSON object", code="invalid_json_shape"
        )

    model = payload.get("model", "")
    if model is None:
        model = ""
    if not isinstance(model, str):
        raise InvalidRequestError("'model' must be a string", code="invalid_parameter")

    messages = payload.get("messages", [])
    if messages is None:
        messages = []
    if not isinstance(messages, list):
        raise InvalidRequestError("'messages' must be an array", code="invalid_parameter")
    for index, message in enumerate(messages):
        if not isinstance(message, Mapping):
            raise InvalidRequestError(
                f"'messages[{index}]' must be an object", code="invalid_parameter"
            )
        role = message.get("role")
        if role is not None and not isinstance(role, str):
            raise InvalidRequestError(
                f"'messages[{index}].role' must be a string", code="invalid_parameter"
            )

    stream = payload.get("stream", False)
    if stream is None:
        stream = False
    if not isinstance(stream, bool):
        raise InvalidRequestError("'stream' must be a boolean", code="invalid_parameter")

    return {"model": model, "messages": messages, "stream": stream}


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions
    """
    logger.info("Received chat completions request")
    request.app.state.api_key_validator.validate_request(request)

    body = await request.body()
    try:
        payload = parse_chat_request(body)
    except InvalidRequestError as exc:
        logger.error("Rejected chat request: %s", exc.message)
        raise

    router = request.app.state.router
    return await router.forward_request(payload)
