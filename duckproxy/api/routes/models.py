"""Models listing endpoint - OpenAI compatible."""

import logging

from ...core.models import SUPPORTED_MODELS

logger = logging.getLogger("duckproxy")


async def list_models() -> dict:
    """List the short model names clients may request.

    GET /v1/models
    """
    logger.info("Received models list request")
    return {
        "object": "list",
        "data": [
            {"id": model_name, "object": "model", "owned_by": "ddg"}
            for model_name in SUPPORTED_MODELS
        ],
    }
