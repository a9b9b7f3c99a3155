"""Bearer-token gate for inbound chat requests."""

from __future__ import annotations

import hmac
import logging

from fastapi import Request

from ..core.exceptions import AuthenticationError

logger = logging.getLogger("duckproxy")

BEARER_PREFIX = "Bearer "


class ApiKeyValidator:
    """Checks the ``Authorization: Bearer <key>`` header against one key.

    An empty configured key disables the check.
    """

    def __init__(self, api_key: str) -> None:
        self._api_key = api_key or ""

    def is_enabled(self) -> bool:
        return bool(self._api_key)

    def validate_header(self, authorization: str | None) -> None:
        """Validate a raw Authorization header value.

        Raises:
            AuthenticationError: missing header, missing "Bearer " prefix,
                or wrong key.
        """
        if not self.is_enabled():
            return

        if not authorization:
            logger.warning("Request rejected: missing API key")
            raise AuthenticationError("API key required", code="missing_api_key")

        if not authorization.startswith(BEARER_PREFIX):
            logger.warning("Request rejected: malformed Authorization header")
            raise AuthenticationError("Malformed API key", code="malformed_api_key")

        provided = authorization[len(BEARER_PREFIX):]
        # Constant-time comparison so the key cannot be probed by timing
        if not hmac.compare_digest(provided.encode("utf-8"), self._api_key.encode("utf-8")):
            logger.warning("Request rejected: invalid API key")
            raise AuthenticationError("Invalid API key", code="invalid_api_key")

    def validate_request(self, request: Request) -> None:
        self.validate_header(request.headers.get("Authorization"))
