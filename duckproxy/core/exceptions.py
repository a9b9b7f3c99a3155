"""Core exceptions for the proxy."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for proxy errors.

    Subclasses set the HTTP status and the OpenAI-style error ``type``/``code``
    used when the error is rendered to the client.
    """

    status_code = 500
    error_type = "api_error"
    code = "internal_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def client_message(self) -> str:
        """Message safe to return to the caller."""
        return self.message

    def to_payload(self) -> dict:
        return {
            "error": {
                "message": self.client_message(),
                "type": self.error_type,
                "code": self.code,
            }
        }


class InvalidRequestError(ProxyError):
    """Raised when an incoming request body cannot be decoded."""

    status_code = 400
    error_type = "invalid_request_error"

    def __init__(self, message: str, code: str = "invalid_request") -> None:
        super().__init__(message)
        self.code = code


class AuthenticationError(ProxyError):
    """Raised when the inbound API key is missing, malformed or wrong."""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str, code: str = "invalid_api_key") -> None:
        super().__init__(message)
        self.code = code


# =============================================================================
# Upstream failures
# =============================================================================


class UpstreamError(ProxyError):
    """Base class for failures talking to the upstream.

    The client only ever sees ``generic_message``; the upstream detail stays
    in ``message`` for the logs.
    """

    generic_message = "Upstream request failed"
    code = "upstream_error"
    retryable = False

    def client_message(self) -> str:
        return self.generic_message


class UpstreamStatusMixin:
    """Carries a non-2xx upstream status and body for diagnostics."""

    RETRYABLE_STATUSES = {408, 409, 429, 500, 502, 503, 504}

    def _init_status(self, status_code: int, body: str) -> None:
        self.upstream_status = status_code
        self.upstream_body = body
        self.retryable = status_code in self.RETRYABLE_STATUSES


class TokenAcquisitionError(UpstreamError):
    """Any failure of the status handshake that issues the session token."""

    generic_message = "Failed to acquire upstream token"
    code = "token_acquisition_failed"


class TokenTransportError(TokenAcquisitionError):
    """The status request could not be sent or timed out."""

    retryable = True


class TokenStatusError(UpstreamStatusMixin, TokenAcquisitionError):
    """The status endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"status endpoint returned {status_code}: {body}")
        self._init_status(status_code, body)


class TokenMissingError(TokenAcquisitionError):
    """The status endpoint answered 2xx without the token header."""
    pass


class UpstreamCallError(UpstreamError):
    """Any failure building or sending the upstream chat request."""

    code = "upstream_call_failed"


class UpstreamSerializationError(UpstreamCallError):
    """The translated body could not be serialised to JSON."""
    pass


class UpstreamTransportError(UpstreamCallError):
    """The chat request could not be sent or timed out."""

    retryable = True


class UpstreamStatusError(UpstreamStatusMixin, UpstreamCallError):
    """The chat endpoint answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"chat endpoint returned {status_code}: {body}")
        self._init_status(status_code, body)


# =============================================================================
# Translation-loop failures (never surfaced to the client)
# =============================================================================


class EventParseError(ProxyError):
    """A single upstream event line could not be decoded."""

    def __init__(self, message: str, line: Optional[str] = None) -> None:
        super().__init__(message)
        self.line = line
