"""API routes for the proxy."""

from .chat import chat_completions, parse_chat_request
from .health import ping, root
from .models import list_models

__all__ = [
    "chat_completions",
    "list_models",
    "parse_chat_request",
    "ping",
    "root",
]
