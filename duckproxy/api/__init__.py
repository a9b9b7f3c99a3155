"""API module for the proxy."""

from .routes import chat_completions, list_models, parse_chat_request, ping, root

__all__ = [
    "chat_completions",
    "list_models",
    "parse_chat_request",
    "ping",
    "root",
]
