"""duckproxy - OpenAI-compatible gateway for DuckDuckGo AI chat

Accepts OpenAI chat completions requests, flattens them into the single-turn
request the upstream accepts, and translates the upstream's event stream back
into OpenAI SSE chunks or a single completion object.

Example:
    >>> from duckproxy import create_app, load_settings
    >>> import uvicorn
    >>> uvicorn.run(create_app(load_settings()), host="0.0.0.0", port=8787)
"""

from .config_loader import Settings, load_settings
from .core import ChatRouter, ProxyError

__version__ = "0.1.0"


def create_app(settings=None):
    """Build the FastAPI app; see ``duckproxy.main.create_app``."""
    from .main import create_app as _create_app

    return _create_app(settings)


__all__ = [
    "ChatRouter",
    "ProxyError",
    "Settings",
    "create_app",
    "load_settings",
]
