"""FastAPI application for the duckproxy gateway."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import chat_completions, list_models, ping, root
from .auth import ApiKeyValidator
from .config_loader import Settings, load_settings
from .core import ChatRouter, ProxyError, UpstreamError
from .logging import setup_logging

logger = logging.getLogger("duckproxy")


async def handle_proxy_error(request: Request, exc: ProxyError) -> JSONResponse:
    """Render a ProxyError as an OpenAI-style error object."""
    if isinstance(exc, UpstreamError):
        logger.error("Upstream failure on %s: %s", request.url.path, exc.message)
    else:
        logger.warning("Request to %s rejected: %s", request.url.path, exc.message)
    return JSONResponse(exc.to_payload(), status_code=exc.status_code)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the gateway application around an immutable ``Settings`` value.

    Args:
        settings: Configuration to serve with. Loaded from the config file
            and environment when omitted.

    Returns:
        The configured FastAPI application.
    """
    if settings is None:
        settings = load_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("duckproxy starting on %s:%s", settings.host, settings.port)
        logger.info("Upstream: %s", settings.upstream_base_url)
        if settings.api_key:
            logger.info("API key authentication enabled")
        yield
        logger.info("duckproxy shutting down")

    app = FastAPI(title="duckproxy", lifespan=lifespan)
    app.state.settings = settings
    app.state.router = ChatRouter(settings)
    app.state.api_key_validator = ApiKeyValidator(settings.api_key)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ProxyError, handle_proxy_error)

    prefix = settings.api_prefix
    app.get("/")(root)
    app.get("/ping")(ping)
    app.get(f"{prefix}/v1/models")(list_models)
    app.post(f"{prefix}/v1/chat/completions")(chat_completions)

    logger.info("Routes mounted under prefix %r", prefix or "/")
    return app


app = create_app()

__all__ = ["app", "create_app"]
