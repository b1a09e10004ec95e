"""ProfMatch FastAPI application entry point.

Wires providers, services and routes together.  Loads configuration from
``.env`` and ``config/config.yaml`` and configures structured logging.

Run with ``python -m profmatch.main`` or ``uvicorn profmatch.main:app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from profmatch import __version__
from profmatch.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    validation_error_handler,
)
from profmatch.api.routes import router as api_router
from profmatch.config.loader import load_config
from profmatch.config.settings import Settings
from profmatch.container import build_components, check_providers
from profmatch.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build all providers and services on startup, clean up on shutdown."""
    config = load_config(settings=settings)
    components = build_components(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    registry = await check_providers(components)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        llm=registry["llm_name"],
        llm_reachable=registry["llm"],
        embedding=registry["embedding_name"],
        embedding_reachable=registry["embedding"],
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="ProfMatch API",
        version=__version__,
        description=(
            "Submit instructor rating pages to build a searchable index, then "
            "ask questions and get streamed, ranked instructor recommendations."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)
    application.add_exception_handler(RequestValidationError, validation_error_handler)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "profmatch.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
