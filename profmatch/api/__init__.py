"""ProfMatch API layer - routes, schemas, and middleware."""

from profmatch.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from profmatch.api.routes import router
from profmatch.api.schemas import (
    ChatRequest,
    ErrorResponse,
    HealthResponse,
    ScrapeRequest,
    ScrapeResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ChatRequest",
    "ErrorResponse",
    "HealthResponse",
    "ScrapeRequest",
    "ScrapeResponse",
]
