"""API middleware: CORS, request logging, and error handling.

Starlette middleware is a stack (last added, first executed).  ``main.py``
adds ErrorHandlingMiddleware first and RequestLoggingMiddleware second, so
requests flow::

    Client → RequestLogging → ErrorHandling → route handler

and the logging middleware sees the final status code even when the error
middleware replaced an exception with a JSON body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from profmatch.api.schemas import ErrorResponse
from profmatch.utils.errors import IngestionFailedError, ProfMatchError
from profmatch.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Add CORS middleware; all origins are allowed unless *allowed_origins* is given."""
    origins = allowed_origins or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def status_for_error(exc: ProfMatchError) -> int:
    """Pick the HTTP status from the error's flags.

    422 when the caller can fix the input, 503 when the failure is
    transient, 502 for any other upstream failure.
    """
    if exc.user_correctable:
        return 422
    if exc.retryable:
        return 503
    return 502


def error_response(exc: ProfMatchError) -> JSONResponse:
    """Build the sanitized JSON error for *exc*."""
    cause = exc.cause if isinstance(exc, IngestionFailedError) else exc
    body = ErrorResponse(
        error=type(cause).__name__,
        detail=cause.message,
        stage=exc.stage if isinstance(exc, IngestionFailedError) else None,
        retryable=exc.retryable,
        user_correctable=exc.user_correctable,
    )
    return JSONResponse(status_code=status_for_error(exc), content=body.model_dump())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return request-body validation failures in the :class:`ErrorResponse` shape."""
    _logger.info("request_validation_failed", path=str(request.url.path), errors=len(exc.errors()))
    body = ErrorResponse(
        error="RequestValidationError",
        detail="; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        ),
        user_correctable=True,
    )
    return JSONResponse(status_code=422, content=body.model_dump())


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Convert ``ProfMatchError`` subclasses into structured JSON errors.

    The client sees the error type, message and retry flags.  Provider
    names and stack traces stay in the server log.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except ProfMatchError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                retryable=exc.retryable,
                user_correctable=exc.user_correctable,
                path=str(request.url.path),
            )
            return error_response(exc)
