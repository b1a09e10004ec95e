"""FastAPI routes for ProfMatch.

Endpoint                 Method  Description
─────────────────────────────────────────────────────────────────────
/api/v1/scrape           POST    Ingest one instructor page
/api/v1/chat             POST    Stream an answer for a conversation
/api/v1/health           GET     Health check + provider status

Services are resolved from ``app.state`` (populated from ``container.build_components``)
through ``Depends`` with ``Annotated`` aliases, so tests can swap them by
replacing attributes on ``app.state``.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, AsyncIterator

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from profmatch import __version__
from profmatch.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ScrapeRequest,
    ScrapeResponse,
    parse_chat_payload,
)
from profmatch.models.conversation import Conversation
from profmatch.services.index_gateway import VectorIndexGateway
from profmatch.services.ingestion_service import IngestionPipeline
from profmatch.services.retrieval_service import RetrievalPipeline
from profmatch.utils.errors import GenerationError, ProfMatchError

logger = structlog.get_logger(logger_name=__name__)

router = APIRouter(prefix="/api/v1")

INTERRUPTION_NOTICE = "\n\n[Generation interrupted: {reason}]"


# ---------------------------------------------------------------------------
# Dependency injection helpers - resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_ingestion_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.ingestion_pipeline


def _get_retrieval_pipeline(request: Request) -> RetrievalPipeline:
    return request.app.state.retrieval_pipeline


def _get_index_gateway(request: Request) -> VectorIndexGateway:
    return request.app.state.index_gateway


IngestionDep = Annotated[IngestionPipeline, Depends(_get_ingestion_pipeline)]
RetrievalDep = Annotated[RetrievalPipeline, Depends(_get_retrieval_pipeline)]
IndexGatewayDep = Annotated[VectorIndexGateway, Depends(_get_index_gateway)]


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


@router.post(
    "/scrape",
    response_model=ScrapeResponse,
    responses={422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Fetch an instructor page and add it to the index",
)
async def scrape(body: ScrapeRequest, pipeline: IngestionDep, gateway: IndexGatewayDep) -> ScrapeResponse:
    """Run the ingestion pipeline for ``body.url``.

    Failures raise :class:`IngestionFailedError`, which the error middleware
    turns into 422 / 503 / 502 depending on its flags.
    """
    record = await pipeline.ingest(body.url)
    return ScrapeResponse(key=record.name, namespace=gateway.namespace, record=record)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


async def _relay(first: str | None, chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    """Forward answer chunks to the client, ending with a notice on failure."""
    delivered = 0
    try:
        if first:
            delivered += len(first)
            yield first
        async for chunk in chunks:
            if chunk:
                delivered += len(chunk)
                yield chunk
    except GenerationError as exc:
        logger.warning("chat_stream_interrupted", kind=exc.kind.value, delivered_chars=delivered)
        yield INTERRUPTION_NOTICE.format(reason=exc.message)
        return
    logger.info("chat_stream_complete", delivered_chars=delivered)


@router.post(
    "/chat",
    response_class=StreamingResponse,
    responses={422: {"model": ErrorResponse}, 502: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    summary="Answer the newest user message, streamed as plain text",
)
async def chat(request: Request, retrieval: RetrievalDep) -> Any:
    """Stream the assistant's reply.

    The body is either a JSON array of messages or ``{"messages": [...]}``.
    Retrieval and the first generation chunk are awaited before the
    response starts, so those failures still get a JSON error status.
    A failure after that ends the text with an interruption notice.
    """
    try:
        payload = parse_chat_payload(await request.json())
    except (json.JSONDecodeError, ValidationError) as exc:
        body = ErrorResponse(
            error="RequestValidationError",
            detail=str(exc),
            user_correctable=True,
        )
        return JSONResponse(status_code=422, content=body.model_dump())

    conversation = Conversation(payload.messages)
    chunks = await retrieval.answer(conversation)

    first: str | None
    try:
        first = await chunks.__anext__()
    except StopAsyncIteration:
        first = None

    return StreamingResponse(_relay(first, chunks), media_type="text/plain; charset=utf-8")


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, provider availability and index size."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    index_entries: int | None = None
    gateway = getattr(request.app.state, "index_gateway", None)
    if gateway is not None:
        try:
            index_entries = (await gateway.stats()).total_entries
            providers["index"] = True
        except ProfMatchError as exc:
            logger.warning("health_index_unavailable", error=str(exc))
            providers["index"] = False

    critical_ok = bool(providers.get("llm")) and bool(providers.get("embedding"))
    if critical_ok and providers.get("index", False):
        status = "healthy"
    elif critical_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=__version__,
        providers=providers,
        index_entries=index_entries,
    )
