"""Pydantic request/response schemas for the ProfMatch API.

Defines the public contract for the scrape, chat and health endpoints.
Request schemas end with ``Request``, response schemas with ``Response``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from profmatch.models.conversation import ConversationMessage
from profmatch.models.instructor import InstructorRecord


class ScrapeRequest(BaseModel):
    """URL of an instructor page to ingest."""

    url: str = Field(..., min_length=1, max_length=2048)


class ScrapeResponse(BaseModel):
    """Returned when the instructor was fetched, extracted, embedded and stored."""

    status: Literal["success"] = "success"
    key: str = Field(description="Index key the record was stored under.")
    namespace: str
    record: InstructorRecord


class ErrorResponse(BaseModel):
    """Standard error response body.

    ``stage`` is set for ingestion failures and names the pipeline stage
    that failed (``FETCHING``, ``EXTRACTING``, ``EMBEDDING``, ``UPSERTING``).
    """

    status: Literal["error"] = "error"
    error: str
    detail: str | None = None
    stage: str | None = None
    retryable: bool = False
    user_correctable: bool = False


class ChatRequest(BaseModel):
    """Conversation history, oldest first; the last user message is the question."""

    messages: list[ConversationMessage] = Field(..., min_length=1)


_MESSAGE_LIST = TypeAdapter(list[ConversationMessage])


def parse_chat_payload(payload: Any) -> ChatRequest:
    """Accept either a bare JSON array of messages or ``{"messages": [...]}``.

    Raises ``pydantic.ValidationError`` for anything else.
    """
    if isinstance(payload, list):
        return ChatRequest(messages=_MESSAGE_LIST.validate_python(payload))
    return ChatRequest.model_validate(payload)


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]
    index_entries: int | None = None
