"""Custom exception hierarchy for ProfMatch.

All application exceptions inherit from :class:`ProfMatchError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "chromadb", "httpx_fetcher") caused the
failure.

The hierarchy is organized by pipeline stage:

    ProfMatchError  (base -- catch-all for any ProfMatch error)
    +-- FetchError             (page download: bad URL, network, HTTP status)
    +-- ExtractionError        (missing / incomplete instructor fields)
    +-- EmbeddingError         (embedding service unavailable / invalid / rejected)
    +-- VectorIndexError       (index unavailable / invalid key / dimension mismatch)
    +-- GenerationError        (generation unavailable / stream interrupted)
    +-- IngestionFailedError   (ingestion pipeline wrapper: stage + cause)
    +-- ConfigurationError     (startup / missing config)

Every error answers two questions for the caller through the
``user_correctable`` and ``retryable`` properties: "was the input bad?"
and "is the system only temporarily unavailable?".  The API layer maps
those flags onto HTTP status codes; the CLI retry helper only retries
when ``retryable`` is true.
"""

from __future__ import annotations

from enum import Enum


class ProfMatchError(Exception):
    """Base exception for all ProfMatch errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  The ``__str__`` method prefixes the provider name in brackets
    for structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    @property
    def retryable(self) -> bool:
        """``True`` when re-running the same request may succeed later."""
        return False

    @property
    def user_correctable(self) -> bool:
        """``True`` when the failure was caused by the caller's input."""
        return False

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Stage 1: Fetching
# ---------------------------------------------------------------------------


class FetchErrorKind(str, Enum):  # noqa: UP042
    INVALID_URL = "INVALID_URL"
    NETWORK = "NETWORK"
    STATUS = "STATUS"


class FetchError(ProfMatchError):
    """Raised when a page cannot be downloaded or the URL is malformed."""

    def __init__(
        self,
        message: str = "Page fetch failed",
        kind: FetchErrorKind = FetchErrorKind.NETWORK,
        status_code: int | None = None,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind
        self._status_code = status_code

    @property
    def kind(self) -> FetchErrorKind:
        return self._kind

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def retryable(self) -> bool:
        if self._kind == FetchErrorKind.NETWORK:
            return True
        # 5xx and 429 are the server's problem; other statuses are not.
        return self._kind == FetchErrorKind.STATUS and (
            self._status_code is not None
            and (self._status_code >= 500 or self._status_code == 429)
        )

    @property
    def user_correctable(self) -> bool:
        if self._kind == FetchErrorKind.INVALID_URL:
            return True
        return self._kind == FetchErrorKind.STATUS and not self.retryable


# ---------------------------------------------------------------------------
# Stage 2: Extracting
# ---------------------------------------------------------------------------


class ExtractionErrorKind(str, Enum):  # noqa: UP042
    MISSING_FIELD = "MISSING_FIELD"
    INCOMPLETE = "INCOMPLETE"


class ExtractionError(ProfMatchError):
    """Raised when the instructor page lacks a required field.

    ``MISSING_FIELD`` means the page element a field is derived from does
    not exist at all; ``INCOMPLETE`` means the elements exist but one or
    more required values came out empty.
    """

    def __init__(
        self,
        message: str = "Instructor field extraction failed",
        kind: ExtractionErrorKind = ExtractionErrorKind.INCOMPLETE,
        missing_fields: list[str] | None = None,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind
        self._missing_fields = list(missing_fields or [])

    @classmethod
    def missing_field(cls, field: str) -> ExtractionError:
        return cls(
            message=f"Page has no source element for field '{field}'",
            kind=ExtractionErrorKind.MISSING_FIELD,
            missing_fields=[field],
        )

    @classmethod
    def incomplete(cls, fields: list[str]) -> ExtractionError:
        return cls(
            message=f"Extracted record is incomplete; empty fields: {', '.join(fields)}",
            kind=ExtractionErrorKind.INCOMPLETE,
            missing_fields=fields,
        )

    @property
    def kind(self) -> ExtractionErrorKind:
        return self._kind

    @property
    def field(self) -> str | None:
        return self._missing_fields[0] if self._missing_fields else None

    @property
    def missing_fields(self) -> list[str]:
        return list(self._missing_fields)

    @property
    def user_correctable(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Stage 3: Embedding
# ---------------------------------------------------------------------------


class EmbeddingErrorKind(str, Enum):  # noqa: UP042
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    REJECTED = "REJECTED"


class EmbeddingError(ProfMatchError):
    """Raised when an embedding vector cannot be produced.

    ``SERVICE_UNAVAILABLE`` (network, timeout, 5xx, rate limit) is the only
    retryable kind.  ``REJECTED`` is a provider-side validation failure
    such as input that is too long.  ``INVALID_RESPONSE`` means the
    provider answered but the vector is missing, empty, non-numeric or of
    the wrong length.
    """

    def __init__(
        self,
        message: str = "Embedding generation failed",
        kind: EmbeddingErrorKind = EmbeddingErrorKind.SERVICE_UNAVAILABLE,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind

    @property
    def kind(self) -> EmbeddingErrorKind:
        return self._kind

    @property
    def retryable(self) -> bool:
        return self._kind == EmbeddingErrorKind.SERVICE_UNAVAILABLE

    @property
    def user_correctable(self) -> bool:
        return self._kind == EmbeddingErrorKind.REJECTED


# ---------------------------------------------------------------------------
# Stage 4: Vector index
# ---------------------------------------------------------------------------


class VectorIndexErrorKind(str, Enum):  # noqa: UP042
    UNAVAILABLE = "UNAVAILABLE"
    INVALID_KEY = "INVALID_KEY"
    DIMENSION_MISMATCH = "DIMENSION_MISMATCH"


class VectorIndexError(ProfMatchError):
    """Raised when an upsert or similarity query against the index fails."""

    def __init__(
        self,
        message: str = "Vector index operation failed",
        kind: VectorIndexErrorKind = VectorIndexErrorKind.UNAVAILABLE,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind

    @property
    def kind(self) -> VectorIndexErrorKind:
        return self._kind

    @property
    def retryable(self) -> bool:
        return self._kind == VectorIndexErrorKind.UNAVAILABLE


# ---------------------------------------------------------------------------
# Answer generation
# ---------------------------------------------------------------------------


class GenerationErrorKind(str, Enum):  # noqa: UP042
    UNAVAILABLE = "UNAVAILABLE"
    INTERRUPTED = "INTERRUPTED"


class GenerationError(ProfMatchError):
    """Raised when the text-generation service fails.

    ``UNAVAILABLE`` is raised before any text was produced; ``INTERRUPTED``
    after at least one chunk reached the caller, which must keep what it
    already received and show an interruption notice.
    """

    def __init__(
        self,
        message: str = "Answer generation failed",
        kind: GenerationErrorKind = GenerationErrorKind.UNAVAILABLE,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
        self._kind = kind

    @property
    def kind(self) -> GenerationErrorKind:
        return self._kind

    @property
    def retryable(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Orchestration / configuration errors
# ---------------------------------------------------------------------------


class IngestionFailedError(ProfMatchError):
    """Raised by :meth:`IngestionPipeline.ingest` when a stage fails.

    Wraps the stage-level error (``cause``) and forwards its retry and
    user-correctable classification unchanged.
    """

    def __init__(self, stage: str, cause: ProfMatchError) -> None:
        super().__init__(
            message=f"Ingestion failed at {stage}: {cause.message}",
            provider_name=cause.provider_name,
        )
        self._stage = stage
        self._cause = cause

    @property
    def stage(self) -> str:
        return self._stage

    @property
    def cause(self) -> ProfMatchError:
        return self._cause

    @property
    def retryable(self) -> bool:
        return self._cause.retryable

    @property
    def user_correctable(self) -> bool:
        return self._cause.user_correctable


class ConfigurationError(ProfMatchError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
