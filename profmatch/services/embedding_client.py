"""Embedding Client: one validated vector per record or question.

Both pipelines embed through this class.  It serializes the input to a
single text blob, calls the configured :class:`IEmbeddingProvider` under a
per-call timeout, and checks the response before anyone else sees it.  A
provider that answers with ``None``, an empty list, strings, booleans,
NaN or a vector of the wrong length produces
``EmbeddingError(INVALID_RESPONSE)``; nothing downstream ever receives a
malformed vector.
"""

from __future__ import annotations

import hashlib
import math
from numbers import Real
from typing import Any

from profmatch.interfaces.cache_provider import ICacheProvider
from profmatch.interfaces.embedding_provider import IEmbeddingProvider
from profmatch.models.instructor import EmbeddingVector, InstructorRecord
from profmatch.utils.concurrency import call_with_timeout
from profmatch.utils.errors import EmbeddingError, EmbeddingErrorKind
from profmatch.utils.logging import get_logger

_CACHE_PREFIX = "embedding:"


class EmbeddingClient:
    """Validate and optionally cache embeddings from one provider.

    Parameters
    ----------
    provider:
        Backend that turns text into a raw vector payload.
    expected_dimension:
        When set, every vector must have exactly this many components.
    cache:
        Optional content-hash cache.  A hit returns the stored vector
        without calling the provider; misses are stored after validation.
    timeout:
        Per-call timeout in seconds; ``None`` or ``0`` disables it.
    """

    def __init__(
        self,
        provider: IEmbeddingProvider,
        expected_dimension: int | None = None,
        cache: ICacheProvider | None = None,
        timeout: float | None = 15.0,
    ) -> None:
        self._provider = provider
        self._expected_dimension = expected_dimension
        self._cache = cache
        self._timeout = timeout
        self._logger = get_logger(__name__)

    @property
    def expected_dimension(self) -> int | None:
        return self._expected_dimension

    @property
    def provider_name(self) -> str:
        return self._provider.get_provider_name()

    # -- Public API ----------------------------------------------------------

    async def embed_record(self, record: InstructorRecord) -> EmbeddingVector:
        """Embed the deterministic JSON serialization of *record*."""
        return await self.embed(record.to_embedding_text())

    async def embed_question(self, question: str) -> EmbeddingVector:
        """Embed a user question; blank questions are rejected locally."""
        text = (question or "").strip()
        if not text:
            raise EmbeddingError(
                message="Question is empty",
                kind=EmbeddingErrorKind.REJECTED,
                provider_name=self.provider_name,
            )
        return await self.embed(text)

    async def embed(self, text: str) -> EmbeddingVector:
        if not text:
            raise EmbeddingError(
                message="Cannot embed empty text",
                kind=EmbeddingErrorKind.REJECTED,
                provider_name=self.provider_name,
            )

        cache_key = self._cache_key(text) if self._cache is not None else None
        if cache_key is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                self._logger.debug("embedding_cache_hit", provider=self.provider_name)
                return EmbeddingVector(values=cached)

        provider_name = self.provider_name
        payload = await call_with_timeout(
            self._provider.embed_single(text),
            self._timeout,
            on_timeout=lambda t: EmbeddingError(
                message=f"Embedding request timed out after {t}s",
                kind=EmbeddingErrorKind.SERVICE_UNAVAILABLE,
                provider_name=provider_name,
            ),
            operation="embed",
        )
        vector = self._validate(payload)

        if cache_key is not None:
            await self._cache.set(cache_key, list(vector.values))

        self._logger.info(
            "embedding_generated",
            provider=provider_name,
            dimension=vector.dimension,
            text_length=len(text),
        )
        return vector

    # -- Internals -----------------------------------------------------------

    def _validate(self, payload: Any) -> EmbeddingVector:
        if payload is None or isinstance(payload, (str, bytes)):
            raise self._invalid("embedding response is missing or not a sequence")
        try:
            values = list(payload)
        except TypeError as exc:
            raise self._invalid("embedding response is not a sequence") from exc

        if not values:
            raise self._invalid("embedding vector is empty")
        for value in values:
            # bool is a Real subclass but never a legitimate component.
            if isinstance(value, bool) or not isinstance(value, Real):
                raise self._invalid(f"embedding vector has non-numeric component {value!r}")
            if not math.isfinite(value):
                raise self._invalid("embedding vector has non-finite component")

        if self._expected_dimension is not None and len(values) != self._expected_dimension:
            raise self._invalid(
                f"embedding has {len(values)} dimensions, expected {self._expected_dimension}"
            )
        return EmbeddingVector(values=[float(v) for v in values])

    def _invalid(self, message: str) -> EmbeddingError:
        self._logger.warning("embedding_invalid_response", provider=self.provider_name, reason=message)
        return EmbeddingError(
            message=message,
            kind=EmbeddingErrorKind.INVALID_RESPONSE,
            provider_name=self.provider_name,
        )

    def _cache_key(self, text: str) -> str:
        digest = hashlib.sha256(f"{self.provider_name}\x00{text}".encode("utf-8")).hexdigest()
        return f"{_CACHE_PREFIX}{digest}"
