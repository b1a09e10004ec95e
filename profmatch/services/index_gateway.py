"""Vector Index Gateway: the instructor-shaped view of the vector index.

The gateway is the only code that talks to an :class:`IVectorIndexProvider`.
It owns:

* keying: an instructor is stored under its name, so re-ingesting the same
  instructor overwrites the previous entry (last write wins);
* the metadata schema, a flat dict of strings that every vector store can
  hold, converted to and from :class:`InstructorRecord`;
* the dimension check on every upsert and query;
* result ordering: descending similarity, ties broken by ascending key.
"""

from __future__ import annotations

import json
import unicodedata
from typing import Any

from pydantic import ValidationError

from profmatch.interfaces.vector_index_provider import IndexMatch, IVectorIndexProvider
from profmatch.models.instructor import (
    CorpusStats,
    EmbeddingVector,
    IndexEntry,
    InstructorRecord,
    RetrievalResult,
    ScoredInstructor,
)
from profmatch.utils.concurrency import call_with_timeout
from profmatch.utils.errors import VectorIndexError, VectorIndexErrorKind
from profmatch.utils.logging import get_logger

MAX_KEY_LENGTH = 512


# ---------------------------------------------------------------------------
# Metadata schema
# ---------------------------------------------------------------------------


def record_to_metadata(record: InstructorRecord) -> dict[str, Any]:
    """Flatten *record* into scalar metadata values.

    Vector stores only hold scalars, so the review list is stored as a JSON
    string and a missing source URL as ``""``.
    """
    return {
        "name": record.name,
        "department": record.department,
        "rating_raw": record.rating_raw,
        "review_snippets": json.dumps(record.review_snippets, ensure_ascii=False),
        "source_url": record.source_url or "",
    }


def metadata_to_record(metadata: dict[str, Any]) -> InstructorRecord:
    """Inverse of :func:`record_to_metadata`.

    Raises ``ValueError`` (or ``ValidationError``) for malformed metadata.
    """
    raw_reviews = metadata.get("review_snippets") or "[]"
    reviews = json.loads(raw_reviews) if isinstance(raw_reviews, str) else raw_reviews
    if not isinstance(reviews, list):
        raise ValueError("review_snippets is not a list")
    return InstructorRecord(
        name=metadata.get("name", ""),
        department=metadata.get("department", ""),
        rating_raw=metadata.get("rating_raw", ""),
        review_snippets=[str(r) for r in reviews],
        source_url=metadata.get("source_url") or None,
    )


def validate_key(key: str) -> str:
    """Return *key* stripped, or raise ``VectorIndexError(INVALID_KEY)``."""
    candidate = (key or "").strip()
    if not candidate:
        raise VectorIndexError(message="Index key is empty", kind=VectorIndexErrorKind.INVALID_KEY)
    if len(candidate) > MAX_KEY_LENGTH:
        raise VectorIndexError(
            message=f"Index key longer than {MAX_KEY_LENGTH} characters",
            kind=VectorIndexErrorKind.INVALID_KEY,
        )
    if any(unicodedata.category(ch) == "Cc" for ch in candidate):
        raise VectorIndexError(
            message="Index key contains control characters",
            kind=VectorIndexErrorKind.INVALID_KEY,
        )
    return candidate


# ---------------------------------------------------------------------------
# Gateway
# ---------------------------------------------------------------------------


class VectorIndexGateway:
    """Upsert and query instructor entries in one namespace.

    Parameters
    ----------
    provider:
        Raw vector store bound to the namespace.
    dimension:
        Length every stored and queried vector must have.
    namespace:
        Expected namespace; must match the provider's.
    timeout:
        Per-call timeout in seconds for provider operations.
    """

    def __init__(
        self,
        provider: IVectorIndexProvider,
        dimension: int,
        namespace: str | None = None,
        timeout: float | None = 10.0,
    ) -> None:
        if dimension < 1:
            raise ValueError("dimension must be >= 1")
        if namespace is not None and namespace != provider.get_namespace():
            raise ValueError(
                f"provider is bound to namespace {provider.get_namespace()!r}, not {namespace!r}"
            )
        self._provider = provider
        self._dimension = dimension
        self._namespace = provider.get_namespace()
        self._timeout = timeout
        self._logger = get_logger(__name__)

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def namespace(self) -> str:
        return self._namespace

    # -- Writes --------------------------------------------------------------

    async def upsert(self, record: InstructorRecord, vector: EmbeddingVector) -> str:
        """Store *record* under its name; return the key used."""
        return await self.upsert_entry(IndexEntry(key=record.name, vector=vector, metadata=record))

    async def upsert_entry(self, entry: IndexEntry) -> str:
        checked_key = validate_key(entry.key)
        vector = entry.vector
        self._check_dimension(vector, "upsert")
        await self._call(
            self._provider.upsert(checked_key, list(vector.values), record_to_metadata(entry.metadata)),
            "upsert",
        )
        self._logger.info(
            "index_upsert",
            namespace=self._namespace,
            key=checked_key,
            dimension=vector.dimension,
        )
        return checked_key

    async def delete(self, key: str) -> bool:
        checked_key = validate_key(key)
        deleted = await self._call(self._provider.delete(checked_key), "delete")
        self._logger.info("index_delete", namespace=self._namespace, key=checked_key, deleted=deleted)
        return deleted

    # -- Reads ---------------------------------------------------------------

    async def query(self, vector: EmbeddingVector, k: int) -> RetrievalResult:
        """Return the *k* most similar entries, best first.

        Equal scores are ordered by ascending key so results are
        reproducible.  Entries whose stored metadata cannot be turned back
        into a record are skipped with a warning.
        """
        if k < 1:
            raise ValueError("k must be >= 1")
        self._check_dimension(vector, "query")

        ordered = await self._fetch_ordered(list(vector.values), k)

        scored: list[ScoredInstructor] = []
        for match in ordered:
            try:
                record = metadata_to_record(match.metadata)
            except (ValueError, ValidationError) as exc:
                self._logger.warning("index_metadata_malformed", key=match.key, error=str(exc))
                continue
            # Float noise from the store can push cosine a hair outside [-1, 1].
            score = max(-1.0, min(1.0, match.score))
            scored.append(ScoredInstructor(record=record, similarity_score=score))
            if len(scored) == k:
                break

        self._logger.info(
            "index_query",
            namespace=self._namespace,
            requested=k,
            returned=len(scored),
            top_score=scored[0].similarity_score if scored else 0.0,
        )
        return RetrievalResult(matches=scored)

    async def stats(self) -> CorpusStats:
        total = await self._call(self._provider.count(), "count")
        return CorpusStats(namespace=self._namespace, total_entries=total, dimension=self._dimension)

    # -- Internals -----------------------------------------------------------

    async def _fetch_ordered(self, values: list[float], k: int) -> list[IndexMatch]:
        """Fetch enough matches that ties at position *k* are all present.

        The store only decides which entries come back; which of several
        equally scored entries lands at position *k* is decided here, by
        key.  The request grows until the store returns fewer matches than
        asked for or the last match scores strictly below the k-th.
        """
        fetch = k + 1
        while True:
            matches: list[IndexMatch] = await self._call(
                self._provider.query(values, fetch), "query"
            )
            ordered = sorted(matches, key=lambda m: (-m.score, m.key))
            if len(ordered) < fetch or ordered[-1].score < ordered[k - 1].score:
                return ordered
            self._logger.debug(
                "index_query_tie_refetch",
                requested=fetch,
                boundary_score=ordered[k - 1].score,
            )
            fetch *= 2

    def _check_dimension(self, vector: EmbeddingVector, operation: str) -> None:
        if vector.dimension != self._dimension:
            raise VectorIndexError(
                message=(
                    f"{operation}: vector has {vector.dimension} dimensions, "
                    f"index expects {self._dimension}"
                ),
                kind=VectorIndexErrorKind.DIMENSION_MISMATCH,
                provider_name=self._provider.get_provider_name(),
            )

    async def _call(self, awaitable: Any, operation: str) -> Any:
        provider_name = self._provider.get_provider_name()
        return await call_with_timeout(
            awaitable,
            self._timeout,
            on_timeout=lambda t: VectorIndexError(
                message=f"Index {operation} timed out after {t}s",
                kind=VectorIndexErrorKind.UNAVAILABLE,
                provider_name=provider_name,
            ),
            operation=f"index_{operation}",
        )
