"""Instructor, embedding and retrieval data models.

Defines Pydantic v2 models for the records that flow through both
pipelines.  All models use frozen config so a record extracted from one
page cannot be mutated on its way to the index.

Flow overview:

    1. INGESTION: a fetched instructor page is parsed into an
       :class:`InstructorRecord` by ``services/field_extractor.py``.
    2. EMBEDDING: ``record.to_embedding_text()`` is turned into an
       :class:`EmbeddingVector` by ``services/embedding_client.py``.
    3. STORAGE: the pair is upserted as an :class:`IndexEntry` keyed by
       the instructor's name (last write wins).
    4. RETRIEVAL: a question vector is matched against stored entries and
       the best ones come back as a :class:`RetrievalResult`.
"""

from __future__ import annotations

import json
import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# InstructorRecord - the canonical unit stored and retrieved.
# ---------------------------------------------------------------------------
class InstructorRecord(BaseModel):
    """Structured facts about one instructor, scraped from one page.

    ``name``, ``department`` and ``rating_raw`` must be non-blank; the
    validators below make it impossible to build a partial record, so a
    record that exists is a record that may be embedded and stored.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Instructor name; also the index key.")
    department: str = Field(description="Department or subject area.")
    rating_raw: str = Field(
        description="Score text exactly as scraped; not guaranteed numeric, e.g. '4.5'."
    )
    review_snippets: list[str] = Field(
        default_factory=list,
        description="Review texts in scrape order.",
    )
    source_url: str | None = Field(
        default=None,
        description="Page the record was extracted from.",
    )

    @field_validator("name", "department", "rating_raw")
    @classmethod
    def _require_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be empty")
        return stripped

    @field_validator("review_snippets")
    @classmethod
    def _drop_blank_reviews(cls, value: list[str]) -> list[str]:
        return [snippet.strip() for snippet in value if snippet and snippet.strip()]

    def to_embedding_text(self) -> str:
        """Serialize the semantic fields to a single deterministic text blob.

        ``source_url`` is left out: it says nothing about the instructor
        and would only add noise to the vector.
        """
        return json.dumps(
            {
                "name": self.name,
                "department": self.department,
                "rating": self.rating_raw,
                "reviews": self.review_snippets,
            },
            ensure_ascii=False,
        )


# ---------------------------------------------------------------------------
# EmbeddingVector - a validated, fixed-length vector.
# ---------------------------------------------------------------------------
class EmbeddingVector(BaseModel):
    """A non-empty sequence of finite floats produced by an embedding model."""

    model_config = ConfigDict(frozen=True)

    values: list[float] = Field(min_length=1, description="Vector components.")

    @field_validator("values")
    @classmethod
    def _finite(cls, value: list[float]) -> list[float]:
        if any(not math.isfinite(v) for v in value):
            raise ValueError("vector components must be finite numbers")
        return value

    @property
    def dimension(self) -> int:
        return len(self.values)


# ---------------------------------------------------------------------------
# IndexEntry - what the index stores under one key.
# ---------------------------------------------------------------------------
class IndexEntry(BaseModel):
    """One index slot: key, vector and the record stored as metadata."""

    model_config = ConfigDict(frozen=True)

    key: str
    vector: EmbeddingVector
    metadata: InstructorRecord


# ---------------------------------------------------------------------------
# Retrieval results
# ---------------------------------------------------------------------------
class ScoredInstructor(BaseModel):
    """A stored record returned by a similarity query with its score."""

    model_config = ConfigDict(frozen=True)

    record: InstructorRecord
    similarity_score: float = Field(
        default=0.0,
        ge=-1.0,
        le=1.0,
        description="Cosine similarity between the query and this entry, in [-1, 1].",
    )


class RetrievalResult(BaseModel):
    """Matches ordered by descending similarity, at most ``k`` long."""

    model_config = ConfigDict(frozen=True)

    matches: list[ScoredInstructor] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.matches)

    @property
    def records(self) -> list[InstructorRecord]:
        return [m.record for m in self.matches]

    @property
    def is_empty(self) -> bool:
        return not self.matches

    def shortfall(self, k: int) -> int:
        """Return how many of the requested *k* matches are missing."""
        return max(0, k - len(self.matches))


# ---------------------------------------------------------------------------
# CorpusStats - index snapshot for /health and the CLI.
# ---------------------------------------------------------------------------
class CorpusStats(BaseModel):
    """Size of the instructor index namespace."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    total_entries: int = Field(default=0, ge=0)
    dimension: int | None = Field(
        default=None,
        description="Configured vector dimension of the namespace.",
    )
