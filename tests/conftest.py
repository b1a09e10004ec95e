"""Shared pytest fixtures for the ProfMatch test suite."""

from __future__ import annotations

import html
import math
from typing import Any, AsyncIterator
from unittest.mock import AsyncMock, MagicMock

import pytest
from bs4 import BeautifulSoup

from profmatch.interfaces.embedding_provider import IEmbeddingProvider
from profmatch.interfaces.llm_provider import ILLMProvider
from profmatch.interfaces.vector_index_provider import IndexMatch, IVectorIndexProvider
from profmatch.models.instructor import InstructorRecord
from profmatch.utils.errors import GenerationError, GenerationErrorKind

# ---------------------------------------------------------------------------
# Instructor pages
# ---------------------------------------------------------------------------


def make_instructor_html(
    name: str | None = "J. Doe",
    department: str | None = "Computer Science",
    rating: str | None = "4.5",
    reviews: list[str] | None = None,
    school: str = "State University",
) -> str:
    """Build a page shaped like a real instructor rating page.

    Passing ``None`` for a field leaves out the element it comes from.
    """
    reviews = ["Great lectures"] if reviews is None else reviews
    head: list[str] = []
    if name is not None:
        head.append(f'<meta name="title" content="{html.escape(name)} at {school} | Ratings">')
    if department is not None:
        head.append(
            '<meta name="description" content="'
            f'{html.escape(name or "")} is a professor in the {html.escape(department)} '
            f'department at {school}">'
        )
    body: list[str] = []
    if rating is not None:
        body.append(f'<div class="RatingValue__Numerator-qw8sqy-2 liyUjw">{html.escape(rating)}</div>')
    for review in reviews:
        body.append(
            '<div class="Comments__StyledComments-dzzyvm-0 gRjWel">'
            f"{html.escape(review)}</div>"
        )
    return (
        "<html><head>"
        + "".join(head)
        + "</head><body>"
        + "".join(body)
        + "</body></html>"
    )


def make_document(**kwargs: Any) -> BeautifulSoup:
    return BeautifulSoup(make_instructor_html(**kwargs), "html.parser")


def make_record(
    name: str = "J. Doe",
    department: str = "Computer Science",
    rating_raw: str = "4.5",
    review_snippets: list[str] | None = None,
    source_url: str | None = None,
) -> InstructorRecord:
    return InstructorRecord(
        name=name,
        department=department,
        rating_raw=rating_raw,
        review_snippets=["Great lectures"] if review_snippets is None else review_snippets,
        source_url=source_url,
    )


def unit_vector(dimension: int, hot: int, weight: float = 1.0) -> list[float]:
    """Vector with *weight* at index *hot* and a small shared component elsewhere."""
    values = [0.01] * dimension
    values[hot] = weight
    return values


# ---------------------------------------------------------------------------
# In-memory vector index
# ---------------------------------------------------------------------------


class InMemoryIndexProvider(IVectorIndexProvider):
    """Dict-backed cosine index for service tests."""

    def __init__(self, namespace: str = "ns1") -> None:
        self._namespace = namespace
        self.entries: dict[str, tuple[list[float], dict[str, Any]]] = {}
        self.upsert_calls = 0

    async def upsert(self, key: str, vector: list[float], metadata: dict[str, Any]) -> None:
        self.upsert_calls += 1
        self.entries[key] = (list(vector), dict(metadata))

    async def query(self, vector: list[float], top_k: int) -> list[IndexMatch]:
        scored = [
            IndexMatch(key=key, score=_cosine(vector, stored), metadata=dict(meta))
            for key, (stored, meta) in self.entries.items()
        ]
        scored.sort(key=lambda m: (-m.score, m.key))
        return scored[:top_k]

    async def delete(self, key: str) -> bool:
        return self.entries.pop(key, None) is not None

    async def count(self) -> int:
        return len(self.entries)

    def get_namespace(self) -> str:
        return self._namespace

    def get_provider_name(self) -> str:
        return "memory_index"

    def is_available(self) -> bool:
        return True


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


# ---------------------------------------------------------------------------
# Scripted LLM
# ---------------------------------------------------------------------------


class ScriptedLLM(ILLMProvider):
    """Streams a fixed list of chunks, optionally failing after ``fail_after`` chunks."""

    def __init__(
        self,
        chunks: list[str] | None = None,
        fail_after: int | None = None,
    ) -> None:
        self.chunks = ["Hello", " world"] if chunks is None else chunks
        self.fail_after = fail_after
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def stream_chat(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1200,
    ) -> AsyncIterator[str]:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_after is not None and index == self.fail_after:
                    kind = (
                        GenerationErrorKind.INTERRUPTED
                        if index
                        else GenerationErrorKind.UNAVAILABLE
                    )
                    raise GenerationError(message="upstream reset", kind=kind, provider_name="scripted")
                yield chunk
            if self.fail_after is not None and self.fail_after >= len(self.chunks):
                raise GenerationError(
                    message="upstream reset",
                    kind=GenerationErrorKind.INTERRUPTED,
                    provider_name="scripted",
                )
        finally:
            self.closed = True

    def get_provider_name(self) -> str:
        return "scripted"

    def is_available(self) -> bool:
        return True

    async def validate_credentials(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def record() -> InstructorRecord:
    return make_record()


@pytest.fixture
def index_provider() -> InMemoryIndexProvider:
    return InMemoryIndexProvider()


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    """Embedding provider returning a constant 8-dim vector."""
    mock = MagicMock(spec=IEmbeddingProvider)
    mock.embed_single = AsyncMock(return_value=[0.1] * 8)
    mock.get_dimension.return_value = 8
    mock.get_provider_name.return_value = "mock_embedding"
    mock.is_available.return_value = True
    return mock


@pytest.fixture
def scripted_llm() -> ScriptedLLM:
    return ScriptedLLM()
