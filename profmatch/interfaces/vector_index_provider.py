"""Abstract base class for vector-index service providers.

Defines the raw key/vector/metadata contract a backend must offer.  The
instructor-specific schema (which metadata keys exist, how records are
keyed, dimension checks, ordering and tie-breaking) is owned by
:class:`~profmatch.services.index_gateway.VectorIndexGateway`, which is the
only caller of these methods.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class IndexMatch:
    """One raw hit from a similarity query."""

    key: str
    score: float
    metadata: dict[str, Any] = field(default_factory=dict)


# Concrete implementation: ChromaDBProvider (profmatch/providers/vector_store/)
# Could be swapped for Pinecone, Qdrant or Weaviate via this interface.
class IVectorIndexProvider(ABC):
    """Contract for vector-index services.

    All methods are async so network-backed stores never block the event
    loop.  Every method operates on the single namespace the provider was
    constructed for.
    """

    @abstractmethod
    async def upsert(self, key: str, vector: list[float], metadata: dict[str, Any]) -> None:
        """Insert or replace the entry stored under *key*.

        Must be atomic from the caller's perspective: a reader sees either
        the previous entry or the new one, never a mix.

        Raises
        ------
        profmatch.utils.errors.VectorIndexError
            ``UNAVAILABLE`` if the backend cannot be reached or rejects the
            write.
        """

    @abstractmethod
    async def query(self, vector: list[float], top_k: int) -> list[IndexMatch]:
        """Return up to *top_k* nearest entries with cosine similarity scores.

        Scores are raw cosine similarity in ``[-1, 1]``.  Order is not
        guaranteed; the gateway sorts.
        """

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove the entry under *key*; return ``False`` if it did not exist."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of entries in the namespace."""

    @abstractmethod
    def get_namespace(self) -> str:
        """Return the namespace (collection) this provider is bound to."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"chromadb"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the store is accessible."""
