"""Abstract base class for text-embedding service providers.

Defines the contract for generating embedding vectors from text.
Implementations may wrap OpenAI ``text-embedding-ada-002`` /
``text-embedding-3-small``, Nomic ``nomic-embed-text`` (local via Ollama),
or any other embedding backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


# Concrete implementations:
#   OpenAIEmbeddingProvider - OpenAI or OpenAI-compatible embeddings API
#   NomicEmbeddingProvider  - nomic-embed-text via Ollama (local)
# Located in: profmatch/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for text-embedding services used by both pipelines.

    Providers return the raw vector payload exactly as the service sent
    it.  Shape validation is done once, centrally, by
    :class:`~profmatch.services.embedding_client.EmbeddingClient`, so a
    provider quirk (``None``, strings, empty lists) is caught no matter
    which backend is configured.
    """

    @abstractmethod
    async def embed_single(self, text: str) -> Any:
        """Return the service's embedding payload for *text*.

        Raises
        ------
        profmatch.utils.errors.EmbeddingError
            ``SERVICE_UNAVAILABLE`` for network errors, timeouts, rate
            limits and 5xx responses; ``REJECTED`` when the provider
            refuses the input (e.g. too many tokens).
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the vectors this model produces.

        Example values: ``1536`` (OpenAI ``text-embedding-ada-002``),
        ``768`` (Nomic ``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai_embedding"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Contact the service to confirm it is reachable and accepts us.

        Returns ``False`` instead of raising.
        """
