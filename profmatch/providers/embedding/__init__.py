"""Embedding provider implementations.

Two implementations of IEmbeddingProvider, in selection priority order:
    1. OpenAIEmbeddingProvider - text-embedding-ada-002 (1536 dims) or any
       OpenAI-compatible model.  Requires an API key.
    2. NomicEmbeddingProvider  - nomic-embed-text via Ollama (768 dims).
       Free and local, but requires a running Ollama server.
"""

from profmatch.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from profmatch.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider

__all__ = ["OpenAIEmbeddingProvider", "NomicEmbeddingProvider"]
