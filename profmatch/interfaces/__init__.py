"""Public interface definitions for all external service providers.

Every external service ProfMatch talks to is reached only through the
abstract base classes in this package.  Concrete adapters live in
``profmatch/providers/`` and are wired together in ``profmatch/container.py``
(and the CLI), so tests can inject mocks and backends can be swapped
without touching the pipelines.

CONCRETE PROVIDER MAP:
    Interface               →  Concrete implementations
    ─────────────────────────────────────────────────────────
    IPageFetcher            →  HttpxPageFetcher
    IEmbeddingProvider      →  OpenAIEmbeddingProvider, NomicEmbeddingProvider
    IVectorIndexProvider    →  ChromaDBProvider
    ILLMProvider            →  OpenAILLMProvider, AnthropicLLMProvider,
                               OllamaLLMProvider
    ICacheProvider          →  MemoryCacheProvider
"""

from profmatch.interfaces.cache_provider import ICacheProvider
from profmatch.interfaces.embedding_provider import IEmbeddingProvider
from profmatch.interfaces.llm_provider import ILLMProvider
from profmatch.interfaces.page_fetcher import FetchedPage, IPageFetcher
from profmatch.interfaces.vector_index_provider import IndexMatch, IVectorIndexProvider

__all__ = [
    "FetchedPage",
    "ICacheProvider",
    "IEmbeddingProvider",
    "ILLMProvider",
    "IPageFetcher",
    "IVectorIndexProvider",
    "IndexMatch",
]
