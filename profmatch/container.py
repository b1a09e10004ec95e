"""Dependency-injection assembly shared by the web app and the CLI.

Builds every provider and service from explicit :class:`Settings` and
:class:`AppConfig` objects and returns them as a flat dict.  ``main.py``
copies the dict onto ``app.state``; the CLI uses it directly.  Both entry
points therefore select the same embedding model, which keeps query
vectors compatible with what ingestion stored.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from profmatch.config.app_config import AppConfig
from profmatch.config.settings import Settings
from profmatch.interfaces.embedding_provider import IEmbeddingProvider
from profmatch.interfaces.llm_provider import ILLMProvider
from profmatch.providers.cache.memory_cache import MemoryCacheProvider
from profmatch.providers.embedding.nomic_embedding_provider import NomicEmbeddingProvider
from profmatch.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from profmatch.providers.fetch.httpx_page_fetcher import HttpxPageFetcher
from profmatch.providers.llm.anthropic_provider import AnthropicLLMProvider
from profmatch.providers.llm.ollama_provider import OllamaLLMProvider
from profmatch.providers.llm.openai_provider import OpenAILLMProvider
from profmatch.providers.vector_store.chromadb_provider import ChromaDBProvider
from profmatch.services.answer_composer import AnswerComposer
from profmatch.services.embedding_client import EmbeddingClient
from profmatch.services.field_extractor import FieldExtractor
from profmatch.services.index_gateway import VectorIndexGateway
from profmatch.services.ingestion_service import IngestionPipeline
from profmatch.services.retrieval_service import RetrievalPipeline
from profmatch.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first configured LLM provider.

    Priority order: OpenAI -> Anthropic -> Ollama (local fallback).
    """
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


def build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Select the first available embedding provider.

    Priority: OpenAI/OpenAI-compatible (if an API key is set) ->
    Nomic via Ollama (if a base URL is set).  Selection only looks at
    configuration; reachability is checked later by
    :func:`check_providers`.

    Raises
    ------
    ConfigurationError
        If neither is available.
    """
    if app_settings.openai_api_key:
        provider: IEmbeddingProvider = OpenAIEmbeddingProvider(settings=app_settings)
        if provider.is_available():
            return provider

    provider = NomicEmbeddingProvider(settings=app_settings)
    if provider.is_available():
        return provider

    raise ConfigurationError(
        "No embedding provider configured: set OPENAI_API_KEY or "
        "OLLAMA_BASE_URL (Ollama with nomic-embed-text)."
    )


# ---------------------------------------------------------------------------
# Full assembly
# ---------------------------------------------------------------------------


def build_components(app_settings: Settings, app_config: AppConfig) -> dict[str, Any]:
    """Construct every provider and service for one process.

    Returns a flat dict of named components.
    """
    timeouts = app_config.timeouts

    # -- Shared resources --
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(timeouts.fetch), follow_redirects=True)

    # -- Providers --
    fetcher = HttpxPageFetcher(http_client=http_client, timeout=timeouts.fetch)
    embedding_provider = build_embedding_provider(app_settings)
    llm_provider = build_llm_provider(app_settings)
    index_provider = ChromaDBProvider(
        persist_directory=app_settings.chromadb_persist_dir,
        namespace=app_config.namespace,
        collection_prefix=app_settings.chromadb_collection_prefix,
    )
    cache = MemoryCacheProvider(ttl=app_settings.embedding_cache_ttl)

    dimension = app_config.embedding_dimension or embedding_provider.get_dimension()

    # -- Services --
    embedding_client = EmbeddingClient(
        embedding_provider,
        expected_dimension=dimension,
        cache=cache,
        timeout=timeouts.embed,
    )
    index_gateway = VectorIndexGateway(
        index_provider,
        dimension=dimension,
        namespace=app_config.namespace,
        timeout=timeouts.index,
    )
    ingestion_pipeline = IngestionPipeline(
        fetcher=fetcher,
        extractor=FieldExtractor(app_config.selectors),
        embedding_client=embedding_client,
        index_gateway=index_gateway,
        fetch_timeout=timeouts.fetch,
    )
    composer = AnswerComposer(
        llm_provider,
        temperature=app_config.generation.temperature,
        max_tokens=app_config.generation.max_tokens,
    )
    retrieval_pipeline = RetrievalPipeline(
        embedding_client=embedding_client,
        index_gateway=index_gateway,
        composer=composer,
        top_k=app_config.top_k,
    )

    provider_registry: dict[str, Any] = {
        "llm": llm_provider.is_available(),
        "llm_name": llm_provider.get_provider_name(),
        "embedding": embedding_provider.is_available(),
        "embedding_name": embedding_provider.get_provider_name(),
        "index_name": index_provider.get_provider_name(),
        "namespace": index_provider.get_namespace(),
    }

    logger.info(
        "components_built",
        llm=llm_provider.get_provider_name(),
        embedding=embedding_provider.get_provider_name(),
        dimension=dimension,
        namespace=app_config.namespace,
        top_k=app_config.top_k,
    )

    return {
        "http_client": http_client,
        "llm_provider": llm_provider,
        "embedding_provider": embedding_provider,
        "fetcher": fetcher,
        "embedding_client": embedding_client,
        "index_gateway": index_gateway,
        "ingestion_pipeline": ingestion_pipeline,
        "composer": composer,
        "retrieval_pipeline": retrieval_pipeline,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Startup reachability check
# ---------------------------------------------------------------------------


async def check_providers(components: dict[str, Any]) -> dict[str, Any]:
    """Contact the LLM and embedding services and record the outcome.

    Runs both checks concurrently and overwrites the ``llm`` and
    ``embedding`` flags in ``provider_registry``, which up to now only
    reflected configuration.  Returns the updated registry.
    """
    llm_provider: ILLMProvider = components["llm_provider"]
    embedding_provider: IEmbeddingProvider = components["embedding_provider"]

    llm_ok, embedding_ok = await asyncio.gather(
        llm_provider.validate_credentials(),
        embedding_provider.validate_credentials(),
    )

    registry: dict[str, Any] = components["provider_registry"]
    registry["llm"] = llm_ok
    registry["embedding"] = embedding_ok
    if not (llm_ok and embedding_ok):
        logger.warning(
            "provider_unreachable",
            llm=llm_provider.get_provider_name(),
            llm_ok=llm_ok,
            embedding=embedding_provider.get_provider_name(),
            embedding_ok=embedding_ok,
        )
    return registry
