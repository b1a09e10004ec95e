"""Nomic embedding provider adapter (local/free via Ollama).

Uses the OpenAI-compatible ``/v1`` endpoint that Ollama exposes to
implement :class:`IEmbeddingProvider` with ``nomic-embed-text``
(768 dimensions).  No API key required.
"""

from __future__ import annotations

from typing import Any

import httpx
import openai
import structlog

from profmatch.config.settings import Settings
from profmatch.interfaces.embedding_provider import IEmbeddingProvider
from profmatch.providers.embedding.openai_embedding_provider import map_openai_error

logger = structlog.get_logger(logger_name=__name__)


class NomicEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by ``nomic-embed-text`` served via Ollama."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url.rstrip("/")
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url}/v1",
            api_key="ollama",  # Ollama ignores the key but the SDK requires one
            timeout=openai.Timeout(settings.embed_timeout, connect=3.0),
            max_retries=0,
        )
        self._model = "nomic-embed-text"
        self._dimension = 768

    async def embed_single(self, text: str) -> Any:
        try:
            response = await self._client.embeddings.create(input=text, model=self._model)
        except openai.APIError as exc:
            raise map_openai_error(exc, self.get_provider_name()) from exc

        logger.info("nomic_embedding", model=self._model)
        if not response.data:
            return None
        return response.data[0].embedding

    def get_dimension(self) -> int:
        """Return 768 (nomic-embed-text dimension)."""
        return self._dimension

    def get_provider_name(self) -> str:
        return "nomic_embedding"

    def is_available(self) -> bool:
        """Return ``True`` if an Ollama base URL is configured (no network call)."""
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check that the Ollama server answers on ``/api/tags``.

        Ollama has no API key, so "credentials" means the server is up.
        """
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            logger.debug("ollama_unreachable", base_url=self._base_url)
            return False
