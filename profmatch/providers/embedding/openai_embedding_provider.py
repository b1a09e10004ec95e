"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible providers (TogetherAI,
Fireworks) via custom ``base_url`` and model name settings.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from profmatch.config.settings import Settings
from profmatch.interfaces.embedding_provider import IEmbeddingProvider
from profmatch.utils.errors import EmbeddingError, EmbeddingErrorKind

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "text-embedding-ada-002"

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
    "togethercomputer/m2-bert-80M-8k-retrieval": 768,
}


def map_openai_error(exc: openai.APIError, provider_name: str) -> EmbeddingError:
    """Translate an SDK exception into the matching :class:`EmbeddingError` kind.

    Timeouts, connection failures, rate limits and 5xx responses are
    transient; any other 4xx means the provider refused this input.
    """
    if isinstance(exc, (openai.APIConnectionError, openai.RateLimitError)):
        kind = EmbeddingErrorKind.SERVICE_UNAVAILABLE
    elif isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        # Bad credentials are not the user's input; report as unavailable.
        kind = EmbeddingErrorKind.SERVICE_UNAVAILABLE
    elif isinstance(exc, openai.APIStatusError):
        kind = (
            EmbeddingErrorKind.SERVICE_UNAVAILABLE
            if exc.status_code >= 500
            else EmbeddingErrorKind.REJECTED
        )
    else:
        kind = EmbeddingErrorKind.SERVICE_UNAVAILABLE
    return EmbeddingError(
        message=f"{provider_name} API error: {exc}",
        kind=kind,
        provider_name=provider_name,
    )


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-ada-002`` (1536 dims) by default.  When
    ``openai_base_url`` is configured the client points at that URL and
    uses ``openai_embedding_model`` if set.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.embed_timeout, connect=5.0),
            # Retries are the caller's decision, not a hidden default.
            "max_retries": 0,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model or _DEFAULT_MODEL
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 768)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_single(self, text: str) -> Any:
        """Return the raw embedding payload for *text* (validated by the client)."""
        try:
            response = await self._client.embeddings.create(input=text, model=self._model)
        except openai.APIError as exc:
            raise map_openai_error(exc, self.get_provider_name()) from exc

        logger.info(
            "openai_embedding",
            model=self._model,
            provider=self._provider_label,
            tokens=response.usage.total_tokens if getattr(response, "usage", None) else None,
        )
        if not response.data:
            return None
        return response.data[0].embedding

    def get_dimension(self) -> int:
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to confirm the key is accepted."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False
