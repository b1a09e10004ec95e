"""Ollama LLM provider adapter.

Talks to a local Ollama server through its OpenAI-compatible ``/v1``
endpoint, so the same streaming code as the OpenAI adapter applies.

Setup: install Ollama, ``ollama pull llama3.1``, then set
``OLLAMA_BASE_URL=http://localhost:11434``.
"""

from __future__ import annotations

from typing import AsyncIterator

import httpx
import openai
import structlog

from profmatch.config.settings import Settings
from profmatch.interfaces.llm_provider import ILLMProvider
from profmatch.providers.llm.openai_provider import stream_openai_chat

logger = structlog.get_logger(logger_name=__name__)


class OllamaLLMProvider(ILLMProvider):
    """LLM provider backed by a local Ollama server (``llama3.1`` by default)."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url.rstrip('/')}/v1",
            api_key="ollama",  # required by the SDK, ignored by Ollama
            timeout=openai.Timeout(settings.generation_timeout, connect=3.0),
        )
        self._text_model = "llama3.1"

    def stream_chat(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1200,
    ) -> AsyncIterator[str]:
        return stream_openai_chat(
            self._client,
            self._text_model,
            system_prompt,
            messages,
            temperature,
            max_tokens,
            self.get_provider_name(),
        )

    def get_provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama base URL is configured."""
        return bool(self._base_url)

    async def validate_credentials(self) -> bool:
        """Check that the Ollama server is running and reachable.

        Hits Ollama's native ``/api/tags`` endpoint, which lists installed
        models without running inference.
        """
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url.rstrip('/')}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            logger.debug("ollama_unreachable", base_url=self._base_url)
            return False
