"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`
with the Messages streaming API.

Differences from the OpenAI adapter:
    - The system prompt is a top-level ``system`` argument, not a message.
    - Streaming goes through ``messages.stream()``, an async context manager
      whose ``text_stream`` yields text deltas.
"""

from __future__ import annotations

from typing import AsyncIterator

import anthropic
import structlog

from profmatch.config.settings import Settings
from profmatch.interfaces.llm_provider import ILLMProvider
from profmatch.utils.errors import GenerationError, GenerationErrorKind

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.anthropic_api_key
        self._client = anthropic.AsyncAnthropic(
            api_key=self._api_key,
            timeout=settings.generation_timeout,
        )
        self._model = settings.anthropic_model or _DEFAULT_MODEL

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def stream_chat(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1200,
    ) -> AsyncIterator[str]:
        yielded = 0
        try:
            async with self._client.messages.stream(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=messages,
                temperature=temperature,
            ) as stream:
                async for text in stream.text_stream:
                    yielded += 1
                    yield text
        except anthropic.APIError as exc:
            kind = GenerationErrorKind.INTERRUPTED if yielded else GenerationErrorKind.UNAVAILABLE
            logger.warning(
                "llm_stream_failed",
                provider=self.get_provider_name(),
                kind=kind.value,
                chunks_before_failure=yielded,
                error=str(exc),
            )
            raise GenerationError(
                message=f"Anthropic API error: {exc}",
                kind=kind,
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("llm_stream_complete", provider="anthropic", model=self._model, chunks=yielded)

    def get_provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """Try a minimal completion to verify the API key works."""
        if not self.is_available():
            return False
        try:
            await self._client.messages.create(
                model=self._model,
                max_tokens=10,
                messages=[{"role": "user", "content": "hi"}],
            )
            return True
        except anthropic.APIError:
            return False
