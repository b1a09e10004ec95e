"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider` with
streamed chat completions.  When a custom ``openai_base_url`` is configured
(e.g. TogetherAI, Fireworks, Groq) the client points at that URL instead of
the default OpenAI endpoint.
"""

from __future__ import annotations

from typing import Any, AsyncIterator

import openai
import structlog

from profmatch.config.settings import Settings
from profmatch.interfaces.llm_provider import ILLMProvider
from profmatch.utils.errors import GenerationError, GenerationErrorKind

logger = structlog.get_logger(logger_name=__name__)


async def stream_openai_chat(
    client: openai.AsyncOpenAI,
    model: str,
    system_prompt: str,
    messages: list[dict[str, str]],
    temperature: float,
    max_tokens: int,
    provider_name: str,
) -> AsyncIterator[str]:
    """Yield content deltas from a streamed ``chat.completions`` call.

    Shared by every adapter that talks the OpenAI chat protocol.  A failure
    before the first delta raises ``GenerationError(UNAVAILABLE)``; a failure
    after it raises ``GenerationError(INTERRUPTED)``.
    """
    yielded = 0
    stream: Any = None
    try:
        stream = await client.chat.completions.create(
            model=model,
            messages=[{"role": "system", "content": system_prompt}, *messages],
            temperature=temperature,
            max_tokens=max_tokens,
            stream=True,
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta.content or ""
            yielded += 1
            yield delta
    except openai.APIError as exc:
        kind = GenerationErrorKind.INTERRUPTED if yielded else GenerationErrorKind.UNAVAILABLE
        logger.warning(
            "llm_stream_failed",
            provider=provider_name,
            kind=kind.value,
            chunks_before_failure=yielded,
            error=str(exc),
        )
        raise GenerationError(
            message=f"{provider_name} API error: {exc}",
            kind=kind,
            provider_name=provider_name,
        ) from exc
    finally:
        if stream is not None:
            await stream.close()

    logger.info("llm_stream_complete", provider=provider_name, model=model, chunks=yielded)


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible chat API.

    Uses ``gpt-4o-mini`` by default; override with ``OPENAI_TEXT_MODEL``.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key,
            "timeout": openai.Timeout(settings.generation_timeout, connect=5.0),
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = "openai-compatible" if settings.openai_base_url else "openai"

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

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
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    async def validate_credentials(self) -> bool:
        """List models to confirm the key is accepted, without inference cost."""
        if not self.is_available():
            return False
        try:
            await self._client.models.list()
            return True
        except openai.APIError:
            return False
