"""Abstract base class for LLM service providers.

Defines the contract for the text-generation backend used by the Answer
Composer.  Implementations wrap OpenAI, Anthropic or a local Ollama
server; the composer never imports a vendor SDK.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import AsyncIterator


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider, OllamaLLMProvider
# Located in: profmatch/providers/llm/
class ILLMProvider(ABC):
    """Contract for chat-style generation with incremental delivery."""

    @abstractmethod
    def stream_chat(
        self,
        system_prompt: str,
        messages: list[dict[str, str]],
        temperature: float = 0.3,
        max_tokens: int = 1200,
    ) -> AsyncIterator[str]:
        """Stream the model's reply as text chunks, in generation order.

        Parameters
        ----------
        system_prompt:
            Instructions that set the assistant's behaviour.
        messages:
            Full conversation, oldest first, as ``{"role", "content"}``
            dicts with roles ``"user"`` / ``"assistant"``.  The service is
            stateless, so the whole history is sent every turn.
        temperature:
            Sampling temperature.
        max_tokens:
            Upper bound on generated tokens.

        Returns
        -------
        AsyncIterator[str]
            Finite, single-use stream of chunks.  Chunks may be empty.

        Raises
        ------
        profmatch.utils.errors.GenerationError
            ``UNAVAILABLE`` if the request fails before any chunk;
            ``INTERRUPTED`` if the stream breaks after chunks were yielded.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Perform a lightweight call to confirm the service accepts us.

        Unlike :meth:`is_available`, this method actively contacts the
        remote service.  Returns ``False`` instead of raising.
        """
