"""Answer Composer: stream a grounded answer for one chat turn.

The composer sends one generation request per turn.  The service keeps no
state between turns, so the full conversation is resent every time, with
the retrieved instructor context appended to the newest user message.

Chunks are handed to the caller as they arrive, in order.  The stream is
lazy (nothing is requested until the first ``__anext__``), finite and
single-use.  :meth:`AnswerComposer.collect` is the consumer side: it
applies chunks to a :class:`~profmatch.models.conversation.Conversation`
and keeps whatever text arrived if generation breaks part-way.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator

from profmatch.interfaces.llm_provider import ILLMProvider
from profmatch.models.conversation import Conversation, ConversationMessage, Role
from profmatch.prompts.system_prompt import SYSTEM_PROMPT
from profmatch.utils.errors import GenerationError, GenerationErrorKind
from profmatch.utils.logging import get_logger

_CONTEXT_HEADER = "Retrieved instructors:"


@dataclass(frozen=True)
class ComposedAnswer:
    """Outcome of consuming one answer stream."""

    content: str
    interrupted: bool = False
    error: GenerationError | None = None


class AnswerComposer:
    """Turn conversation history plus retrieved context into streamed text.

    Parameters
    ----------
    llm:
        Streaming chat backend.
    system_prompt:
        Persona, output format and degradation rules.
    temperature, max_tokens:
        Generation parameters forwarded to the provider.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        system_prompt: str = SYSTEM_PROMPT,
        temperature: float = 0.3,
        max_tokens: int = 1200,
    ) -> None:
        self._llm = llm
        self._system_prompt = system_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._logger = get_logger(__name__)

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def build_messages(
        self,
        history: list[ConversationMessage],
        context: str,
    ) -> list[dict[str, str]]:
        """Convert *history* to provider messages, attaching *context*.

        The context goes into the newest user message; when the history has
        no user message it is sent as a user message of its own.
        """
        messages = [{"role": m.role.value, "content": m.content} for m in history]
        context_block = f"{_CONTEXT_HEADER}\n{context}"
        for message in reversed(messages):
            if message["role"] == Role.USER.value:
                message["content"] = f"{message['content']}\n\n{context_block}"
                break
        else:
            messages.append({"role": Role.USER.value, "content": context_block})
        return messages

    async def compose(
        self,
        history: list[ConversationMessage],
        context: str,
    ) -> AsyncIterator[str]:
        """Yield answer chunks in generation order.

        Raises ``GenerationError(UNAVAILABLE)`` before the first chunk and
        ``GenerationError(INTERRUPTED)`` after it.  Closing the iterator
        early closes the provider stream.
        """
        messages = self.build_messages(history, context)
        self._logger.info(
            "compose_started",
            provider=self._llm.get_provider_name(),
            history_length=len(history),
            context_length=len(context),
        )

        stream = self._llm.stream_chat(
            self._system_prompt,
            messages,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        yielded = 0
        try:
            async for chunk in stream:
                yielded += 1
                yield chunk
        except GenerationError as exc:
            # A provider that reports UNAVAILABLE after text flowed is
            # reclassified; the caller must keep the partial answer.
            if yielded and exc.kind != GenerationErrorKind.INTERRUPTED:
                raise GenerationError(
                    message=exc.message,
                    kind=GenerationErrorKind.INTERRUPTED,
                    provider_name=exc.provider_name,
                ) from exc
            raise
        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()

        self._logger.info("compose_complete", chunks=yielded)

    async def collect(
        self,
        chunks: AsyncIterator[str],
        conversation: Conversation,
    ) -> ComposedAnswer:
        """Apply *chunks* to a new assistant message in *conversation*.

        Empty chunks are skipped.  On ``GenerationError`` the partial text is
        finalized and returned with ``interrupted=True``.
        """
        conversation.begin_assistant_reply()
        try:
            async for chunk in chunks:
                conversation.apply_chunk(chunk)
        except GenerationError as exc:
            message = conversation.finalize()
            self._logger.warning(
                "compose_interrupted",
                kind=exc.kind.value,
                partial_length=len(message.content),
            )
            return ComposedAnswer(content=message.content, interrupted=True, error=exc)
        message = conversation.finalize()
        return ComposedAnswer(content=message.content)
