"""Retrieval pipeline: question → similar instructors → streamed answer.

Flow for one chat turn::

    newest user message
        → EmbeddingClient.embed_question
        → VectorIndexGateway.query(k)
        → build_context (numbered blocks + shortfall note)
        → AnswerComposer.compose(history, context)

Embedding and index failures surface before the first answer chunk, so the
API can still answer with a proper error status.  An empty index is not an
error: the context says so and the prompt tells the model how to respond.
"""

from __future__ import annotations

from typing import AsyncIterator

import structlog

from profmatch.models.conversation import Conversation
from profmatch.models.instructor import RetrievalResult
from profmatch.services.answer_composer import AnswerComposer
from profmatch.services.embedding_client import EmbeddingClient
from profmatch.services.index_gateway import VectorIndexGateway
from profmatch.utils.errors import EmbeddingError, EmbeddingErrorKind

logger = structlog.get_logger(logger_name=__name__)

NO_MATCHES_NOTE = "No matching instructors were found in the database."


def shortfall_note(found: int, requested: int) -> str:
    return f"Only {found} of the requested {requested} matching instructors were found."


def build_context(result: RetrievalResult, k: int) -> str:
    """Render *result* as numbered plain-text blocks in ranked order.

    Appends an explicit note when fewer than *k* instructors matched, and
    returns only the no-match note when none did.
    """
    if result.is_empty:
        return NO_MATCHES_NOTE

    blocks: list[str] = []
    for position, match in enumerate(result.matches, start=1):
        record = match.record
        lines = [
            f"{position}. Name: {record.name}",
            f"   Department: {record.department}",
            f"   Rating: {record.rating_raw}",
        ]
        if record.review_snippets:
            lines.append("   Reviews:")
            lines.extend(f"   - {snippet}" for snippet in record.review_snippets)
        else:
            lines.append("   Reviews: none recorded")
        blocks.append("\n".join(lines))

    context = "\n\n".join(blocks)
    if result.shortfall(k):
        context = f"{context}\n\n{shortfall_note(len(result), k)}"
    return context


class RetrievalPipeline:
    """Answer questions from the instructor index.

    Parameters
    ----------
    embedding_client:
        Embeds the question with the same model used at ingestion.
    index_gateway:
        Similarity search over stored instructors.
    composer:
        Streams the final answer.
    top_k:
        Number of instructors to retrieve per question.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        index_gateway: VectorIndexGateway,
        composer: AnswerComposer,
        top_k: int = 3,
    ) -> None:
        if top_k < 1:
            raise ValueError("top_k must be >= 1")
        self._embedding_client = embedding_client
        self._index_gateway = index_gateway
        self._composer = composer
        self._top_k = top_k

    @property
    def top_k(self) -> int:
        return self._top_k

    async def retrieve(self, question: str, k: int | None = None) -> RetrievalResult:
        """Embed *question* and return the best ``k`` stored instructors."""
        k = k or self._top_k
        vector = await self._embedding_client.embed_question(question)
        result = await self._index_gateway.query(vector, k)
        logger.info(
            "retrieval_complete",
            question_length=len(question),
            requested=k,
            returned=len(result),
        )
        return result

    def build_context(self, result: RetrievalResult, k: int | None = None) -> str:
        return build_context(result, k or self._top_k)

    async def answer(self, conversation: Conversation) -> AsyncIterator[str]:
        """Retrieve for the newest user message and return the answer stream.

        Retrieval runs eagerly so its errors are raised by this coroutine,
        before the caller starts consuming chunks.
        """
        question = conversation.last_user_question
        if question is None:
            raise EmbeddingError(
                message="Conversation has no user message to answer",
                kind=EmbeddingErrorKind.REJECTED,
            )
        result = await self.retrieve(question)
        context = self.build_context(result)
        return self._composer.compose(conversation.messages, context)
