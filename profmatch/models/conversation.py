"""Chat conversation models.

A conversation is an ordered, append-only list of
:class:`ConversationMessage`.  While an answer streams in, the last message
is an assistant message whose content grows chunk by chunk; once the
stream ends the message is finalized and no further chunk may touch it.

:class:`ConversationMessage` is frozen like every other model in this
package, so "growing" the open message means replacing the last list slot
with ``model_copy(update={"content": ...})``.  Earlier messages are never
rewritten.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):  # noqa: UP042
    USER = "user"
    ASSISTANT = "assistant"


class ConversationMessage(BaseModel):
    """One turn of the chat."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str = ""
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )


class Conversation:
    """Append-only message sequence with one optional streaming reply.

    Parameters
    ----------
    messages:
        Prior history, oldest first.  Copied on input.
    """

    def __init__(self, messages: list[ConversationMessage] | None = None) -> None:
        self._messages: list[ConversationMessage] = list(messages or [])
        self._streaming = False

    @property
    def messages(self) -> list[ConversationMessage]:
        """Return a copy of the message list."""
        return list(self._messages)

    @property
    def is_streaming(self) -> bool:
        return self._streaming

    @property
    def last_user_question(self) -> str | None:
        """Content of the newest user message, or ``None`` if there is none."""
        for message in reversed(self._messages):
            if message.role == Role.USER:
                return message.content
        return None

    def append(self, message: ConversationMessage) -> None:
        if self._streaming:
            raise RuntimeError("cannot append while an assistant reply is streaming")
        self._messages.append(message)

    def begin_assistant_reply(self) -> None:
        """Open an empty assistant message to receive streamed chunks."""
        self.append(ConversationMessage(role=Role.ASSISTANT, content=""))
        self._streaming = True

    def apply_chunk(self, chunk: str) -> None:
        """Append *chunk* to the open assistant message; empty chunks are no-ops."""
        if not self._streaming:
            raise RuntimeError("no assistant reply is streaming")
        if not chunk:
            return
        last = self._messages[-1]
        self._messages[-1] = last.model_copy(update={"content": last.content + chunk})

    def finalize(self) -> ConversationMessage:
        """Close the streaming reply and return it."""
        if not self._streaming:
            raise RuntimeError("no assistant reply is streaming")
        self._streaming = False
        return self._messages[-1]

    def __len__(self) -> int:
        return len(self._messages)
