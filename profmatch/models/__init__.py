"""ProfMatch domain models - re-exports all public model classes.

Submodules by concern:
    - instructor.py   - instructor records, vectors, index entries, retrieval results
    - conversation.py - chat messages and the streaming conversation buffer
    - pipeline.py     - ingestion state machine
"""

from __future__ import annotations

from profmatch.models.conversation import Conversation, ConversationMessage, Role
from profmatch.models.instructor import (
    CorpusStats,
    EmbeddingVector,
    IndexEntry,
    InstructorRecord,
    RetrievalResult,
    ScoredInstructor,
)
from profmatch.models.pipeline import IngestionStage, IngestionState, StageFailure

__all__ = [
    # instructor
    "CorpusStats",
    "EmbeddingVector",
    "IndexEntry",
    "InstructorRecord",
    "RetrievalResult",
    "ScoredInstructor",
    # conversation
    "Conversation",
    "ConversationMessage",
    "Role",
    # pipeline
    "IngestionStage",
    "IngestionState",
    "StageFailure",
]
