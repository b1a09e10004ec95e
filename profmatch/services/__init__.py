"""Business-logic services for ProfMatch.

Ingestion side:
    FieldExtractor        parsed page → InstructorRecord
    EmbeddingClient       record/question → validated EmbeddingVector
    VectorIndexGateway    keyed upsert / ordered similarity query
    IngestionPipeline     fetch → extract → embed → upsert

Query side:
    RetrievalPipeline     question → top-k records → context → answer stream
    AnswerComposer        history + context → streamed text
"""

from profmatch.services.answer_composer import AnswerComposer, ComposedAnswer
from profmatch.services.embedding_client import EmbeddingClient
from profmatch.services.field_extractor import FieldExtractor
from profmatch.services.index_gateway import VectorIndexGateway
from profmatch.services.ingestion_service import IngestionPipeline
from profmatch.services.retrieval_service import RetrievalPipeline, build_context

__all__ = [
    "AnswerComposer",
    "ComposedAnswer",
    "EmbeddingClient",
    "FieldExtractor",
    "IngestionPipeline",
    "RetrievalPipeline",
    "VectorIndexGateway",
    "build_context",
]
