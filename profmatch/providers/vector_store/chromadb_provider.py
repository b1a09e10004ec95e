"""ChromaDB vector index provider adapter.

Wraps ``chromadb.PersistentClient`` to implement
:class:`IVectorIndexProvider`.  One collection holds one namespace, created
with cosine distance so a query's ``1 - distance`` is the cosine similarity.
Fully local, no external service required.

The ChromaDB client is synchronous; every call is pushed onto a worker
thread with :func:`asyncio.to_thread` so the event loop keeps serving
other requests while SQLite/HNSW work happens.
"""

from __future__ import annotations

import asyncio
import os
from typing import Any

# Must be set before chromadb is imported; the client reads it at import time.
os.environ["ANONYMIZED_TELEMETRY"] = "False"

import chromadb
import structlog

from profmatch.interfaces.vector_index_provider import IndexMatch, IVectorIndexProvider
from profmatch.utils.errors import VectorIndexError, VectorIndexErrorKind

logger = structlog.get_logger(logger_name=__name__)


class _NoopEmbeddingFunction(chromadb.EmbeddingFunction[list[str]]):
    """Embedding function that stops ChromaDB loading its default model.

    Vectors always arrive pre-computed from the Embedding Client, so
    ChromaDB's built-in ONNX model would only cost memory.
    """

    def __call__(self, input: list[str]) -> list[list[float]]:
        raise NotImplementedError(
            "ProfMatch passes pre-computed embeddings; "
            "ChromaDB's built-in embedding should never be called."
        )

    def name(self) -> str:
        return "noop_precomputed"


class ChromaDBProvider(IVectorIndexProvider):
    """Vector index backed by a persistent ChromaDB collection.

    Parameters
    ----------
    persist_directory:
        Directory ChromaDB keeps its SQLite and HNSW files in.
    namespace:
        Logical namespace; the collection is named
        ``{collection_prefix}_{namespace}``.
    collection_prefix:
        Prefix that keeps ProfMatch collections apart from others sharing
        the same directory.
    client:
        Optional pre-built ChromaDB client (tests pass an in-memory
        ``EphemeralClient``).
    """

    def __init__(
        self,
        persist_directory: str = "./data/chromadb",
        namespace: str = "ns1",
        collection_prefix: str = "profmatch",
        client: Any | None = None,
    ) -> None:
        self._persist_directory = persist_directory
        self._namespace = namespace
        self._collection_name = f"{collection_prefix}_{namespace}"
        self._client = client or chromadb.PersistentClient(
            path=persist_directory,
            settings=chromadb.config.Settings(anonymized_telemetry=False),
        )
        # Collections persisted by another ChromaDB version may refuse a
        # different embedding function; fall back to the stored one.
        try:
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
                embedding_function=_NoopEmbeddingFunction(),
            )
        except ValueError:
            self._collection = self._client.get_or_create_collection(
                name=self._collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        logger.info(
            "chromadb_collection_ready",
            collection=self._collection_name,
            persist_directory=persist_directory,
        )

    # ------------------------------------------------------------------
    # IVectorIndexProvider implementation
    # ------------------------------------------------------------------

    async def upsert(self, key: str, vector: list[float], metadata: dict[str, Any]) -> None:
        """Insert or overwrite *key* with one ChromaDB ``upsert`` call."""
        try:
            await asyncio.to_thread(
                self._collection.upsert,
                ids=[key],
                embeddings=[vector],
                metadatas=[metadata],
            )
        except Exception as exc:
            raise self._unavailable("upsert", exc) from exc
        logger.info("chromadb_upsert", collection=self._collection_name, key=key)

    async def query(self, vector: list[float], top_k: int) -> list[IndexMatch]:
        try:
            return await asyncio.to_thread(self._query_sync, vector, top_k)
        except Exception as exc:
            raise self._unavailable("query", exc) from exc

    async def delete(self, key: str) -> bool:
        try:
            return await asyncio.to_thread(self._delete_sync, key)
        except Exception as exc:
            raise self._unavailable("delete", exc) from exc

    async def count(self) -> int:
        try:
            return await asyncio.to_thread(self._collection.count)
        except Exception as exc:
            raise self._unavailable("count", exc) from exc

    def get_namespace(self) -> str:
        return self._namespace

    def get_provider_name(self) -> str:
        return "chromadb"

    def is_available(self) -> bool:
        """ChromaDB is embedded, so it is available once the collection opens."""
        return self._collection is not None

    # ------------------------------------------------------------------
    # Private helpers (run on a worker thread)
    # ------------------------------------------------------------------

    def _query_sync(self, vector: list[float], top_k: int) -> list[IndexMatch]:
        stored = self._collection.count()
        if stored == 0:
            return []

        results = self._collection.query(
            query_embeddings=[vector],
            n_results=min(top_k, stored),
            include=["metadatas", "distances"],
        )
        ids = results["ids"][0] if results.get("ids") else []
        metadatas = results["metadatas"][0] if results.get("metadatas") else [{}] * len(ids)
        distances = results["distances"][0] if results.get("distances") else [1.0] * len(ids)

        matches = [
            IndexMatch(
                key=key,
                score=1.0 - float(distance),
                metadata=dict(meta or {}),
            )
            for key, meta, distance in zip(ids, metadatas, distances, strict=True)
        ]
        logger.info(
            "chromadb_query",
            collection=self._collection_name,
            requested=top_k,
            results_count=len(matches),
        )
        return matches

    def _delete_sync(self, key: str) -> bool:
        existing = self._collection.get(ids=[key], include=[])
        if not existing["ids"]:
            return False
        self._collection.delete(ids=[key])
        logger.info("chromadb_delete", collection=self._collection_name, key=key)
        return True

    def _unavailable(self, operation: str, exc: Exception) -> VectorIndexError:
        logger.error(
            "chromadb_operation_failed",
            operation=operation,
            collection=self._collection_name,
            error=str(exc),
        )
        return VectorIndexError(
            message=f"ChromaDB {operation} failed: {exc}",
            kind=VectorIndexErrorKind.UNAVAILABLE,
            provider_name=self.get_provider_name(),
        )
