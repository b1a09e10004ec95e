"""Vector index providers.

ChromaDBProvider keeps one namespace per collection on local disk, using
cosine distance.
"""

from profmatch.providers.vector_store.chromadb_provider import ChromaDBProvider

__all__ = ["ChromaDBProvider"]
