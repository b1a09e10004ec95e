"""Abstract base class for cache service providers.

Used by the Embedding Client's optional content-hash cache.  An in-memory
TTL cache ships with the project; a Redis adapter could replace it without
touching the client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for async key-value caches."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or ``None`` if missing/expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key* with an optional time-to-live in seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key* (no-op if absent)."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
