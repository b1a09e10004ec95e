"""Cache providers.

MemoryCacheProvider is an in-process TTL cache used by the Embedding Client
to skip re-embedding identical text.  For multi-worker deployments, swap in
a Redis adapter implementing ICacheProvider.
"""

from profmatch.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
