"""
Edge caching package.

Cache-aside primitives: the deterministic cache key, the CacheGateway used by
the orchestrator, and the Redis store behind it. Entries carry a fixed TTL;
eviction is left to the store.
"""

from .cache_gateway import CacheGateway, cache_key
from .redis_store import CacheStore, RedisCacheStore

__all__ = [
    "CacheGateway",
    "CacheStore",
    "RedisCacheStore",
    "cache_key",
]
