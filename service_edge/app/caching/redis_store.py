"""
Redis-backed cache store for edge objects.
"""

import json
import time
from typing import Any, Dict, Optional, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import CacheStoreError
from ..models import Headers


class CacheStore(Protocol):
    """Cache store collaborator contract."""

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    async def put(
        self,
        key: str,
        body: bytes,
        headers: Headers,
        ttl_seconds: int,
        stale_window_seconds: int,
    ) -> None:
        ...


class RedisCacheStore:
    """Stores each object as a Redis hash expiring after TTL plus stale window."""

    def __init__(
        self,
        redis_url: str,
        client: Optional[redis.Redis] = None,
        socket_timeout: float = 5.0,
    ):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.logger = get_logger("edge.cache_store")
        self._redis: Optional[redis.Redis] = client

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
            )
        return self._redis

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Look up an entry; returns None when the key is absent or expired."""
        try:
            redis_client = await self._get_redis()
            entry = await redis_client.hgetall(key)
        except RedisError as exc:
            raise CacheStoreError(str(exc), {"key": key, "operation": "get"}) from exc

        if not entry:
            return None

        try:
            status = int(entry[b"status"])
            headers = json.loads(entry[b"headers"])
            body = entry[b"body"]
        except (KeyError, ValueError) as exc:
            raise CacheStoreError("Malformed cache entry", {"key": key, "error": str(exc)}) from exc

        if not isinstance(headers, dict) or not isinstance(body, bytes):
            raise CacheStoreError("Malformed cache entry", {"key": key, "error": "unexpected field types"})

        return {"status": status, "headers": headers, "body": body}

    async def put(
        self,
        key: str,
        body: bytes,
        headers: Headers,
        ttl_seconds: int,
        stale_window_seconds: int,
    ) -> None:
        """Write an entry and its expiry atomically."""
        mapping = {
            "status": 200,
            "body": body,
            "headers": json.dumps(headers),
            "stored_at": int(time.time()),
            "ttl": ttl_seconds,
            "swr": stale_window_seconds,
        }
        try:
            redis_client = await self._get_redis()
            async with redis_client.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                pipe.hset(key, mapping=mapping)
                pipe.expire(key, ttl_seconds + stale_window_seconds)
                await pipe.execute()
        except RedisError as exc:
            raise CacheStoreError(str(exc), {"key": key, "operation": "put"}) from exc

        self.logger.debug("Cached object", key=key, ttl=ttl_seconds, swr=stale_window_seconds)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
