"""
Cache gateway: narrow get/put contract over the cache store.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from shared.logging import get_logger
from ..models import CachedObject
from .redis_store import CacheStore

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


CACHE_KEY_PREFIX = "s3-object:"
DEFAULT_CACHE_TTL = 800
DEFAULT_STALE_WINDOW = 0


def cache_key(path: str) -> str:
    """Cache key for a request path; the path is used verbatim."""
    return f"{CACHE_KEY_PREFIX}{path}"


class CacheGateway:
    """Cache-aside access for edge objects.

    Store failures never leave this class: a failed lookup reads as a miss and
    a failed write is logged and reported through the return value.
    """

    def __init__(
        self,
        store: CacheStore,
        *,
        ttl_seconds: int = DEFAULT_CACHE_TTL,
        stale_window_seconds: int = DEFAULT_STALE_WINDOW,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.stale_window_seconds = stale_window_seconds
        self.metrics = metrics
        self.logger = get_logger("edge.cache_gateway")

    async def get(self, key: str) -> Optional[CachedObject]:
        """Cache-only lookup. Returns None on miss or on any store failure."""
        try:
            entry = await self.store.get(key)
            cached = self._to_cached_object(entry)
        except Exception as exc:
            self.logger.warning("Cache read error", key=key, error=str(exc))
            self._record("edge_cache_lookups_total", result="error")
            return None

        self._record("edge_cache_lookups_total", result="hit" if cached is not None else "miss")
        return cached

    @staticmethod
    def _to_cached_object(entry: Optional[Dict[str, Any]]) -> Optional[CachedObject]:
        if not entry or entry.get("status") != 200:
            return None
        body = entry["body"]
        if not isinstance(body, bytes):
            raise TypeError(f"Cached body is {type(body).__name__}, expected bytes")
        return CachedObject(body=body, headers=dict(entry.get("headers") or {}), status=200)

    async def put(
        self,
        key: str,
        obj: CachedObject,
        ttl_seconds: Optional[int] = None,
        stale_window_seconds: Optional[int] = None,
    ) -> bool:
        """Store an object. Returns False when the write failed."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        swr = self.stale_window_seconds if stale_window_seconds is None else stale_window_seconds

        try:
            await self.store.put(key, obj.body, dict(obj.headers), ttl, swr)
        except Exception as exc:
            self.logger.warning("Cache write error", key=key, error=str(exc))
            self._record("edge_cache_writes_total", result="error")
            return False

        self.logger.info("Response cached", key=key, ttl=ttl, swr=swr)
        self._record("edge_cache_writes_total", result="ok")
        return True

    def _record(self, metric_name: str, **labels) -> None:
        if self.metrics:
            self.metrics.increment_counter(metric_name, **labels)
