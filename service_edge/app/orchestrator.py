"""
Request orchestration for the edge gateway.

One inbound request runs through a fixed sequence: context extraction, cache
lookup, origin fetch-through on a miss, cache population, telemetry emission
and the client response. Every path yields exactly one response and exactly
one telemetry record, and the two always agree on cache status and event type:

    HIT   / cache_hit     cached object returned verbatim
    MISS  / success       origin object returned, copy written to the cache
    MISS  / origin_error  fixed 404 "Not Found" (non-2xx or unreachable origin)
    ERROR / error         fixed 500 "Internal Server Error"
"""

import time
from typing import TYPE_CHECKING, Callable, Optional

from shared.logging import get_logger, set_request_id, set_client_context, clear_context
from .adapters import OriginFetcher
from .caching import CacheGateway, cache_key
from .context import InboundRequest, RequestContext, extract_request_context
from .models import (
    CacheStatus,
    EdgeResponse,
    EventType,
    Headers,
    OriginFailure,
    OriginResult,
    OriginSuccess,
    OriginTransportError,
    origin_headers_of,
)
from .telemetry import TelemetryEmitter, TelemetryOutcome

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


class RequestOrchestrator:
    """Coordinates cache, origin and telemetry for each request."""

    def __init__(
        self,
        cache: CacheGateway,
        origin: OriginFetcher,
        telemetry: TelemetryEmitter,
        *,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cache = cache
        self.origin = origin
        self.telemetry = telemetry
        self.metrics = metrics
        self.clock = clock
        self.logger = get_logger("edge.orchestrator")

    async def handle(self, request: InboundRequest) -> EdgeResponse:
        """Serve one request. Never raises."""
        started = self.clock()
        context: Optional[RequestContext] = None
        origin_result: Optional[OriginResult] = None

        set_request_id()
        try:
            context = extract_request_context(request)
            set_client_context(context.ip)
            self.logger.info("Processing request", method=context.method, path=context.path)

            key = cache_key(context.path)
            cached = await self.cache.get(key)

            if cached is not None:
                self.logger.info("Cache hit", path=context.path)
                response = EdgeResponse.from_cached(cached)
                await self._emit(context, started, CacheStatus.HIT, EventType.CACHE_HIT)
                return response

            self.logger.info("Cache miss, fetching from origin", path=context.path)
            origin_result = await self.origin.fetch(context.path)
            self._record_origin(origin_result)

            if isinstance(origin_result, OriginSuccess):
                response = EdgeResponse.from_origin(origin_result)
                await self.cache.put(key, origin_result.to_cached_object())
                await self._emit(
                    context,
                    started,
                    CacheStatus.MISS,
                    EventType.SUCCESS,
                    origin_headers=origin_headers_of(origin_result),
                )
                return response

            error = self._describe_origin_failure(origin_result)
            self.logger.info("Origin fetch failed", path=context.path, error=error)
            await self._emit(
                context,
                started,
                CacheStatus.MISS,
                EventType.ORIGIN_ERROR,
                origin_headers=origin_headers_of(origin_result),
                error=error,
            )
            return EdgeResponse.not_found()

        except Exception as exc:
            self.logger.error("Error processing request", error=str(exc), exc_info=True)
            if self.metrics:
                self.metrics.record_error(type(exc).__name__)
            await self._emit_fault(request, context, started, origin_result, exc)
            return EdgeResponse.internal_error()

        finally:
            clear_context()

    async def _emit(
        self,
        context: RequestContext,
        started: float,
        cache_status: CacheStatus,
        event_type: EventType,
        *,
        origin_headers: Optional[Headers] = None,
        error: Optional[str] = None,
    ) -> None:
        outcome = TelemetryOutcome(
            cache_status=cache_status,
            event_type=event_type,
            response_time_ms=self._elapsed_ms(started),
            origin_response_headers=origin_headers,
            error=error,
        )
        await self.telemetry.emit(context, outcome)

    async def _emit_fault(
        self,
        request: InboundRequest,
        context: Optional[RequestContext],
        started: float,
        origin_result: Optional[OriginResult],
        exc: Exception,
    ) -> None:
        try:
            await self._emit(
                context or extract_request_context(request),
                started,
                CacheStatus.ERROR,
                EventType.ERROR,
                origin_headers=origin_headers_of(origin_result),
                error=str(exc) or type(exc).__name__,
            )
        except Exception as emit_exc:
            self.logger.error("Telemetry emission failed on fault path", error=str(emit_exc))

    def _elapsed_ms(self, started: float) -> int:
        return max(0, int((self.clock() - started) * 1000))

    @staticmethod
    def _describe_origin_failure(result: OriginResult) -> str:
        if isinstance(result, OriginFailure):
            return f"Origin fetch failed with status: {result.status}"
        if isinstance(result, OriginTransportError):
            return f"Origin transport error: {result.cause}"
        raise TypeError(f"Unexpected origin result: {result!r}")

    def _record_origin(self, result: OriginResult) -> None:
        if not self.metrics:
            return
        if isinstance(result, OriginSuccess):
            outcome = "success"
        elif isinstance(result, OriginFailure):
            outcome = "failure"
        else:
            outcome = "transport_error"
        self.metrics.increment_counter("edge_origin_fetches_total", outcome=outcome)
