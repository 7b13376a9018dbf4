"""
Edge gateway service: FastAPI host for the request orchestrator.
"""

from typing import Dict, Optional

import httpx
from fastapi import FastAPI, Request, Response

from shared.base_service import BaseService
from shared.config import EdgeConfig, get_config
from .adapters import OriginCredentials, OriginFetcher
from .caching import CacheGateway, CacheStore, RedisCacheStore
from .context import InboundRequest
from .models import EdgeResponse
from .orchestrator import RequestOrchestrator
from .telemetry import AnalyticsSink, KafkaAnalyticsSink, LogAnalyticsSink, TelemetryEmitter


PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Connection-level headers describe the origin hop, not the object.
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})


def to_http_response(result: EdgeResponse) -> Response:
    headers: Dict[str, str] = {
        name: value for name, value in result.headers.items() if name.lower() not in HOP_BY_HOP_HEADERS
    }
    return Response(content=result.body, status_code=result.status, headers=headers)


class EdgeService(BaseService):
    """Edge content gateway service implementation."""

    def __init__(
        self,
        config: Optional[EdgeConfig] = None,
        *,
        cache_store: Optional[CacheStore] = None,
        origin_client: Optional[httpx.AsyncClient] = None,
        sink: Optional[AnalyticsSink] = None,
    ):
        super().__init__(config or get_config())

        self.cache_store = cache_store or RedisCacheStore(
            self.config.redis_url,
            socket_timeout=self.config.redis_socket_timeout_seconds,
        )
        self.cache_gateway = CacheGateway(
            self.cache_store,
            ttl_seconds=self.config.cache_ttl_seconds,
            stale_window_seconds=self.config.cache_stale_window_seconds,
            metrics=self.metrics,
        )
        self.origin_fetcher = OriginFetcher(
            self.config.origin_bucket,
            self.config.origin_region,
            OriginCredentials(
                access_key_id=self.config.origin_access_key_id.get_secret_value(),
                secret_access_key=self.config.origin_secret_access_key.get_secret_value(),
            ),
            endpoint=self.config.origin_endpoint,
            client=origin_client,
            timeout=self.config.origin_timeout_seconds,
        )
        self.sink = sink or self._build_sink()
        self.telemetry = TelemetryEmitter(
            self.sink,
            service_name=self.config.telemetry_service_name,
            service_version=self.config.telemetry_service_version,
            legacy_field_names=self.config.telemetry_legacy_field_names,
            metrics=self.metrics,
        )
        self.orchestrator = RequestOrchestrator(
            self.cache_gateway,
            self.origin_fetcher,
            self.telemetry,
            metrics=self.metrics,
        )

        self._setup_edge_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.edge_service = self

    def _build_sink(self) -> AnalyticsSink:
        if self.config.telemetry_sink == "kafka":
            return KafkaAnalyticsSink(self.config.kafka_bootstrap, self.config.telemetry_topic)
        return LogAnalyticsSink()

    def _setup_edge_routes(self):
        """Route every remaining path and method to the orchestrator."""

        @self.app.api_route("/{path:path}", methods=PROXY_METHODS, include_in_schema=False)
        async def serve_object(request: Request) -> Response:
            result = await self.orchestrator.handle(InboundRequest.from_starlette(request))
            return to_http_response(result)

    async def _startup(self) -> None:
        if isinstance(self.sink, KafkaAnalyticsSink):
            await self.sink.start()
        self.logger.info(
            "Edge gateway started",
            origin=self.origin_fetcher.base_url,
            cache_ttl=self.config.cache_ttl_seconds,
            telemetry_sink=self.config.telemetry_sink,
        )

    async def _shutdown(self) -> None:
        if isinstance(self.sink, KafkaAnalyticsSink):
            await self.sink.stop()
        await self.origin_fetcher.close()
        if isinstance(self.cache_store, RedisCacheStore):
            await self.cache_store.close()
        self.logger.info("Edge gateway stopped")


def create_app(config: Optional[EdgeConfig] = None, **overrides) -> FastAPI:
    """Create the edge gateway FastAPI application."""
    return EdgeService(config, **overrides).app


if __name__ == "__main__":
    EdgeService().run()
