"""
Shared fixtures for edge gateway tests.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from shared.errors import CacheStoreError, TelemetrySinkError
from service_edge.app.adapters import OriginCredentials, OriginFetcher
from service_edge.app.caching import CacheGateway
from service_edge.app.context import InboundRequest
from service_edge.app.orchestrator import RequestOrchestrator
from service_edge.app.telemetry import TelemetryEmitter


class InMemoryCacheStore:
    """Cache store stand-in that records every call."""

    def __init__(self):
        self.entries: Dict[str, Dict[str, Any]] = {}
        self.gets: List[str] = []
        self.puts: List[Dict[str, Any]] = []
        self.fail_get = False
        self.fail_put = False

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        self.gets.append(key)
        if self.fail_get:
            raise CacheStoreError("connection refused", {"key": key})
        entry = self.entries.get(key)
        return dict(entry) if entry else None

    async def put(self, key, body, headers, ttl_seconds, stale_window_seconds) -> None:
        if self.fail_put:
            raise CacheStoreError("connection refused", {"key": key})
        self.puts.append({
            "key": key,
            "body": body,
            "headers": headers,
            "ttl": ttl_seconds,
            "swr": stale_window_seconds,
        })
        self.entries[key] = {"status": 200, "headers": headers, "body": body}


class RecordingSink:
    """Analytics sink stand-in keeping serialized records."""

    def __init__(self, fail: bool = False):
        self.records: List[str] = []
        self.keys: List[Optional[str]] = []
        self.fail = fail

    async def send(self, record: str, key: Optional[str] = None) -> None:
        if self.fail:
            raise TelemetrySinkError("sink unavailable")
        self.records.append(record)
        self.keys.append(key)

    @property
    def events(self) -> List[Dict[str, Any]]:
        return [json.loads(record) for record in self.records]


class OriginStub:
    """httpx MockTransport handler serving canned origin responses by path."""

    def __init__(self):
        self.routes: Dict[str, Any] = {}
        self.requests: List[httpx.Request] = []

    @staticmethod
    def response(status: int, body: bytes = b"", headers: Optional[Any] = None) -> httpx.Response:
        # An explicit stream keeps the body unread, as with a real transport.
        return httpx.Response(status, headers=headers, stream=httpx.ByteStream(body))

    def serve(self, path: str, status: int, body: bytes = b"", headers: Optional[Any] = None) -> None:
        self.routes[path] = lambda request: self.response(status, body, headers)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return self.response(404, b"<Error/>", {"x-amz-error-code": "NoSuchKey"})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        return route


def make_request(path: str = "/images/logo.png", headers: Optional[List] = None, method: str = "GET") -> InboundRequest:
    return InboundRequest(
        method=method,
        url=f"https://cdn.example.com{path}",
        headers=headers if headers is not None else [
            ("host", "cdn.example.com"),
            ("user-agent", "pytest-agent/1.0"),
            ("fastly-client-ip", "203.0.113.7"),
        ],
    )


@pytest.fixture
def cache_store() -> InMemoryCacheStore:
    return InMemoryCacheStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def origin_stub() -> OriginStub:
    return OriginStub()


@pytest.fixture
def origin_client(origin_stub) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(origin_stub))


@pytest.fixture
def origin_fetcher(origin_client) -> OriginFetcher:
    return OriginFetcher(
        "test-bucket",
        "us-east-1",
        OriginCredentials(access_key_id="AKIDEXAMPLE", secret_access_key="secret"),
        client=origin_client,
    )


@pytest.fixture
def orchestrator_factory(cache_store, origin_fetcher, sink) -> Callable[..., RequestOrchestrator]:
    def _build(**overrides) -> RequestOrchestrator:
        cache = overrides.pop("cache", None) or CacheGateway(cache_store)
        origin = overrides.pop("origin", None) or origin_fetcher
        telemetry = overrides.pop("telemetry", None) or TelemetryEmitter(sink, service_name="edge-test")
        return RequestOrchestrator(cache, origin, telemetry, **overrides)

    return _build


@pytest.fixture
def request_factory() -> Callable[..., InboundRequest]:
    return make_request


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail=True)
