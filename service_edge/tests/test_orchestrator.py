"""
Unit tests for the request orchestrator.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock

from service_edge.app.caching import CacheGateway
from service_edge.app.models import CachedObject
from service_edge.app.orchestrator import RequestOrchestrator
from service_edge.app.telemetry import TelemetryEmitter


LOGO = b"\x89PNG\r\n\x1a\nlogo-bytes"
LOGO_HEADERS = [("Content-Type", "image/png"), ("ETag", "\"v1\""), ("Content-Length", str(len(LOGO)))]


class FakeClock:
    def __init__(self, step: float = 0.005):
        self.now = 100.0
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current


class TestScenarios:
    """End-to-end request flows through the orchestrator."""

    @pytest.mark.asyncio
    async def test_scenario_a_miss_then_origin_success(
        self, orchestrator_factory, request_factory, origin_stub, cache_store, sink
    ):
        origin_stub.serve("/images/logo.png", 200, LOGO, LOGO_HEADERS)
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/images/logo.png"))

        assert response.status == 200
        assert response.body == LOGO
        assert response.headers["content-type"] == "image/png"
        assert len(origin_stub.requests) == 1
        assert cache_store.puts == [{
            "key": "s3-object:/images/logo.png",
            "body": LOGO,
            "headers": response.headers,
            "ttl": 800,
            "swr": 0,
        }]
        assert len(sink.events) == 1
        event = sink.events[0]
        assert event["cacheStatus"] == "MISS"
        assert event["eventType"] == "success"
        assert event["originResponseHeaders"]["etag"] == "\"v1\""
        assert event["error"] is None

    @pytest.mark.asyncio
    async def test_scenario_b_repeat_request_is_cache_hit(
        self, orchestrator_factory, request_factory, origin_stub, sink
    ):
        origin_stub.serve("/images/logo.png", 200, LOGO, LOGO_HEADERS)
        orchestrator = orchestrator_factory()

        first = await orchestrator.handle(request_factory("/images/logo.png"))
        second = await orchestrator.handle(request_factory("/images/logo.png"))

        assert second.status == 200
        assert second.body == first.body == LOGO
        assert second.headers == first.headers
        assert len(origin_stub.requests) == 1
        assert [(e["cacheStatus"], e["eventType"]) for e in sink.events] == [
            ("MISS", "success"),
            ("HIT", "cache_hit"),
        ]
        assert sink.events[1]["originResponseHeaders"] is None

    @pytest.mark.asyncio
    async def test_scenario_c_origin_not_found(
        self, orchestrator_factory, request_factory, origin_stub, cache_store, sink
    ):
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/missing.txt"))

        assert response.status == 404
        assert response.body == b"Not Found"
        assert cache_store.puts == []
        assert cache_store.entries == {}
        event = sink.events[0]
        assert event["cacheStatus"] == "MISS"
        assert event["eventType"] == "origin_error"
        assert event["error"] == "Origin fetch failed with status: 404"
        assert event["originResponseHeaders"] == {"x-amz-error-code": "NoSuchKey"}

    @pytest.mark.asyncio
    async def test_scenario_d_transport_fault_maps_to_not_found(
        self, orchestrator_factory, request_factory, origin_stub, cache_store, sink
    ):
        origin_stub.routes["/images/logo.png"] = httpx.ConnectError("name resolution failed")
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/images/logo.png"))

        assert response.status == 404
        assert response.body == b"Not Found"
        assert cache_store.puts == []
        event = sink.events[0]
        assert event["cacheStatus"] == "MISS"
        assert event["eventType"] == "origin_error"
        assert event["error"] == "Origin transport error: name resolution failed"
        assert event["originResponseHeaders"] is None


class TestOriginFailureStatuses:
    """Client never sees the real origin status."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 403, 500, 502, 503])
    async def test_uniform_not_found(self, orchestrator_factory, request_factory, origin_stub, cache_store, status):
        origin_stub.serve("/a", status, b"<Error>detail</Error>")
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/a"))

        assert (response.status, response.body) == (404, b"Not Found")
        assert cache_store.puts == []


class TestCacheFaults:
    """Cache store failures never reach the client."""

    @pytest.mark.asyncio
    async def test_read_fault_degrades_to_miss(
        self, orchestrator_factory, request_factory, origin_stub, cache_store, sink
    ):
        cache_store.fail_get = True
        origin_stub.serve("/a", 200, b"body")
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/a"))

        assert (response.status, response.body) == (200, b"body")
        assert len(origin_stub.requests) == 1
        assert (sink.events[0]["cacheStatus"], sink.events[0]["eventType"]) == ("MISS", "success")

    @pytest.mark.asyncio
    async def test_corrupt_entry_degrades_to_miss(
        self, orchestrator_factory, request_factory, origin_stub, cache_store, sink
    ):
        cache_store.entries["s3-object:/a"] = {"status": 200, "headers": "oops", "body": b"stale"}
        origin_stub.serve("/a", 200, b"fresh")
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/a"))

        assert (response.status, response.body) == (200, b"fresh")
        assert len(origin_stub.requests) == 1
        assert (sink.events[0]["cacheStatus"], sink.events[0]["eventType"]) == ("MISS", "success")

    @pytest.mark.asyncio
    async def test_write_fault_leaves_response_unchanged(
        self, orchestrator_factory, request_factory, origin_stub, cache_store, sink
    ):
        cache_store.fail_put = True
        origin_stub.serve("/a", 200, b"body", {"content-type": "text/plain"})
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/a"))

        assert (response.status, response.body) == (200, b"body")
        assert response.headers["content-type"] == "text/plain"
        assert (sink.events[0]["cacheStatus"], sink.events[0]["eventType"]) == ("MISS", "success")

    @pytest.mark.asyncio
    async def test_cached_copy_is_independent_of_response(
        self, orchestrator_factory, request_factory, origin_stub, cache_store
    ):
        origin_stub.serve("/a", 200, b"body", {"content-type": "text/plain"})
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/a"))
        response.headers["x-mutated"] = "1"

        assert "x-mutated" not in cache_store.entries["s3-object:/a"]["headers"]

    @pytest.mark.asyncio
    async def test_hit_returns_stored_object_verbatim(
        self, orchestrator_factory, request_factory, origin_stub, cache_store, sink
    ):
        cache_store.entries["s3-object:/a"] = {
            "status": 200,
            "headers": {"content-type": "text/plain", "x-custom": "kept"},
            "body": b"cached-body",
        }
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/a"))

        assert response.status == 200
        assert response.body == b"cached-body"
        assert response.headers == {"content-type": "text/plain", "x-custom": "kept"}
        assert origin_stub.requests == []
        assert cache_store.puts == []


class TestFaults:
    """Unexpected failures become a fixed 500 with one error record."""

    @pytest.mark.asyncio
    async def test_unexpected_origin_exception(self, orchestrator_factory, request_factory, origin_stub, sink):
        origin_stub.routes["/a"] = RuntimeError("unexpected bug")
        orchestrator = orchestrator_factory()

        response = await orchestrator.handle(request_factory("/a"))

        assert response.status == 500
        assert response.body == b"Internal Server Error"
        assert len(sink.events) == 1
        event = sink.events[0]
        assert event["cacheStatus"] == "ERROR"
        assert event["eventType"] == "error"
        assert event["error"] == "unexpected bug"
        assert event["path"] == "/a"

    @pytest.mark.asyncio
    async def test_fault_after_origin_response_keeps_origin_headers(
        self, orchestrator_factory, request_factory, origin_stub, sink
    ):
        origin_stub.serve("/a", 200, b"body", {"etag": "\"1\""})
        cache = MagicMock(spec=CacheGateway)
        cache.get = AsyncMock(return_value=None)
        cache.put = AsyncMock(side_effect=ValueError("broken cache gateway"))
        orchestrator = orchestrator_factory(cache=cache)

        response = await orchestrator.handle(request_factory("/a"))

        assert response.status == 500
        event = sink.events[0]
        assert event["eventType"] == "error"
        assert event["originResponseHeaders"] == {"etag": "\"1\""}

    @pytest.mark.asyncio
    async def test_telemetry_failure_on_fault_path_is_contained(
        self, orchestrator_factory, request_factory, origin_stub
    ):
        origin_stub.routes["/a"] = RuntimeError("unexpected bug")
        telemetry = MagicMock()
        telemetry.emit = AsyncMock(side_effect=RuntimeError("emitter broken"))
        orchestrator = orchestrator_factory(telemetry=telemetry)

        response = await orchestrator.handle(request_factory("/a"))

        assert response.status == 500
        assert telemetry.emit.await_count == 1

    @pytest.mark.asyncio
    async def test_delivery_failure_does_not_change_response(
        self, cache_store, origin_fetcher, origin_stub, request_factory, failing_sink
    ):
        origin_stub.serve("/a", 200, b"body")
        orchestrator = RequestOrchestrator(
            CacheGateway(cache_store), origin_fetcher, TelemetryEmitter(failing_sink)
        )

        response = await orchestrator.handle(request_factory("/a"))

        assert (response.status, response.body) == (200, b"body")


class TestTelemetryConsistency:
    """Exactly one record per request, consistent with the response."""

    @pytest.mark.asyncio
    async def test_one_record_per_request(self, orchestrator_factory, request_factory, origin_stub, sink):
        origin_stub.serve("/ok", 200, b"ok")
        origin_stub.routes["/down"] = httpx.ReadTimeout("timed out")
        origin_stub.routes["/bug"] = RuntimeError("bug")
        orchestrator = orchestrator_factory()

        statuses = []
        for path in ["/ok", "/ok", "/missing", "/down", "/bug"]:
            statuses.append((await orchestrator.handle(request_factory(path))).status)

        pairs = [(e["cacheStatus"], e["eventType"]) for e in sink.events]
        assert statuses == [200, 200, 404, 404, 500]
        assert pairs == [
            ("MISS", "success"),
            ("HIT", "cache_hit"),
            ("MISS", "origin_error"),
            ("MISS", "origin_error"),
            ("ERROR", "error"),
        ]

    @pytest.mark.asyncio
    async def test_response_time_in_milliseconds(self, orchestrator_factory, request_factory, cache_store, sink):
        cache_store.entries["s3-object:/a"] = {"status": 200, "headers": {}, "body": b"x"}
        orchestrator = orchestrator_factory(clock=FakeClock(step=0.0125))

        await orchestrator.handle(request_factory("/a"))

        assert sink.events[0]["responseTime"] == 12
        assert isinstance(sink.events[0]["responseTime"], int)

    @pytest.mark.asyncio
    async def test_request_context_in_record(self, orchestrator_factory, request_factory, cache_store, sink):
        cache_store.entries["s3-object:/a"] = {"status": 200, "headers": {}, "body": b"x"}
        orchestrator = orchestrator_factory()

        await orchestrator.handle(request_factory("/a"))

        event = sink.events[0]
        assert event["ip"] == "203.0.113.7"
        assert event["userAgent"] == "pytest-agent/1.0"
        assert event["domain"] == "cdn.example.com"
        assert event["url"] == "https://cdn.example.com/a"
        assert event["service"] == "edge-test"


@pytest.mark.asyncio
async def test_origin_metrics(orchestrator_factory, request_factory, origin_stub):
    metrics = MagicMock()
    origin_stub.serve("/a", 200, b"x")
    orchestrator = orchestrator_factory(metrics=metrics)

    await orchestrator.handle(request_factory("/a"))
    await orchestrator.handle(request_factory("/missing"))

    metrics.increment_counter.assert_any_call("edge_origin_fetches_total", outcome="success")
    metrics.increment_counter.assert_any_call("edge_origin_fetches_total", outcome="failure")


@pytest.mark.asyncio
async def test_cached_object_copy_is_equal_but_distinct():
    original = CachedObject(body=b"abc", headers={"a": "1"})

    duplicate = original.copy()

    assert duplicate == original
    assert duplicate.headers is not original.headers
