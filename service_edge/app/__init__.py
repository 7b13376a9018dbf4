"""
Edge gateway service package for the Edge Content Gateway.

The gateway answers object requests at the edge:
- Caching: cache-aside lookups against the regional Redis store (fixed TTL)
- Origin: fetch-through from the S3-style origin bucket on a miss
- Telemetry: exactly one analytics record per request

Structure:
- app.main: FastAPI host, routes, and component wiring.
- app.orchestrator: per-request decision sequence and error taxonomy.
- app.context: immutable request context extraction.
- app.caching: cache key, cache gateway, and Redis store.
- app.adapters: origin HTTP client.
- app.telemetry: record schema, emitter, and analytics sinks.
"""
