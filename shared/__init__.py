"""
Shared utilities for the Edge Content Gateway.

Building blocks the edge service is assembled from:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Gateway error types and responses
- base_service: FastAPI host with health, metrics and error handling

Do not import from service_edge into shared/.
"""
