"""
Request context package.

Turns the raw inbound request into the immutable RequestContext consumed by
caching, origin and telemetry components.
"""

from .extractor import InboundRequest, RequestContext, extract_request_context

__all__ = [
    "InboundRequest",
    "RequestContext",
    "extract_request_context",
]
