"""
Telemetry event schema.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..context import RequestContext
from ..models import CacheStatus, EventType, Headers


def to_json(value: Any) -> str:
    """Compact JSON, matching the separators consumers already parse."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class TelemetryOutcome:
    """Outcome fields the orchestrator reports for a request."""
    cache_status: CacheStatus
    event_type: EventType
    response_time_ms: int
    origin_response_headers: Optional[Headers] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class TelemetryEvent:
    """One telemetry record, rendered in the fixed field order."""
    service: str
    version: str
    context: RequestContext
    outcome: TelemetryOutcome

    def to_record(self, legacy_field_names: bool = False) -> Dict[str, Any]:
        ctx = self.context
        origin_headers = self.outcome.origin_response_headers
        origin_field = "s3ResponseHeaders" if legacy_field_names else "originResponseHeaders"

        return {
            "service": self.service,
            "version": self.version,
            "timestamp": ctx.timestamp,
            "ip": ctx.ip,
            "domain": ctx.domain,
            "path": ctx.path,
            "method": ctx.method,
            "userAgent": ctx.user_agent,
            "referer": ctx.referer,
            "requestHeaders": ctx.request_headers,
            "requestHeadersJson": to_json(ctx.request_headers),
            "url": ctx.url,
            "cacheStatus": self.outcome.cache_status.value,
            "responseTime": int(self.outcome.response_time_ms),
            origin_field: origin_headers,
            f"{origin_field}Json": to_json(origin_headers) if origin_headers is not None else None,
            "error": self.outcome.error,
            "eventType": self.outcome.event_type.value,
        }

    def serialize(self, legacy_field_names: bool = False) -> str:
        return to_json(self.to_record(legacy_field_names))
