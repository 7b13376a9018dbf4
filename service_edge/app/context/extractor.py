"""
Request context extraction for the edge gateway.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from urllib.parse import quote, urlsplit

from starlette.requests import Request

from ..models import Headers, collect_headers


UNKNOWN = "unknown"

# Checked in order; the first non-empty value wins.
CLIENT_IP_HEADERS = ("fastly-client-ip", "x-forwarded-for", "x-real-ip")


@dataclass(frozen=True)
class InboundRequest:
    """Host-neutral view of the raw inbound request."""
    method: str
    url: str
    headers: List[Tuple[str, str]] = field(default_factory=list)

    @classmethod
    def from_starlette(cls, request: Request) -> "InboundRequest":
        return cls(
            method=request.method,
            url=raw_request_url(request),
            headers=list(request.headers.items()),
        )


def raw_request_url(request: Request) -> str:
    """Request URL rebuilt from the raw request target.

    Starlette's ``request.url`` is assembled from the percent-decoded path, so
    ``/a%3Fb`` would come back as ``/a?b``. The raw path keeps the encoding the
    client sent.
    """
    scope = request.scope
    raw_path = scope.get("raw_path")
    if raw_path is not None:
        path = raw_path.decode("latin-1")
    else:
        path = quote(scope.get("path", ""), safe="/:@!$&'()*+,;=~")

    root_path = scope.get("root_path", "")
    if root_path and not path.startswith(root_path):
        path = root_path + path

    query = scope.get("query_string", b"").decode("latin-1")
    return str(request.url.replace(path=path, query=query, fragment=""))


@dataclass(frozen=True)
class RequestContext:
    """Immutable snapshot of one inbound request."""
    timestamp: str
    ip: str
    domain: str
    path: str
    method: str
    request_headers: Headers
    user_agent: str
    referer: Optional[str]
    url: str


def format_timestamp(moment: datetime) -> str:
    """Render a UTC ISO-8601 timestamp with milliseconds and a Z suffix."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resolve_client_ip(headers: Headers) -> str:
    for name in CLIENT_IP_HEADERS:
        value = headers.get(name)
        if value:
            return value
    return UNKNOWN


def extract_request_context(request: InboundRequest, now: Optional[datetime] = None) -> RequestContext:
    """Build the RequestContext for a request. Never raises."""
    headers = collect_headers(request.headers)

    try:
        parts = urlsplit(request.url)
        domain = parts.hostname or ""
        path = parts.path
    except ValueError:
        domain, path = "", ""

    return RequestContext(
        timestamp=format_timestamp(now or datetime.now(timezone.utc)),
        ip=resolve_client_ip(headers),
        domain=domain,
        path=path,
        method=request.method,
        request_headers=headers,
        user_agent=headers.get("user-agent") or UNKNOWN,
        referer=headers.get("referer") or None,
        url=request.url,
    )
