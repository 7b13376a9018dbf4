"""
Value types shared by the edge gateway components.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, Union


Headers = Dict[str, str]


def collect_headers(items: Iterable[Tuple[str, str]]) -> Headers:
    """Fold raw header pairs into an insertion-ordered mapping.

    Names are lower-cased; a repeated header keeps the position of its first
    occurrence and its values are joined with ", ".
    """
    headers: Headers = {}
    for name, value in items:
        key = name.lower()
        if key in headers:
            headers[key] = f"{headers[key]}, {value}"
        else:
            headers[key] = value
    return headers


class CacheStatus(str, Enum):
    """Cache outcome reported in telemetry."""
    HIT = "HIT"
    MISS = "MISS"
    ERROR = "ERROR"


class EventType(str, Enum):
    """Telemetry event classification."""
    CACHE_HIT = "cache_hit"
    SUCCESS = "success"
    ORIGIN_ERROR = "origin_error"
    ERROR = "error"


@dataclass(frozen=True)
class CachedObject:
    """Object body and headers as stored in the cache."""
    body: bytes
    headers: Headers = field(default_factory=dict)
    status: int = 200

    def copy(self) -> "CachedObject":
        return CachedObject(body=bytes(self.body), headers=dict(self.headers), status=self.status)


@dataclass(frozen=True)
class OriginSuccess:
    """Origin answered with a 2xx response."""
    status: int
    body: bytes
    headers: Headers = field(default_factory=dict)

    def to_cached_object(self) -> CachedObject:
        return CachedObject(body=bytes(self.body), headers=dict(self.headers), status=self.status)


@dataclass(frozen=True)
class OriginFailure:
    """Origin answered with a non-2xx response."""
    status: int
    headers: Headers = field(default_factory=dict)


@dataclass(frozen=True)
class OriginTransportError:
    """Origin could not be reached (connect, DNS, timeout, read errors)."""
    cause: BaseException


OriginResult = Union[OriginSuccess, OriginFailure, OriginTransportError]


@dataclass(frozen=True)
class EdgeResponse:
    """Client-visible response produced by the orchestrator."""
    status: int
    body: bytes
    headers: Headers = field(default_factory=dict)

    @classmethod
    def not_found(cls) -> "EdgeResponse":
        return cls(status=404, body=b"Not Found", headers={"content-type": "text/plain;charset=UTF-8"})

    @classmethod
    def internal_error(cls) -> "EdgeResponse":
        return cls(
            status=500,
            body=b"Internal Server Error",
            headers={"content-type": "text/plain;charset=UTF-8"},
        )

    @classmethod
    def from_cached(cls, cached: CachedObject) -> "EdgeResponse":
        return cls(status=cached.status, body=cached.body, headers=dict(cached.headers))

    @classmethod
    def from_origin(cls, result: OriginSuccess) -> "EdgeResponse":
        return cls(status=result.status, body=result.body, headers=dict(result.headers))


def origin_headers_of(result: Optional[OriginResult]) -> Optional[Headers]:
    """Headers of an origin response, or None when no response was received."""
    if isinstance(result, (OriginSuccess, OriginFailure)):
        return dict(result.headers)
    return None
