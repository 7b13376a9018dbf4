"""
Adapters package for the edge gateway.

Contains the HTTP client wrapper for the origin bucket. The adapter
encapsulates:

- The origin URL layout and request shape
- Authentication headers
- Mapping of HTTP outcomes onto OriginResult values

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .origin_fetcher import OriginCredentials, OriginFetcher

__all__ = [
    "OriginCredentials",
    "OriginFetcher",
]
