"""
Origin fetcher for the edge gateway.
"""

from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit

import httpx

from shared.logging import get_logger
from shared.errors import ConfigurationError
from ..models import OriginFailure, OriginResult, OriginSuccess, OriginTransportError, collect_headers


@dataclass(frozen=True)
class OriginCredentials:
    """Static origin credentials."""
    access_key_id: str
    secret_access_key: str

    def auth_headers(self) -> Dict[str, str]:
        if not self.access_key_id:
            return {}
        return {"Authorization": f"AWS {self.access_key_id}:{self.secret_access_key}"}


class OriginFetcher:
    """Retrieves objects from the origin bucket.

    Every outcome is returned as an OriginResult: a non-2xx answer is an
    OriginFailure and an unreachable origin is an OriginTransportError. No
    retries are attempted here.
    """

    def __init__(
        self,
        bucket: str,
        region: str,
        credentials: OriginCredentials,
        *,
        endpoint: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        if not endpoint and not bucket:
            raise ConfigurationError("Origin bucket or endpoint must be configured")

        if endpoint:
            self.base_url = endpoint.rstrip('/')
            self.host = urlsplit(self.base_url).netloc
        else:
            self.host = f"{bucket}.s3.{region}.amazonaws.com"
            self.base_url = f"https://{self.host}"

        self.credentials = credentials
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.logger = get_logger("edge.origin_fetcher")

    @staticmethod
    def object_key(path: str) -> str:
        return path[1:] if path.startswith('/') else path

    def build_request(self, path: str) -> httpx.Request:
        """Build the origin GET request for a request path."""
        url = f"{self.base_url}/{self.object_key(path)}"
        headers = {"Host": self.host}
        headers.update(self.credentials.auth_headers())
        return self.client.build_request("GET", url, headers=headers)

    async def fetch(self, path: str) -> OriginResult:
        """Fetch the object behind a request path."""
        request = self.build_request(path)

        # Raw bytes keep the body identical to what origin sent, including any
        # content-encoding named in the headers.
        try:
            response = await self.client.send(request, stream=True)
            try:
                body = b"".join([chunk async for chunk in response.aiter_raw()])
            finally:
                await response.aclose()
        except httpx.TransportError as exc:
            self.logger.warning("Origin transport error", url=str(request.url), error=str(exc))
            return OriginTransportError(cause=exc)

        headers = collect_headers(response.headers.multi_items())
        if not response.is_success:
            self.logger.info(
                "Origin returned non-success status",
                url=str(request.url),
                status_code=response.status_code,
            )
            return OriginFailure(status=response.status_code, headers=headers)

        self.logger.debug("Origin object retrieved", url=str(request.url), status_code=response.status_code)
        return OriginSuccess(status=response.status_code, body=body, headers=headers)

    async def close(self) -> None:
        await self.client.aclose()
