"""
Shared error handling for the Edge Content Gateway.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Structured error description, used for local logs only."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class EdgeGatewayException(Exception):
    """Base exception for edge gateway components."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class CacheStoreError(EdgeGatewayException):
    """Cache store lookup or write failed."""

    def __init__(self, message: str = "Cache store error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CACHE_STORE_ERROR", message, details)


class TelemetrySinkError(EdgeGatewayException):
    """Analytics sink could not accept a record."""

    def __init__(self, message: str = "Telemetry sink error", details: Optional[Dict[str, Any]] = None):
        super().__init__("TELEMETRY_SINK_ERROR", message, details)


class ConfigurationError(EdgeGatewayException):
    """Invalid or incomplete configuration."""

    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)
