"""
Shared configuration management for the Edge Content Gateway.
"""

from typing import Literal, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    log_level: str = Field(default="info")


class EdgeConfig(BaseConfig):
    """Process-wide configuration for the edge gateway.

    Built once at startup and handed to each component constructor; nothing
    reads it per request.
    """

    service_name: str = "edge"
    host: str = "0.0.0.0"
    port: int = 8000

    # Origin (S3-style bucket)
    origin_region: str = Field(default="us-east-1")
    origin_bucket: str = Field(default="edge-content")
    origin_endpoint: Optional[str] = Field(default=None)
    origin_access_key_id: SecretStr = Field(default=SecretStr(""))
    origin_secret_access_key: SecretStr = Field(default=SecretStr(""))
    origin_timeout_seconds: float = Field(default=10.0, gt=0)

    # Cache store
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_socket_timeout_seconds: float = Field(default=5.0, gt=0)
    cache_ttl_seconds: int = Field(default=800, ge=0)
    cache_stale_window_seconds: int = Field(default=0, ge=0)

    # Telemetry
    telemetry_sink: Literal["log", "kafka"] = Field(default="log")
    telemetry_service_name: str = Field(default="edge-content-gateway")
    telemetry_service_version: str = Field(default="1.0.0")
    telemetry_legacy_field_names: bool = Field(default=False)
    kafka_bootstrap: str = Field(default="localhost:9092")
    telemetry_topic: str = Field(default="edge.requests.telemetry.v1")


def get_config(**overrides) -> EdgeConfig:
    """Build the gateway configuration from the environment."""
    return EdgeConfig(**overrides)
