"""
Configuration management for the vtgate gRPC client.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings with validation."""

    model_config = SettingsConfigDict(
        env_prefix="VTGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Environment
    environment: str = Field(default="development", description="Deployment environment")

    # Gateway
    address: str = Field(
        default="localhost:15991",
        description="host:port of the vtgate gRPC endpoint"
    )
    secure: bool = Field(default=False, description="Use a TLS channel")
    root_certificates: Optional[str] = Field(
        default=None,
        description="Path to PEM-encoded root certificates for TLS"
    )

    # Calls
    default_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        description="Timeout applied when the caller's context has no deadline"
    )
    max_receive_message_length: int = Field(default=16 * 1024 * 1024, ge=1)
    keepalive_time_ms: Optional[int] = Field(default=None, ge=1)

    # Observability
    log_level: str = Field(default="INFO")

    @field_validator("environment")
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = ["development", "staging", "production", "testing"]
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    def channel_options(self) -> list:
        """gRPC channel arguments derived from these settings."""
        options = [("grpc.max_receive_message_length", self.max_receive_message_length)]
        if self.keepalive_time_ms is not None:
            options.append(("grpc.keepalive_time_ms", self.keepalive_time_ms))
        return options


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

