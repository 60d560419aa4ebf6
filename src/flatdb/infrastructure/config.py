"""Configuration management for flatdb."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageConfig(BaseModel):
    """Storage configuration."""

    data_dir: Path = Field(
        default=Path("data"), description="Directory holding tables served over HTTP"
    )
    table_suffix: str = Field(default=".tsv", description="File suffix for served tables")
    encoding: str = Field(default="utf-8", description="Text encoding of table files")
    fsync: bool = Field(
        default=True, description="fsync rewritten tables before the atomic rename"
    )


class LockConfig(BaseModel):
    """Table lock configuration."""

    retry_interval_seconds: float = Field(
        default=0.05, gt=0, le=1.0, description="Delay between lock attempts"
    )
    timeout_seconds: float = Field(
        default=5.0, gt=0, le=300.0, description="Give up acquiring a lock after this long"
    )


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")
    metrics_port: int = Field(default=8001, ge=1, le=65535, description="Prometheus metrics port")
    metrics_enabled: bool = Field(default=False, description="Expose Prometheus metrics")


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(default="json", description="Log format")
    otel_endpoint: str | None = Field(
        default=None, description="OpenTelemetry collector endpoint"
    )
    otel_service_name: str = Field(default="flatdb", description="Service name for tracing")


class Config(BaseSettings):
    """Main configuration for flatdb."""

    model_config = SettingsConfigDict(
        env_prefix="FLATDB_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    lock: LockConfig = Field(default_factory=LockConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    def ensure_directories(self) -> None:
        """Ensure the data directory exists."""
        self.storage.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_config() -> Config:
    """Get the global configuration instance."""
    return Config()
