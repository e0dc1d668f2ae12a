"""Configuration models for the metric tracking service."""

import os
from enum import Enum
from pathlib import Path
from typing import List
from pydantic import BaseModel, Field


def _load_env_file():
    """Load environment variables from .env file in common locations."""
    env_paths = [
        Path.cwd() / ".env",  # Current directory
        Path(__file__).parent.parent / ".env",  # Package directory
    ]

    for env_path in env_paths:
        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)
            break


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class StorageBackend(str, Enum):
    """Available storage backends."""
    SQLITE = "sqlite"
    MEMORY = "memory"


class DatabaseConfig(BaseModel):
    """Database connection configuration."""
    path: Path = Field(default_factory=lambda: Path("data/metrics.db"))
    connection_timeout: int = Field(default=30, description="Connection timeout in seconds")

    def model_post_init(self, __context) -> None:
        """Ensure database path is absolute."""
        if not self.path.is_absolute():
            # Make relative to the current working directory
            self.path = Path.cwd() / self.path

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """Create from environment variables."""
        return cls(
            path=Path(os.getenv("METRIC_DB_PATH", "data/metrics.db")),
            connection_timeout=int(os.getenv("METRIC_DB_TIMEOUT", "30")),
        )


class ApiConfig(BaseModel):
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "ApiConfig":
        """Create from environment variables."""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


class ChartConfig(BaseModel):
    """Chart building limits."""
    max_range_days: int = Field(
        default=3660,
        ge=1,
        description="Longest chart range accepted, in days",
    )

    @classmethod
    def from_env(cls) -> "ChartConfig":
        """Create from environment variables."""
        return cls(max_range_days=int(os.getenv("MAX_CHART_DAYS", "3660")))


class ServiceConfig(BaseModel):
    """Complete service configuration."""
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageBackend = StorageBackend.SQLITE
    api: ApiConfig = Field(default_factory=ApiConfig)
    chart: ChartConfig = Field(default_factory=ChartConfig)

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    @classmethod
    def from_env(cls) -> "ServiceConfig":
        """Create the full configuration from environment variables."""
        _load_env_file()
        return cls(
            database=DatabaseConfig.from_env(),
            storage=StorageBackend(os.getenv("METRIC_STORAGE", StorageBackend.SQLITE.value)),
            api=ApiConfig.from_env(),
            chart=ChartConfig.from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=_env_bool("LOG_JSON", True),
        )
