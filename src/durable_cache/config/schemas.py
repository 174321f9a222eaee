"""
Durable Cache — Configuration Schemas

Defines typed configuration models using Pydantic for validation and type safety.
All configuration is defined here and validated when loaded.
"""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _default_directory() -> str:
    return str(Path.home() / ".cache" / "durable_cache")


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class StoreBackend(str, Enum):
    """Supported persistent store backends."""

    MEMORY = "memory"  # Process-local, not durable
    FILE = "file"
    SQLITE = "sqlite"
    REDIS = "redis"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    TEXT = "text"


class NonConformingFloatStrategy(str, Enum):
    """How the JSON codec treats infinity and NaN."""

    RAISE = "raise"  # Refuse to encode
    CONSTANTS = "constants"  # Infinity / -Infinity / NaN literals
    STRINGS = "strings"  # Configured string tokens


class StoreConfig(BaseModel):
    """Persistent store configuration."""

    backend: StoreBackend = Field(default=StoreBackend.FILE, description="Persistent store backend to use")
    namespace: str = Field(default="durable_cache", min_length=1, description="Key namespace/prefix")

    # File-specific settings (only used when backend=file)
    directory: str = Field(default_factory=_default_directory, description="Root directory for file records")

    # SQLite-specific settings (only used when backend=sqlite)
    sqlite_path: str | None = Field(
        default=None,
        description="Path to SQLite database file (default: <directory>/durable_cache.db)",
    )

    # Redis-specific settings (only used when backend=redis)
    redis_url: str | None = Field(default=None, description="Redis connection URL")
    redis_max_connections: int = Field(default=10, ge=1, description="Redis connection pool size")
    redis_socket_timeout: int = Field(default=5, ge=1, description="Redis socket timeout in seconds")

    @model_validator(mode="after")
    def validate_redis_url(self) -> "StoreConfig":
        """Ensure redis_url is provided when backend is redis."""
        if self.backend == StoreBackend.REDIS and not self.redis_url:
            raise ValueError("redis_url is required when store backend is 'redis'")
        return self

    def resolved_sqlite_path(self) -> str:
        """Return the SQLite path, falling back to a file inside directory."""
        return self.sqlite_path or str(Path(self.directory) / "durable_cache.db")


class CodecConfig(BaseModel):
    """Default JSON codec configuration."""

    float_strategy: NonConformingFloatStrategy = Field(
        default=NonConformingFloatStrategy.RAISE,
        description="Handling of infinity and NaN values",
    )
    positive_infinity: str = Field(default="INF", min_length=1, description="Token for +infinity (strings strategy)")
    negative_infinity: str = Field(default="-INF", min_length=1, description="Token for -infinity (strings strategy)")
    nan: str = Field(default="NaN", min_length=1, description="Token for NaN (strings strategy)")
    indent: int | None = Field(default=None, ge=0, description="JSON indentation (None = compact)")
    sort_keys: bool = Field(default=False, description="Sort object keys in encoded output")

    @model_validator(mode="after")
    def validate_tokens(self) -> "CodecConfig":
        """Float tokens must be distinguishable from one another."""
        tokens = {self.positive_infinity, self.negative_infinity, self.nan}
        if len(tokens) != 3:
            raise ValueError("positive_infinity, negative_infinity and nan tokens must be distinct")
        return self


class DurableCacheConfig(BaseModel):
    """Root configuration for the durable cache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging output format")

    store: StoreConfig = Field(default_factory=StoreConfig)
    codec: CodecConfig = Field(default_factory=CodecConfig)

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)
