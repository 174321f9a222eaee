"""
Durable Cache — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the process.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import DurableCacheConfig

logger = logging.getLogger(__name__)

_config_instance: DurableCacheConfig | None = None


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> DurableCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in current directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated DurableCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    # Load .env file if exists
    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    # Auto-detect store backend: Redis if REDIS_URL is set, else file
    redis_url = os.getenv("REDIS_URL")
    store_backend = "redis" if redis_url else "file"

    indent = os.getenv("DURABLE_CACHE_JSON_INDENT")

    store: dict[str, object] = {
        "backend": os.getenv("DURABLE_CACHE_BACKEND", store_backend),
        "namespace": os.getenv("DURABLE_CACHE_NAMESPACE", "durable_cache"),
        "sqlite_path": os.getenv("DURABLE_CACHE_SQLITE_PATH"),
        "redis_url": redis_url,
        "redis_max_connections": os.getenv("REDIS_MAX_CONNECTIONS", "10"),
        "redis_socket_timeout": os.getenv("REDIS_SOCKET_TIMEOUT", "5"),
    }
    # Only override the directory default when explicitly configured
    if os.getenv("DURABLE_CACHE_DIR"):
        store["directory"] = os.getenv("DURABLE_CACHE_DIR")

    config_dict = {
        "environment": os.getenv("ENVIRONMENT", "development"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_format": os.getenv("LOG_FORMAT", "json"),
        "store": store,
        "codec": {
            "float_strategy": os.getenv("DURABLE_CACHE_FLOAT_STRATEGY", "raise"),
            "positive_infinity": os.getenv("DURABLE_CACHE_POSITIVE_INFINITY", "INF"),
            "negative_infinity": os.getenv("DURABLE_CACHE_NEGATIVE_INFINITY", "-INF"),
            "nan": os.getenv("DURABLE_CACHE_NAN", "NaN"),
            "indent": indent if indent else None,
            "sort_keys": _env_flag("DURABLE_CACHE_SORT_KEYS"),
        },
    }

    try:
        _config_instance = DurableCacheConfig(**config_dict)  # type: ignore[arg-type]
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "store_backend": _config_instance.store.backend},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> DurableCacheConfig:
    """
    Get the current configuration instance.

    Loads configuration from the environment on first access.

    Returns:
        Current DurableCacheConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> DurableCacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded DurableCacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """
    Drop the loaded configuration so the next get_config() reloads it.

    Warning: Only use this in testing contexts.
    """
    global _config_instance
    _config_instance = None
