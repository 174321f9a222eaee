"""
Durable Cache — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    CodecConfig,
    DurableCacheConfig,
    Environment,
    LogFormat,
    LogLevel,
    NonConformingFloatStrategy,
    StoreBackend,
    StoreConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "DurableCacheConfig",
    # Enums
    "Environment",
    "StoreBackend",
    "LogLevel",
    "LogFormat",
    "NonConformingFloatStrategy",
    # Config sections
    "StoreConfig",
    "CodecConfig",
]
