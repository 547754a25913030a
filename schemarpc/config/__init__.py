"""Configuration loading and validation."""

from schemarpc.config.loader import DEFAULT_CONFIG_NAME, load_config
from schemarpc.config.schema import (
    CacheConfig,
    Config,
    DispatchConfig,
    SchemaConfig,
    ServerConfig,
)

__all__ = [
    "CacheConfig",
    "Config",
    "DEFAULT_CONFIG_NAME",
    "DispatchConfig",
    "SchemaConfig",
    "ServerConfig",
    "load_config",
]
