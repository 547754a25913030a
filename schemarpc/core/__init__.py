"""Core types shared across schemarpc."""

from schemarpc.core.errors import (
    CommandError,
    ConfigError,
    LoadError,
    RegistryError,
    SchemaLoadError,
    SchemaRpcError,
)

__all__ = [
    "CommandError",
    "ConfigError",
    "LoadError",
    "RegistryError",
    "SchemaLoadError",
    "SchemaRpcError",
]
