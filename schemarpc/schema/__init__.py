"""Schema storage, caching and parameter validation."""

from schemarpc.schema.cache import (
    DEFAULT_TTL,
    CacheBackend,
    CacheEntry,
    MemoryCache,
    NullCache,
    SchemaCache,
)
from schemarpc.schema.store import FileSchemaStore, SchemaStore, is_safe_method_name
from schemarpc.schema.validator import ParameterValidator, Violation

__all__ = [
    "DEFAULT_TTL",
    "CacheBackend",
    "CacheEntry",
    "FileSchemaStore",
    "MemoryCache",
    "NullCache",
    "ParameterValidator",
    "SchemaCache",
    "SchemaStore",
    "Violation",
    "is_safe_method_name",
]
