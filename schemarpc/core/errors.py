"""Typed exception hierarchy for schemarpc."""

from __future__ import annotations

from typing import Any


class SchemaRpcError(Exception):
    """Base class for all schemarpc errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigError(SchemaRpcError):
    """Raised for configuration issues (missing file, invalid JSON, validation failure)."""


class LoadError(SchemaRpcError):
    """Base class for loading errors (config files, schema documents)."""


class SchemaLoadError(LoadError):
    """Raised when a schema document exists but cannot be used.

    A missing schema file is not an error at this level; the store reports it
    as absent and the dispatcher answers Method not found.
    """

    def __init__(self, method: str, reason: str) -> None:
        self.method = method
        self.reason = reason
        super().__init__(f"Cannot load schema for '{method}': {reason}")


class RegistryError(SchemaRpcError):
    """Raised when a command registry cannot be built or imported."""


# Codes -32768..-32000 are reserved by JSON-RPC 2.0. Only the five
# pre-defined codes and the server error range may be produced.
_RESERVED_MIN = -32768
_RESERVED_MAX = -32000
_PREDEFINED_CODES = frozenset({-32700, -32600, -32601, -32602, -32603})
_SERVER_ERROR_MIN = -32099


class CommandError(SchemaRpcError):
    """Raised by a command handler to produce a domain error response.

    Handlers may either return an ErrorResponse or raise this; both reach the
    client as the same error object.

    Attributes:
        code: JSON-RPC error code.
        data: Optional structured error data.
    """

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        if (
            _RESERVED_MIN <= code <= _RESERVED_MAX
            and code not in _PREDEFINED_CODES
            and not _SERVER_ERROR_MIN <= code <= _RESERVED_MAX
        ):
            raise ValueError(f"Error code {code} is reserved by JSON-RPC 2.0")
        self.code = code
        self.data = data
        super().__init__(message)
