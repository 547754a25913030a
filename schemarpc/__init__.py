"""schemarpc - a JSON-RPC 2.0 server core with JSON Schema validated params."""

from schemarpc.core.errors import CommandError
from schemarpc.rpc import (
    CommandRegistry,
    ErrorResponse,
    RegistryBuilder,
    RequestProcessor,
    SuccessResponse,
)

__version__ = "0.1.0"

__all__ = [
    "CommandError",
    "CommandRegistry",
    "ErrorResponse",
    "RegistryBuilder",
    "RequestProcessor",
    "SuccessResponse",
    "__version__",
]
