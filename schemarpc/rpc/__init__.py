"""JSON-RPC 2.0 request pipeline.

Turns a raw request body into validated, dispatched and correlated
responses: single and batch requests, per-method params validation against
cached JSON Schemas, and the JSON-RPC error taxonomy.

Example usage:
    python -m schemarpc serve --registry myapp.rpc:build_registry
    curl -X POST http://localhost:8765/ \\
        -d '{"jsonrpc":"2.0","method":"user.get","params":{"id":7},"id":1}'
"""

from schemarpc.rpc.assembler import OutputValue, ResponseAssembler
from schemarpc.rpc.dispatcher import RequestDispatcher
from schemarpc.rpc.processor import RequestProcessor
from schemarpc.rpc.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    SERVER_ERROR_MAX,
    SERVER_ERROR_MIN,
    classify_entry,
    is_server_error_code,
    make_error_response,
    make_success_response,
    parse_entries,
    serialize_output,
)
from schemarpc.rpc.registry import (
    CommandDescriptor,
    CommandHandler,
    CommandRegistry,
    DtoFactory,
    RegistryBuilder,
)
from schemarpc.rpc.types import (
    ErrorResponse,
    MalformedEntry,
    ParseFailure,
    Request,
    RequestCollection,
    RequestEntry,
    RequestId,
    Response,
    SuccessResponse,
    WellFormedEntry,
)

__all__ = [
    # Types
    "Request",
    "RequestId",
    "RequestEntry",
    "WellFormedEntry",
    "MalformedEntry",
    "RequestCollection",
    "ParseFailure",
    "Response",
    "SuccessResponse",
    "ErrorResponse",
    "OutputValue",
    # Protocol functions
    "parse_entries",
    "classify_entry",
    "make_error_response",
    "make_success_response",
    "serialize_output",
    "is_server_error_code",
    # Error codes
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "SERVER_ERROR",
    "SERVER_ERROR_MIN",
    "SERVER_ERROR_MAX",
    # Commands
    "CommandDescriptor",
    "CommandHandler",
    "CommandRegistry",
    "DtoFactory",
    "RegistryBuilder",
    # Pipeline
    "RequestDispatcher",
    "ResponseAssembler",
    "RequestProcessor",
]
