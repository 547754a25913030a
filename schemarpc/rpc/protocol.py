"""JSON-RPC 2.0 envelope parsing and response helpers."""

from __future__ import annotations

import json
import logging
from typing import Any

from schemarpc.rpc.types import (
    JSONRPC_VERSION,
    ErrorResponse,
    MalformedEntry,
    ParseFailure,
    Request,
    RequestCollection,
    RequestEntry,
    RequestId,
    SuccessResponse,
    WellFormedEntry,
)

logger = logging.getLogger(__name__)

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000  # Server error range: -32000 to -32099
SERVER_ERROR_MIN = -32099
SERVER_ERROR_MAX = -32000

ERROR_MESSAGES = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INVALID_PARAMS: "Invalid params",
    INTERNAL_ERROR: "Internal error",
}


def is_server_error_code(code: int) -> bool:
    """Return True if code lies in the implementation-defined server error range."""
    return SERVER_ERROR_MIN <= code <= SERVER_ERROR_MAX


def is_valid_id(value: Any) -> bool:
    """Return True if value can be used as a JSON-RPC id."""
    if isinstance(value, bool):
        return False
    return value is None or isinstance(value, (str, int, float))


def _reject_constant(name: str) -> Any:
    # json accepts NaN, Infinity and -Infinity, which RFC 8259 does not
    raise ValueError(f"{name} is not a JSON value")


def parse_entries(raw_body: str) -> RequestCollection | ParseFailure:
    """Parse a raw request body into ordered request entries.

    Args:
        raw_body: The request body text.

    Returns:
        A RequestCollection, or a ParseFailure if the body is not valid JSON.
        An empty JSON array yields an empty batch collection.
    """
    try:
        data = json.loads(raw_body, parse_constant=_reject_constant)
    except RecursionError:
        return ParseFailure("Invalid JSON: nesting too deep")
    except (ValueError, TypeError) as e:
        return ParseFailure(f"Invalid JSON: {e}")

    if isinstance(data, list):
        return RequestCollection(
            entries=[classify_entry(item) for item in data],
            is_batch=True,
        )

    return RequestCollection(entries=[classify_entry(data)], is_batch=False)


def classify_entry(value: Any) -> RequestEntry:
    """Classify one decoded JSON value as a well-formed or malformed entry.

    Args:
        value: A single batch element, or the whole decoded body.

    Returns:
        WellFormedEntry wrapping a Request, or MalformedEntry with a reason.
    """
    if not isinstance(value, dict):
        return _malformed(value, f"Request must be a JSON object, got {type(value).__name__}")

    # Recover the id for error correlation even when the rest is broken
    has_id = "id" in value
    request_id = value.get("id")
    if has_id and not is_valid_id(request_id):
        return _malformed(
            value,
            f"id must be string, number, or null, got: {type(request_id).__name__}",
        )

    jsonrpc = value.get("jsonrpc")
    if jsonrpc != JSONRPC_VERSION:
        return _malformed(value, f"jsonrpc must be '2.0', got: {jsonrpc!r}", request_id)

    method = value.get("method")
    if not isinstance(method, str):
        return _malformed(
            value, f"method must be a string, got: {type(method).__name__}", request_id
        )
    if not method:
        return _malformed(value, "method must not be empty", request_id)

    params = value.get("params")
    if isinstance(params, list):
        return _malformed(
            value,
            "Positional params (array) not supported, use named params (object)",
            request_id,
        )
    if params is not None and not isinstance(params, dict):
        return _malformed(
            value, f"params must be an object, got: {type(params).__name__}", request_id
        )

    return WellFormedEntry(
        Request(
            jsonrpc=jsonrpc,
            method=method,
            params=params,
            id=request_id,
            has_id=has_id,
        )
    )


def _malformed(value: Any, reason: str, request_id: RequestId = None) -> MalformedEntry:
    logger.warning("Rejecting malformed request entry: %s", reason)
    return MalformedEntry(raw=value, reason=reason, id=request_id)


def make_error_response(
    request_id: RequestId,
    code: int,
    message: str | None = None,
    data: Any = None,
) -> ErrorResponse:
    """Create an error response.

    Args:
        request_id: The id from the original request.
        code: JSON-RPC error code.
        message: Human-readable message. Defaults to the standard text for
            the pre-defined codes.
        data: Optional additional error data.

    Returns:
        An ErrorResponse carrying the request id.
    """
    if message is None:
        message = ERROR_MESSAGES.get(code, "Server error")
    return ErrorResponse(code=code, message=message, data=data, id=request_id)


def make_success_response(request_id: RequestId, result: Any) -> SuccessResponse:
    """Create a success response.

    Args:
        request_id: The id from the original request.
        result: The result of the method call.

    Returns:
        A SuccessResponse carrying the request id.
    """
    return SuccessResponse(result=result, id=request_id)


def serialize_output(output: dict[str, Any] | list[dict[str, Any]]) -> str:
    """Serialize an assembled output value to compact JSON text.

    Raises:
        ValueError: If the output holds a non-finite float.
    """
    return json.dumps(output, separators=(",", ":"), allow_nan=False, default=str)
