"""JSON-RPC 2.0 types for the schemarpc request pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

JSONRPC_VERSION = "2.0"

# JSON-RPC ids are strings, numbers or null
RequestId = str | int | float | None


@dataclass
class Request:
    """A well-formed JSON-RPC 2.0 request envelope.

    Attributes:
        jsonrpc: Protocol version, always "2.0".
        method: Name of the method to invoke.
        params: Named parameters, or None when the request carried none.
        id: Correlation id from the request.
        has_id: False when the request had no "id" member at all (notification).
    """

    jsonrpc: str
    method: str
    params: dict[str, Any] | None = None
    id: RequestId = None
    has_id: bool = True

    @property
    def is_notification(self) -> bool:
        """Return True if the request carried no id member."""
        return not self.has_id


@dataclass(frozen=True)
class WellFormedEntry:
    """A batch element (or single body) that passed envelope checks."""

    request: Request

    @property
    def id(self) -> RequestId:
        return self.request.id


@dataclass(frozen=True)
class MalformedEntry:
    """A batch element (or single body) that failed envelope checks.

    Attributes:
        raw: The decoded JSON value as received.
        reason: Why the envelope was rejected (for logs, never sent to clients).
        id: The element's id if one could be recovered, else None.
    """

    raw: Any
    reason: str
    id: RequestId = None


RequestEntry = WellFormedEntry | MalformedEntry


@dataclass
class RequestCollection:
    """Ordered entries parsed from one request body.

    Attributes:
        entries: Entries in order of appearance in the body.
        is_batch: True only if the body was a JSON array.
    """

    entries: list[RequestEntry] = field(default_factory=list)
    is_batch: bool = False

    def __post_init__(self) -> None:
        if not self.is_batch and len(self.entries) != 1:
            raise ValueError(
                f"A non-batch collection holds exactly one entry, got {len(self.entries)}"
            )

    @property
    def is_empty_batch(self) -> bool:
        return self.is_batch and not self.entries


@dataclass(frozen=True)
class ParseFailure:
    """The request body was not valid JSON."""

    message: str


@dataclass(frozen=True)
class SuccessResponse:
    """Successful JSON-RPC response.

    Handlers build these with only ``result``; ``id`` and ``time`` are filled in
    by the dispatcher and the assembler.
    """

    result: Any = None
    id: RequestId = None
    time: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "result": self.result,
            "id": self.id,
        }
        if self.time is not None:
            data["time"] = self.time
        return data


@dataclass(frozen=True)
class ErrorResponse:
    """JSON-RPC error response.

    Attributes:
        code: JSON-RPC error code.
        message: Short human-readable description.
        data: Optional structured detail; omitted from the wire when None.
        id: Correlation id of the originating request.
        time: ISO-8601 timestamp stamped at assembly.
    """

    code: int
    message: str
    data: Any = None
    id: RequestId = None
    time: str | None = None

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        data: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "error": error,
            "id": self.id,
        }
        if self.time is not None:
            data["time"] = self.time
        return data


Response = SuccessResponse | ErrorResponse
