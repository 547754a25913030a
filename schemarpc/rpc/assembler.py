"""Assembly of per-entry responses into the final JSON-RPC output value."""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from schemarpc.rpc.protocol import (
    INVALID_REQUEST,
    PARSE_ERROR,
    make_error_response,
)
from schemarpc.rpc.types import (
    ErrorResponse,
    MalformedEntry,
    ParseFailure,
    RequestCollection,
    Response,
)

OutputValue = dict[str, Any] | list[dict[str, Any]]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResponseAssembler:
    """Stamps responses and shapes them as a single object or a batch array.

    Args:
        clock: Returns the current time as an aware datetime. Called once per
            assemble() so that every response of a batch shares one timestamp.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock

    def timestamp(self) -> str:
        """Return the current time as ISO-8601 with UTC offset."""
        now = self._clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.isoformat()

    @staticmethod
    def reject(entry: MalformedEntry) -> ErrorResponse:
        """Build the Invalid Request response for a malformed entry."""
        return make_error_response(entry.id, INVALID_REQUEST)

    def assemble(
        self,
        collection: RequestCollection | ParseFailure,
        responses: list[Response] | None = None,
    ) -> OutputValue:
        """Build the output value for one request body.

        Args:
            collection: The parsed body, or the parse failure.
            responses: One response per entry, aligned with collection.entries.

        Returns:
            A single response object for parse failures, empty batches and
            single requests; a list of response objects for batches.

        Raises:
            ValueError: If responses are not aligned with the entries.
        """
        time = self.timestamp()

        if isinstance(collection, ParseFailure):
            error = make_error_response(None, PARSE_ERROR, data=collection.message)
            return self._stamp(error, time).to_dict()

        if collection.is_empty_batch:
            error = make_error_response(None, INVALID_REQUEST)
            return self._stamp(error, time).to_dict()

        responses = responses or []
        if len(responses) != len(collection.entries):
            raise ValueError(
                f"Got {len(responses)} responses for {len(collection.entries)} entries"
            )

        stamped = [self._stamp(r, time).to_dict() for r in responses]
        if not collection.is_batch:
            return stamped[0]
        return stamped

    @staticmethod
    def _stamp(response: Response, time: str) -> Response:
        return dataclasses.replace(response, time=time)
