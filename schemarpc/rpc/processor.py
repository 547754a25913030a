"""The full request pipeline: raw body in, JSON-RPC output out.

    raw body -> parse_entries -> entries
             -> RequestDispatcher (well-formed) / ResponseAssembler.reject (malformed)
             -> ResponseAssembler -> output value

RequestProcessor never raises for any input body; every failure is expressed
as a JSON-RPC error object in the output.
"""

from __future__ import annotations

import logging

from schemarpc.rpc.assembler import OutputValue, ResponseAssembler
from schemarpc.rpc.dispatcher import RequestDispatcher
from schemarpc.rpc.protocol import parse_entries, serialize_output
from schemarpc.rpc.types import (
    MalformedEntry,
    ParseFailure,
    Request,
    RequestCollection,
    Response,
    WellFormedEntry,
)

logger = logging.getLogger(__name__)


class RequestProcessor:
    """Turns one request body into one output value.

    Args:
        dispatcher: Runs well-formed requests.
        assembler: Shapes and stamps the output. Defaults to ResponseAssembler().
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        assembler: ResponseAssembler | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._assembler = assembler or ResponseAssembler()

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    async def process(self, raw_body: str) -> OutputValue:
        """Process a raw body and return the output as plain JSON values."""
        parsed = parse_entries(raw_body)
        if isinstance(parsed, ParseFailure):
            logger.debug("Request body is not valid JSON: %s", parsed.message)
            return self._assembler.assemble(parsed)

        responses = await self._respond(parsed)
        return self._assembler.assemble(parsed, responses)

    async def handle(self, raw_body: str) -> str:
        """Process a raw body and return the serialized JSON output."""
        return serialize_output(await self.process(raw_body))

    async def _respond(self, collection: RequestCollection) -> list[Response]:
        responses: list[Response | None] = [None] * len(collection.entries)
        positions: list[int] = []
        requests: list[Request] = []

        for index, entry in enumerate(collection.entries):
            if isinstance(entry, MalformedEntry):
                responses[index] = self._assembler.reject(entry)
            elif isinstance(entry, WellFormedEntry):
                positions.append(index)
                requests.append(entry.request)

        dispatched = await self._dispatcher.dispatch_all(requests)
        for index, response in zip(positions, dispatched, strict=True):
            responses[index] = response

        return [r for r in responses if r is not None]
