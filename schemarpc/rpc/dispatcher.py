"""Per-request dispatch: lookup, schema validation, DTO construction, execution.

Each stage returns either the value the next stage needs or a terminal
ErrorResponse. The first ErrorResponse ends the chain. Any other exception
raised inside the chain becomes an Internal error for that entry alone; its
batch siblings are unaffected.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
from typing import Any

from pydantic import ValidationError as DtoValidationError

from schemarpc.core.errors import CommandError, SchemaLoadError
from schemarpc.rpc.protocol import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    make_error_response,
)
from schemarpc.rpc.registry import CommandDescriptor, CommandRegistry
from schemarpc.rpc.types import ErrorResponse, Request, Response, SuccessResponse
from schemarpc.schema.cache import SchemaCache
from schemarpc.schema.validator import ParameterValidator

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 16


class RequestDispatcher:
    """Routes well-formed requests through the command pipeline.

    Args:
        registry: Method name to command mapping.
        schemas: Schema cache used for params validation.
        validator: Params validator. Defaults to ParameterValidator().
        max_concurrency: Upper bound on entries of one batch running at once.
        entry_timeout: Optional per-entry time limit in seconds.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        schemas: SchemaCache,
        validator: ParameterValidator | None = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        entry_timeout: float | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._registry = registry
        self._schemas = schemas
        self._validator = validator or ParameterValidator()
        self._max_concurrency = max_concurrency
        self._entry_timeout = entry_timeout

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    async def dispatch(self, request: Request) -> Response:
        """Run one request through the pipeline.

        Returns:
            The response, carrying the request's id. Never raises for
            handler or validation failures.
        """
        try:
            response = await self._run(request)
        except Exception as e:
            logger.error(
                "Unexpected error dispatching method '%s': %s",
                request.method,
                e,
                exc_info=True,
            )
            response = make_error_response(request.id, INTERNAL_ERROR)
        return dataclasses.replace(response, id=request.id)

    async def dispatch_all(self, requests: list[Request]) -> list[Response]:
        """Dispatch requests concurrently, returning responses in input order."""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def dispatch_with_semaphore(request: Request) -> Response:
            async with semaphore:
                return await self._dispatch_with_timeout(request)

        tasks = [dispatch_with_semaphore(request) for request in requests]
        # gather preserves argument order regardless of completion order
        return list(await asyncio.gather(*tasks))

    async def _dispatch_with_timeout(self, request: Request) -> Response:
        if self._entry_timeout is None:
            return await self.dispatch(request)
        try:
            return await asyncio.wait_for(self.dispatch(request), self._entry_timeout)
        except TimeoutError:
            logger.warning(
                "Request for '%s' (id=%r) timed out after %ss",
                request.method,
                request.id,
                self._entry_timeout,
            )
            return make_error_response(request.id, INTERNAL_ERROR)

    async def _run(self, request: Request) -> Response:
        descriptor = self._lookup(request)
        if isinstance(descriptor, ErrorResponse):
            return descriptor

        schema = await self._fetch_schema(request)
        if isinstance(schema, ErrorResponse):
            return schema

        params = self._validate(schema, request)
        if isinstance(params, ErrorResponse):
            return params

        dto = self._build_dto(descriptor, params, request)
        if isinstance(dto, ErrorResponse):
            return dto

        return await self._execute(descriptor, dto, request)

    def _lookup(self, request: Request) -> CommandDescriptor | ErrorResponse:
        descriptor = self._registry.get(request.method)
        if descriptor is None:
            return make_error_response(request.id, METHOD_NOT_FOUND)
        return descriptor

    async def _fetch_schema(self, request: Request) -> dict[str, Any] | ErrorResponse:
        try:
            schema = await self._schemas.get(request.method)
        except SchemaLoadError as e:
            logger.error("Schema for registered method is unusable: %s", e.message)
            return make_error_response(request.id, INTERNAL_ERROR)

        if schema is None:
            # Registry and schema store disagree; the integrator must keep them in sync
            logger.warning(
                "Method '%s' is registered but has no schema document", request.method
            )
            return make_error_response(request.id, METHOD_NOT_FOUND)
        return schema

    def _validate(
        self, schema: dict[str, Any], request: Request
    ) -> dict[str, Any] | ErrorResponse:
        violations = self._validator.validate(schema, request.params)
        if violations:
            return make_error_response(
                request.id,
                INVALID_PARAMS,
                data={"violations": [v.to_dict() for v in violations]},
            )
        return request.params if request.params is not None else {}

    def _build_dto(
        self,
        descriptor: CommandDescriptor,
        params: dict[str, Any],
        request: Request,
    ) -> Any:
        try:
            return descriptor.build_dto(params)
        except DtoValidationError as e:
            return make_error_response(
                request.id, INVALID_PARAMS, data={"reason": _describe_dto_errors(e)}
            )
        except (TypeError, ValueError, KeyError) as e:
            return make_error_response(request.id, INVALID_PARAMS, data={"reason": str(e)})

    async def _execute(
        self,
        descriptor: CommandDescriptor,
        dto: Any,
        request: Request,
    ) -> Response:
        try:
            outcome = await descriptor.handler(dto)
        except CommandError as e:
            response: Response = make_error_response(request.id, e.code, e.message, e.data)
        else:
            if isinstance(outcome, (SuccessResponse, ErrorResponse)):
                response = outcome
            else:
                response = SuccessResponse(result=outcome)

        _ensure_encodable(response)
        return response


def _ensure_encodable(response: Response) -> None:
    """Raise ValueError if response cannot be written as strict JSON.

    Handler results and error data reach the wire unchanged, so a NaN or
    infinity there is caught here and answered as Internal error for this
    entry alone.
    """
    json.dumps(response.to_dict(), allow_nan=False, default=str)


def _describe_dto_errors(error: DtoValidationError) -> str:
    parts = []
    for item in error.errors(include_url=False):
        loc = ".".join(str(p) for p in item.get("loc", ()))
        parts.append(f"{loc}: {item.get('msg')}" if loc else str(item.get("msg")))
    return "; ".join(parts)
