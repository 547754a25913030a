"""Pure asyncio HTTP server feeding request bodies to a RequestProcessor.

The transport is thin: it reads one HTTP/1.1 request per
connection, hands the raw body to the pipeline and writes the JSON-RPC output
back. Protocol-level errors are always sent with status 200; only failures of
the HTTP exchange itself (unparseable request, wrong verb, wrong path) use
4xx statuses.

HTTP method override:
    A POST carrying ``X-HTTP-Method-Override: <VERB>`` (uppercase letters
    only) is treated as <VERB>. Since only POST is served, an override to any
    other verb is refused with 405.

Example usage:
    processor = build_processor(config, registry)
    await run_http_server(processor, config.server)
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, replace

from schemarpc.config.schema import ServerConfig
from schemarpc.core.errors import SchemaRpcError
from schemarpc.rpc.assembler import ResponseAssembler
from schemarpc.rpc.processor import RequestProcessor
from schemarpc.rpc.protocol import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    PARSE_ERROR,
    make_error_response,
    serialize_output,
)

logger = logging.getLogger(__name__)

# Request head limits
MAX_HEADERS_COUNT = 128
MAX_HEAD_SIZE = 32 * 1024
READ_TIMEOUT = 30.0

METHOD_OVERRIDE_HEADER = "x-http-method-override"
_OVERRIDE_PATTERN = re.compile(r"^[A-Z]+\Z")

_STATUS_MESSAGES = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    413: "Payload Too Large",
    500: "Internal Server Error",
}


@dataclass
class HttpRequest:
    """Parsed HTTP request.

    Attributes:
        method: HTTP method as sent on the request line.
        path: Request path (e.g., "/").
        headers: Dict of lowercase header names to values.
        body: Request body as string.
    """

    method: str
    path: str
    headers: dict[str, str]
    body: str


class HttpParseError(SchemaRpcError):
    """Raised when HTTP request parsing fails."""

    def __init__(self, message: str, status: int = 400) -> None:
        self.status = status
        super().__init__(message)


def effective_method(request: HttpRequest) -> str:
    """Return the HTTP method after applying X-HTTP-Method-Override.

    The override is honoured only on POST and only for an all-uppercase verb.
    """
    method = request.method
    override = request.headers.get(METHOD_OVERRIDE_HEADER)
    if method == "POST" and override is not None and _OVERRIDE_PATTERN.match(override):
        return override
    return method


async def _readline(reader: asyncio.StreamReader) -> bytes:
    try:
        return await asyncio.wait_for(reader.readline(), timeout=READ_TIMEOUT)
    except TimeoutError:
        raise HttpParseError("Read timeout") from None
    except ValueError as e:
        # StreamReader refuses lines beyond its buffer limit
        raise HttpParseError(f"Line too long: {e}") from e


def _decode(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise HttpParseError(f"Invalid {what} encoding: {e}") from e


async def _read_head(reader: asyncio.StreamReader) -> tuple[str, str, dict[str, str]]:
    """Read the request line and header block under one size budget."""
    line = await _readline(reader)
    if not line:
        raise HttpParseError("Empty request")
    size = len(line)

    parts = _decode(line, "request").split()
    if len(parts) != 3:
        raise HttpParseError(f"Invalid request line: {' '.join(parts)}")
    method, path, _version = parts

    headers: dict[str, str] = {}
    while True:
        line = await _readline(reader)
        if line.strip() == b"":
            return method, path, headers
        size += len(line)
        if size > MAX_HEAD_SIZE:
            raise HttpParseError(f"Request head exceeds {MAX_HEAD_SIZE} bytes")
        if len(headers) >= MAX_HEADERS_COUNT:
            raise HttpParseError(f"Too many headers: exceeds limit of {MAX_HEADERS_COUNT}")

        name, sep, value = _decode(line, "header").partition(":")
        if sep:
            headers[name.strip().lower()] = value.strip()


def _content_length(headers: dict[str, str], max_body_size: int) -> int:
    raw = headers.get("content-length", "0")
    if not (raw.isascii() and raw.isdigit()):
        raise HttpParseError(f"Invalid Content-Length: {raw}")
    length = int(raw)
    if length > max_body_size:
        raise HttpParseError(f"Request body too large: {length} > {max_body_size}", status=413)
    return length


async def read_http_request(
    reader: asyncio.StreamReader,
    max_body_size: int = 1_048_576,
) -> HttpRequest:
    """Read one HTTP request from the stream.

    The body is delimited by Content-Length; chunked bodies are not
    supported.

    Raises:
        HttpParseError: If the request is malformed, too large or too slow.
    """
    method, path, headers = await _read_head(reader)
    length = _content_length(headers, max_body_size)
    if length == 0:
        return HttpRequest(method=method, path=path, headers=headers, body="")

    try:
        raw = await asyncio.wait_for(reader.readexactly(length), timeout=READ_TIMEOUT)
    except TimeoutError:
        raise HttpParseError("Read timeout") from None
    except asyncio.IncompleteReadError as e:
        raise HttpParseError(f"Incomplete body: expected {length}, got {len(e.partial)}") from e

    return HttpRequest(method=method, path=path, headers=headers, body=_decode(raw, "body"))


async def send_http_response(
    writer: asyncio.StreamWriter,
    status: int,
    body: str,
    content_type: str = "application/json",
    extra_headers: dict[str, str] | None = None,
) -> None:
    """Send an HTTP response and flush it."""
    body_bytes = body.encode("utf-8")
    lines = [
        f"HTTP/1.1 {status} {_STATUS_MESSAGES.get(status, 'Unknown')}",
        f"Content-Type: {content_type}; charset=utf-8",
        f"Content-Length: {len(body_bytes)}",
        "Connection: close",
    ]
    for name, value in (extra_headers or {}).items():
        lines.append(f"{name}: {value}")
    lines.extend(["", ""])

    writer.write("\r\n".join(lines).encode("utf-8") + body_bytes)
    await writer.drain()


def _error_body(code: int, message: str | None = None, data: object = None) -> str:
    error = make_error_response(None, code, message, data)
    return serialize_output(replace(error, time=ResponseAssembler().timestamp()).to_dict())


async def handle_connection(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    processor: RequestProcessor,
    config: ServerConfig,
) -> None:
    """Handle a single HTTP connection.

    Layers:
        1. Parse HTTP request
        2. Resolve method (with override) and require POST
        3. Check path
        4. Run the body through the pipeline
        5. Send the output
    """
    try:
        try:
            http_request = await read_http_request(reader, config.max_body_size)
        except HttpParseError as e:
            await send_http_response(writer, e.status, _error_body(PARSE_ERROR, data=e.message))
            return

        method = effective_method(http_request)
        if method != "POST":
            await send_http_response(
                writer,
                405,
                _error_body(INVALID_REQUEST, data="Method not allowed. Use POST."),
                extra_headers={"Allow": "POST"},
            )
            return

        if http_request.path.split("?", 1)[0] != config.path:
            await send_http_response(
                writer, 404, _error_body(INVALID_REQUEST, data="Unknown path")
            )
            return

        output = await processor.handle(http_request.body)
        await send_http_response(writer, 200, output)

    except Exception as e:
        logger.error("Unexpected error handling connection: %s", e, exc_info=True)
        try:
            await send_http_response(writer, 500, _error_body(INTERNAL_ERROR))
        except Exception as send_err:
            logger.debug("Failed to send error response (client disconnected?): %s", send_err)

    finally:
        try:
            writer.close()
            await writer.wait_closed()
        except Exception as close_err:
            logger.debug("Connection close failed (already closed?): %s", close_err)


async def start_http_server(
    processor: RequestProcessor,
    config: ServerConfig,
) -> asyncio.Server:
    """Bind the server and start accepting connections.

    Connections beyond ``config.max_concurrent`` wait for a free slot.
    Use port 0 in config to bind an ephemeral port.
    """
    semaphore = asyncio.Semaphore(config.max_concurrent)

    async def client_handler(
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        async with semaphore:
            await handle_connection(reader, writer, processor, config)

    server = await asyncio.start_server(client_handler, host=config.host, port=config.port)
    addr = server.sockets[0].getsockname() if server.sockets else (config.host, config.port)
    logger.info("JSON-RPC HTTP server running at http://%s:%s%s", addr[0], addr[1], config.path)
    return server


async def run_http_server(
    processor: RequestProcessor,
    config: ServerConfig,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Serve until stop_event is set (or forever when it is None)."""
    server = await start_http_server(processor, config)
    async with server:
        if stop_event is None:
            await server.serve_forever()
        else:
            await stop_event.wait()
        server.close()
        await server.wait_closed()
    logger.info("HTTP server stopped")
