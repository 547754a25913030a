"""Command-line interface for schemarpc.

Commands:
    serve  Run the HTTP server.
    check  Verify every registered method has a usable schema document.
    call   Run one request body through the pipeline in-process.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from schemarpc.config.loader import load_config
from schemarpc.config.schema import Config
from schemarpc.core.errors import SchemaRpcError
from schemarpc.rpc.bootstrap import (
    build_processor,
    check_registry,
    configure_logging,
    load_registry,
)
from schemarpc.rpc.http import run_http_server
from schemarpc.rpc.registry import CommandRegistry
from schemarpc.schema.store import FileSchemaStore

logger = logging.getLogger(__name__)


def add_config_args(parser: argparse.ArgumentParser) -> None:
    """Add --config and --registry arguments to a parser."""
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to config file (default: ./schemarpc.json if present)",
    )
    parser.add_argument(
        "--registry", "-r",
        help="Command registry import path, module:attribute (overrides config)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemarpc",
        description="JSON-RPC 2.0 server with JSON Schema validated params",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    add_config_args(serve_parser)
    serve_parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Server port (default: from config, 8765)",
    )
    serve_parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Write server.log into this directory",
    )
    serve_parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Log debug output to the console",
    )

    check_parser = subparsers.add_parser(
        "check",
        help="Verify every registered method has a usable schema document",
    )
    add_config_args(check_parser)

    call_parser = subparsers.add_parser(
        "call",
        help="Process one JSON-RPC request body and print the output",
    )
    add_config_args(call_parser)
    call_parser.add_argument("body", help="Request body, or '-' to read stdin")

    return parser


def _resolve(args: argparse.Namespace) -> tuple[Config, CommandRegistry]:
    config = load_config(args.config)
    import_path = args.registry or config.registry
    if import_path is None:
        raise SchemaRpcError(
            "No command registry configured: pass --registry or set 'registry' in the config"
        )
    return config, load_registry(import_path)


def cmd_serve(args: argparse.Namespace) -> int:
    console_level = logging.DEBUG if args.verbose else logging.WARNING
    configure_logging(args.log_dir, level=logging.INFO, console_level=console_level)

    config, registry = _resolve(args)
    if args.port is not None:
        config.server.port = args.port

    processor = build_processor(config, registry)
    print(
        f"Serving {len(registry)} methods on "
        f"http://{config.server.host}:{config.server.port}{config.server.path}"
    )
    try:
        asyncio.run(run_http_server(processor, config.server))
    except KeyboardInterrupt:
        print("Stopped")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    config, registry = _resolve(args)
    store = FileSchemaStore(Path(config.schemas.root))
    problems = check_registry(registry, store)
    if not problems:
        print(f"OK: {len(registry)} methods, all with schemas in {store.root}")
        return 0
    for problem in problems:
        print(f"{problem.method}: {problem.problem}")
    return 1


def cmd_call(args: argparse.Namespace) -> int:
    config, registry = _resolve(args)
    body = sys.stdin.read() if args.body == "-" else args.body
    processor = build_processor(config, registry)
    output = asyncio.run(processor.process(body))
    print(json.dumps(output, indent=2, default=str))
    return 0


_COMMANDS = {
    "serve": cmd_serve,
    "check": cmd_check,
    "call": cmd_call,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return _COMMANDS[args.command](args)
    except SchemaRpcError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 2
