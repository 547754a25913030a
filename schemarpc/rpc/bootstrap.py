"""Object graph bootstrap for schemarpc.

This module wires the process-wide components (command registry, schema
cache, dispatcher) from a Config, and configures server logging.

Usage:
    config = load_config()
    registry = load_registry(config.registry)
    processor = build_processor(config, registry)
    output = await processor.handle(raw_body)
"""

from __future__ import annotations

import importlib
import logging
import sys
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

from schemarpc.config.schema import Config
from schemarpc.core.errors import RegistryError, SchemaLoadError
from schemarpc.rpc.dispatcher import RequestDispatcher
from schemarpc.rpc.processor import RequestProcessor
from schemarpc.rpc.registry import CommandRegistry
from schemarpc.schema.cache import CacheBackend, MemoryCache, NullCache, SchemaCache
from schemarpc.schema.store import FileSchemaStore, SchemaStore

logger = logging.getLogger(__name__)

ROOT_LOGGER_NAME = "schemarpc"


def configure_logging(
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console_level: int = logging.WARNING,
) -> Path | None:
    """Configure logging for the schemarpc namespace.

    Installs a stderr handler and, when log_dir is given, a rotating file
    handler writing ``{log_dir}/server.log`` (max 5MB per file, 3 backups).
    Existing handlers on the namespace logger are replaced.

    Args:
        log_dir: Directory for server.log. Created if it doesn't exist.
        level: Logging level for file output.
        console_level: Logging level for console output.

    Returns:
        Path to the server.log file, or None when only console logging is set up.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    ))
    root_logger.addHandler(console_handler)

    log_file: Path | None = None
    effective_level = console_level
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / "server.log"
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root_logger.addHandler(file_handler)
        effective_level = min(level, console_level)

    root_logger.setLevel(effective_level)
    root_logger.propagate = False

    if log_file is not None:
        logger.info("Server logging configured: %s", log_file)
    return log_file


def load_registry(import_path: str) -> CommandRegistry:
    """Import a command registry from "package.module:attribute".

    The attribute may be a CommandRegistry or a zero-argument callable that
    returns one. The import happens once, at startup.

    Raises:
        RegistryError: If the path is malformed, the import fails, or the
            attribute does not yield a CommandRegistry.
    """
    module_name, sep, attr = import_path.partition(":")
    if not sep or not module_name or not attr:
        raise RegistryError(f"Registry path must look like 'module:attribute', got: {import_path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise RegistryError(f"Cannot import registry module '{module_name}': {e}") from e

    try:
        target = getattr(module, attr)
    except AttributeError as e:
        raise RegistryError(f"Module '{module_name}' has no attribute '{attr}'") from e

    if callable(target) and not isinstance(target, CommandRegistry):
        target = target()

    if not isinstance(target, CommandRegistry):
        raise RegistryError(
            f"'{import_path}' must be a CommandRegistry, got {type(target).__name__}"
        )

    logger.info("Loaded %d commands from %s", len(target), import_path)
    return target


def build_schema_cache(config: Config, backend: CacheBackend | None = None) -> SchemaCache:
    """Create the schema cache described by config.

    Args:
        config: Loaded configuration.
        backend: Cache backend to use when caching is enabled. Defaults to
            an in-process MemoryCache.
    """
    store = FileSchemaStore(Path(config.schemas.root))
    if not config.cache.enabled:
        backend = NullCache()
    elif backend is None:
        backend = MemoryCache()
    return SchemaCache(
        store,
        backend,
        project=config.cache.project,
        ttl=config.cache.ttl,
    )


def build_processor(
    config: Config,
    registry: CommandRegistry,
    backend: CacheBackend | None = None,
) -> RequestProcessor:
    """Wire a RequestProcessor for registry using config."""
    dispatcher = RequestDispatcher(
        registry,
        build_schema_cache(config, backend),
        max_concurrency=config.dispatch.max_concurrency,
        entry_timeout=config.dispatch.entry_timeout,
    )
    return RequestProcessor(dispatcher)


@dataclass(frozen=True)
class Inconsistency:
    """A registered method whose schema is missing or unusable."""

    method: str
    problem: str


def check_registry(registry: CommandRegistry, store: SchemaStore) -> list[Inconsistency]:
    """Report registered methods that would fail at the schema stage.

    Every registered method needs a loadable schema document; without one the
    method answers Method not found (missing) or Internal error (unusable).
    """
    problems: list[Inconsistency] = []
    for method in registry.methods():
        try:
            schema = store.load_schema(method)
        except SchemaLoadError as e:
            problems.append(Inconsistency(method, e.reason))
            continue
        if schema is None:
            problems.append(Inconsistency(method, "no schema document"))
    return problems
