"""Reading JSON object documents from disk.

Config files and per-method schema documents go through the same steps:
decode as UTF-8 (a leading BOM is dropped), parse strict JSON, require a
top-level object. Problems raise LoadError with a short reason naming the
file; callers re-raise it as their own error type (ConfigError,
SchemaLoadError).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from schemarpc.core.errors import LoadError

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def read_json_object(path: Path, *, allow_empty: bool = False) -> dict[str, Any]:
    """Read path and return its top-level JSON object.

    Args:
        path: Document to read.
        allow_empty: Treat a blank file as ``{}`` instead of invalid JSON.

    Raises:
        LoadError: If the file is missing or unreadable, is not strict JSON,
            or holds something other than an object.
    """
    try:
        content = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise LoadError(f"file not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise LoadError(f"failed to read {path.name}: {e}") from e

    if allow_empty and not content.strip():
        return {}

    try:
        document = json.loads(content, parse_constant=_reject_constant)
    except RecursionError as e:
        raise LoadError(f"invalid JSON in {path.name}: nesting too deep") from e
    except ValueError as e:
        raise LoadError(f"invalid JSON in {path.name}: {e}") from e

    if not isinstance(document, dict):
        raise LoadError(f"expected object in {path.name}, got {type(document).__name__}")
    return document


def read_json_object_optional(
    path: Path, *, allow_empty: bool = False
) -> dict[str, Any] | None:
    """Like read_json_object(), but return None when path is not a file."""
    if not path.is_file():
        logger.debug("No document at %s", path)
        return None
    return read_json_object(path, allow_empty=allow_empty)
