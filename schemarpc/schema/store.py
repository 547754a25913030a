"""Filesystem-backed store of per-method JSON Schema documents.

Each method has one schema document named ``{method}.json`` under a root
directory. A missing document means the method is unknown for validation
purposes; a document that exists but cannot be used is a configuration error.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Protocol

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from schemarpc.core.errors import LoadError, SchemaLoadError
from schemarpc.core.load_utils import read_json_object_optional

logger = logging.getLogger(__name__)

SCHEMA_SUFFIX = ".json"

# Method names are mapped straight to file names, so keep them to a safe
# alphabet. Leading dots and ".." are rejected separately.
METHOD_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.\-]{0,199}$")


class SchemaStore(Protocol):
    """Anything that can load the schema document for a method."""

    def load_schema(self, method: str) -> dict[str, Any] | None: ...


def is_safe_method_name(method: str) -> bool:
    """Return True if method can be mapped to a file name under the root."""
    if not METHOD_NAME_PATTERN.match(method):
        return False
    return ".." not in method


class FileSchemaStore:
    """Loads ``{method}.json`` documents from a root directory.

    Example:
        store = FileSchemaStore(Path("schemas"))
        schema = store.load_schema("user.create")  # reads schemas/user.create.json
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, method: str) -> Path:
        """Return the document path for method (no existence check)."""
        return self._root / f"{method}{SCHEMA_SUFFIX}"

    def load_schema(self, method: str) -> dict[str, Any] | None:
        """Load and check the schema document for method.

        Args:
            method: The JSON-RPC method name.

        Returns:
            The parsed schema, or None if no document exists for the method.

        Raises:
            SchemaLoadError: If the document is unreadable, not a JSON object,
                or not a valid JSON Schema.
        """
        if not is_safe_method_name(method):
            logger.debug("Refusing to map method name to a schema file: %r", method)
            return None

        path = self.path_for(method)
        try:
            schema = read_json_object_optional(path)
        except LoadError as e:
            raise SchemaLoadError(method, e.message) from e
        if schema is None:
            logger.debug("No schema document for '%s' at %s", method, path)
            return None

        try:
            validator_for(schema).check_schema(schema)
        except SchemaError as e:
            raise SchemaLoadError(method, f"invalid JSON Schema: {e.message}") from e

        logger.debug("Loaded schema for '%s' from %s", method, path)
        return schema

    def methods(self) -> list[str]:
        """Return the method names that have a schema document, sorted."""
        if not self._root.is_dir():
            return []
        return sorted(
            p.name[: -len(SCHEMA_SUFFIX)]
            for p in self._root.iterdir()
            if p.is_file() and p.name.endswith(SCHEMA_SUFFIX)
        )
