"""Validation of request params against JSON Schema documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jsonschema.exceptions import ValidationError
from jsonschema.validators import validator_for


@dataclass(frozen=True)
class Violation:
    """One schema violation.

    Attributes:
        path: Dotted path to the offending value ("" for the params object itself).
        message: Human-readable description.
        constraint: The schema keyword that failed (e.g. "required", "type").
    """

    path: str
    message: str
    constraint: str

    def to_dict(self) -> dict[str, str]:
        return {"path": self.path, "message": self.message, "constraint": self.constraint}


class ParameterValidator:
    """Checks params against a schema and reports every violation."""

    def validate(self, schema: dict[str, Any], params: dict[str, Any] | None) -> list[Violation]:
        """Validate params against schema.

        Args:
            schema: A JSON Schema document already checked by the store.
            params: Request params; None is validated as an empty object.

        Returns:
            All violations found, ordered by path. Empty if params are valid.
        """
        instance = {} if params is None else params
        cls = validator_for(schema)
        validator = cls(schema, format_checker=cls.FORMAT_CHECKER)
        errors = sorted(validator.iter_errors(instance), key=_error_sort_key)
        return [_to_violation(e) for e in errors]


def _error_sort_key(error: ValidationError) -> tuple[str, str]:
    return (_format_path(error), str(error.validator))


def _format_path(error: ValidationError) -> str:
    return ".".join(str(p) for p in error.absolute_path) if error.absolute_path else ""


def _to_violation(error: ValidationError) -> Violation:
    path = _format_path(error)
    validator = str(error.validator)

    if validator == "enum":
        if path:
            message = f"Parameter '{path}' must be one of {error.validator_value}"
        else:
            message = f"Value must be one of {error.validator_value}"
    elif validator == "required":
        # error.message is like "'name' is a required property"
        message = error.message
    elif path:
        message = f"Parameter '{path}' - {error.message}"
    else:
        message = error.message

    return Violation(path=path, message=message, constraint=validator)
