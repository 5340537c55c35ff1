"""Declarative request validation — composable rules, clean results.

A schema maps field names to lists of rules. Verb handlers whose action
returns ``Pipeline(validate=schema, ...)`` check ``await request.data()``
against it before anything else runs::

    from routespec.validation import required, max_length, email

    def create(self, ctx):
        return Pipeline(
            validate={
                "title": [required, max_length(200)],
                "email": [required, email],
            },
            execute=self._create,
        )

A failing schema answers 400 with the per-field messages as ``details``.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from routespec.validation.result import ValidationResult
from routespec.validation.rules import (
    Validator,
    email,
    integer,
    matches,
    max_length,
    min_length,
    number,
    one_of,
    optional,
    required,
)

__all__ = [
    "ValidationResult",
    "Validator",
    "email",
    "integer",
    "matches",
    "max_length",
    "min_length",
    "number",
    "one_of",
    "optional",
    "required",
    "validate",
]

type Schema = Mapping[str, Sequence[Validator]]


def validate(data: Mapping[str, Any], schema: Schema) -> ValidationResult:
    """Validate *data* against *schema*.

    Every rule of every field runs, so ``errors`` lists all failures of a
    field in rule order. ``data`` in the result holds the schema's fields
    that were present (string values stripped).
    """
    errors: dict[str, list[str]] = {}
    cleaned: dict[str, Any] = {}

    for name, rules in schema.items():
        value = data.get(name)
        if isinstance(value, str):
            value = value.strip()
        messages = [msg for rule in rules if (msg := rule(value)) is not None]
        if messages:
            errors[name] = messages
        elif value is not None:
            cleaned[name] = value

    return ValidationResult(data=cleaned, errors=errors)
