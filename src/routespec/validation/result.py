"""Validation result — immutable container for validated data or errors."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of ``validate()``.

    Truthy when there are no errors::

        result = validate(data, schema)
        if not result:
            raise ValidationFailed(result.errors)
    """

    data: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid
