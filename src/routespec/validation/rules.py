"""Built-in validation rules for request schemas.

Each rule is a callable with the signature::

    def rule(value: Any) -> str | None:
        '''Return an error message, or None if valid.'''

``value`` is ``None`` when the field is missing from the request. Every rule
except ``required`` passes on ``None``, so ``[max_length(10)]`` alone means
"optional, but at most 10 characters when present".

Parameterized rules are factories returning a rule::

    schema = {
        "title": [required, max_length(200)],
        "state": [one_of("draft", "published")],
    }
"""

import re
from collections.abc import Callable
from typing import Any

type Validator = Callable[[Any], str | None]


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(value: Any) -> str | None:
    """Field must be present and, for strings, non-blank."""
    if not _present(value):
        return "This field is required"
    return None


def optional(*rules: Validator) -> Validator:
    """Apply *rules* only when the field is present and non-blank."""

    def check(value: Any) -> str | None:
        if not _present(value):
            return None
        for rule in rules:
            error = rule(value)
            if error is not None:
                return error
        return None

    return check


# ---------------------------------------------------------------------------
# Length
# ---------------------------------------------------------------------------


def max_length(n: int) -> Validator:
    """String must be at most *n* characters."""

    def check(value: Any) -> str | None:
        if value is not None and len(str(value)) > n:
            return f"Must be at most {n} characters"
        return None

    return check


def min_length(n: int) -> Validator:
    """String must be at least *n* characters."""

    def check(value: Any) -> str | None:
        if value is not None and len(str(value)) < n:
            return f"Must be at least {n} characters"
        return None

    return check


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

# Structure only, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: Any) -> str | None:
    """Value must look like an email address."""
    if value is not None and not _EMAIL_RE.match(str(value)):
        return "Must be a valid email address"
    return None


def matches(pattern: str, message: str | None = None) -> Validator:
    """Value must match the regex *pattern*."""
    compiled = re.compile(pattern)

    def check(value: Any) -> str | None:
        if value is not None and not compiled.match(str(value)):
            return message or f"Must match pattern: {pattern}"
        return None

    return check


def one_of(*choices: str) -> Validator:
    """Value must be one of *choices*."""
    allowed = frozenset(choices)

    def check(value: Any) -> str | None:
        if value is not None and value not in allowed:
            return f"Must be one of: {', '.join(sorted(allowed))}"
        return None

    return check


# ---------------------------------------------------------------------------
# Numbers
# ---------------------------------------------------------------------------


def integer(value: Any) -> str | None:
    """Value must be an integer (or a string holding one)."""
    if value is None or isinstance(value, int) and not isinstance(value, bool):
        return None
    try:
        int(str(value))
    except ValueError:
        return "Must be a whole number"
    return None


def number(value: Any) -> str | None:
    """Value must be a number (or a string holding one)."""
    if value is None or isinstance(value, (int, float)) and not isinstance(value, bool):
        return None
    try:
        float(str(value))
    except ValueError:
        return "Must be a number"
    return None
