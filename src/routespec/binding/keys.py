"""Specification key parsing.

The first character of a mapping key decides what its value means. Keys are
classified here, before the builder dispatches on them:

==============  ==========  ==============================================
key             kind        value
==============  ==========  ==============================================
``use``         USE         middleware mounted at the current path
``/segment``    PATH        nested specification
``:name``       PARAM       parameter handler or ``{"action": ...}``
``resource``    RESOURCE    resource declaration
anything else   VERB        ``{"action": ...}`` or ``{"view": ...}``
==============  ==========  ==============================================
"""

from dataclasses import dataclass
from enum import Enum

from routespec.errors import ConfigurationError

PATH_SEPARATOR = "/"
PARAM_SIGIL = ":"
USE_KEY = "use"
RESOURCE_KEY = "resource"
HEAD_KEY = "head"


class KeyKind(Enum):
    USE = "use"
    PATH = "path"
    PARAM = "param"
    RESOURCE = "resource"
    VERB = "verb"


@dataclass(frozen=True, slots=True)
class SpecKey:
    """A classified specification key."""

    kind: KeyKind
    raw: str


def parse_key(key: object) -> SpecKey:
    """Classify one key of a specification mapping."""
    if not isinstance(key, str) or not key:
        msg = f"Specification keys must be non-empty strings, got {key!r}"
        raise ConfigurationError(msg)
    if key == USE_KEY:
        return SpecKey(KeyKind.USE, key)
    if key == RESOURCE_KEY:
        return SpecKey(KeyKind.RESOURCE, key)
    if key.startswith(PATH_SEPARATOR):
        return SpecKey(KeyKind.PATH, key)
    if key.startswith(PARAM_SIGIL):
        return SpecKey(KeyKind.PARAM, key)
    return SpecKey(KeyKind.VERB, key)


def join_path(current: str, segment: str) -> str:
    """Append a ``/segment`` key to *current* without doubling the separator."""
    if current.endswith(PATH_SEPARATOR):
        return current + segment[1:]
    return current + segment
