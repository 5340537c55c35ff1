"""PathSegment, Layer and Route frozen dataclasses."""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``      (is_param=False)
    Param:   ``/:id``        (is_param=True, param_name="id")
    Typed:   ``/{id:int}``   (is_param=True, param_name="id", param_type="int")
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class Layer:
    """One entry in a router's ordered stack.

    A route layer (``method`` set) matches the whole path. A mount layer
    (``method`` is ``None``) matches a path prefix on segment boundaries.
    """

    path: str
    handlers: tuple[Callable[..., Any], ...]
    pattern: re.Pattern[str]
    param_names: tuple[str, ...]
    method: str | None = None

    @property
    def is_mount(self) -> bool:
        return self.method is None

    def accepts(self, method: str) -> bool:
        """Whether a request with *method* may enter this layer."""
        if self.method is None or self.method in ("ALL", method):
            return True
        return method == "HEAD" and self.method == "GET"

    def match(self, path: str) -> tuple[dict[str, str], str] | None:
        """Return ``(params, matched_prefix)`` or ``None``."""
        m = self.pattern.match(path)
        if m is None:
            return None
        return m.groupdict(), m.group(0)


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route, for introspection (``Router.routes``)."""

    method: str
    path: str
    handlers: tuple[Callable[..., Any], ...]
