"""Route table — the immutable accumulator threaded through the builder.

Interpreting a specification returns a new ``RouteTable`` at every step
instead of touching the router. Only a fully interpreted table is applied,
so a wiring error anywhere in a specification leaves the router untouched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from routespec.routing.router import Router


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """``router.route(method, path, handlers)``"""

    method: str
    path: str
    handlers: tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class MountEntry:
    """``router.use(path, target)``"""

    path: str
    target: Any


@dataclass(frozen=True, slots=True)
class ParamEntry:
    """``router.param(name, handler)``; ``name`` excludes the ``:`` sigil."""

    name: str
    handler: Callable[..., Any] | None


type Entry = RouteEntry | MountEntry | ParamEntry


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Ordered registrations waiting to be applied to a router."""

    entries: tuple[Entry, ...] = ()

    def with_route(self, method: str, path: str, handlers: list[Any]) -> RouteTable:
        return replace(self, entries=(*self.entries, RouteEntry(method, path, tuple(handlers))))

    def with_mount(self, path: str, target: Any) -> RouteTable:
        return replace(self, entries=(*self.entries, MountEntry(path, target)))

    def with_param(self, name: str, handler: Callable[..., Any] | None) -> RouteTable:
        return replace(self, entries=(*self.entries, ParamEntry(name, handler)))

    @property
    def param_names(self) -> frozenset[str]:
        return frozenset(e.name for e in self.entries if isinstance(e, ParamEntry))

    @property
    def routes(self) -> tuple[RouteEntry, ...]:
        return tuple(e for e in self.entries if isinstance(e, RouteEntry))

    def __len__(self) -> int:
        return len(self.entries)

    def apply(self, router: Router) -> None:
        """Register every entry with *router*, in order."""
        for entry in self.entries:
            match entry:
                case RouteEntry(method, path, handlers):
                    router.route(method, path, list(handlers))
                case MountEntry(path, target):
                    router.use(path, target)
                case ParamEntry(name, handler) if handler is not None:
                    router.param(name, handler)
