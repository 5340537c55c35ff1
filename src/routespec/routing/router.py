"""Ordered middleware router.

The dispatch primitive underneath ``RouterBuilder``. Layers are tried in
registration order:

- a route layer (``route()``) matches method + whole path and runs its
  ordered middleware list;
- a mount layer (``use()``) matches a path prefix and runs its middleware
  with the prefix moved into ``Request.root_path``, so a mounted ``Router``
  routes on the remainder.

A unit that awaits ``next(request)`` past the end of its layer hands the
request to the next matching layer; when none is left the router's own
``next`` is called. Routers are middleware themselves and can be mounted
inside other routers.
"""

import re
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from kida import Environment

from routespec._internal.invoke import invoke
from routespec.errors import ConfigurationError
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.middleware.protocol import Next
from routespec.routing.params import CONVERTERS
from routespec.routing.route import Layer, PathSegment, Route
from routespec.server.negotiation import negotiate

# ALL registers a route for every method
METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "ALL"})


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/:id"      -> [PathSegment("users"), PathSegment(":id", is_param=True, ...)]
        "/users/{id:int}" -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith(":"):
            param_name, param_type = part[1:], "str"
        elif part.startswith("{") and part.endswith("}"):
            param_name, _, param_type = part[1:-1].partition(":")
            param_type = param_type or "str"
        else:
            segments.append(PathSegment(value=part))
            continue

        if not param_name.isidentifier():
            msg = f"Invalid parameter name {param_name!r} in path {path!r}"
            raise ConfigurationError(msg)
        if param_type not in CONVERTERS:
            msg = f"Unknown parameter type {param_type!r} in path {path!r}"
            raise ConfigurationError(msg)
        segments.append(
            PathSegment(value=part, is_param=True, param_name=param_name, param_type=param_type)
        )
    return segments


def compile_path(path: str, *, prefix: bool = False) -> tuple[re.Pattern[str], tuple[str, ...]]:
    """Compile *path* to a regex and the parameter names it captures.

    Whole-path patterns tolerate a trailing slash. Prefix patterns stop on a
    segment boundary, so ``/api`` matches ``/api/users`` but not ``/apix``.
    """
    parts: list[str] = []
    names: list[str] = []
    for seg in parse_path(path):
        if seg.is_param:
            parts.append(f"/(?P<{seg.param_name}>{CONVERTERS[seg.param_type]})")
            names.append(seg.param_name or "")
        else:
            parts.append("/" + re.escape(seg.value))

    body = "".join(parts)
    source = f"^{body}(?=/|$)" if prefix else f"^{body}/?$"
    try:
        return re.compile(source), tuple(names)
    except re.error as exc:
        msg = f"Cannot compile path {path!r}: {exc}"
        raise ConfigurationError(msg) from exc


def _flatten(handlers: Iterable[Any]) -> tuple[Callable[..., Any], ...]:
    flat: list[Callable[..., Any]] = []
    for handler in handlers:
        if isinstance(handler, (list, tuple)):
            flat.extend(_flatten(handler))
        elif callable(handler):
            flat.append(handler)
        else:
            msg = f"Middleware must be callable, got {type(handler).__name__}"
            raise ConfigurationError(msg)
    return tuple(flat)


class Router:
    """Ordered router with parameter handlers and mounting.

    Usage::

        router = Router()
        router.param("id", load_item)
        router.route("GET", "/items/:id", [auth, show_item])
        router.use("/admin", admin_router)
        router.compile(environment)
        response = await router(request, not_found)
    """

    __slots__ = ("_compiled", "_environment", "_layers", "_param_handlers")

    def __init__(self) -> None:
        self._layers: list[Layer] = []
        self._param_handlers: dict[str, Callable[..., Any]] = {}
        self._environment: Environment | None = None
        self._compiled = False

    # -- Registration --

    @staticmethod
    def supports(method: str) -> bool:
        """Whether *method* (any case) can be registered with ``route()``."""
        return method.upper() in METHODS

    def route(self, method: str, path: str, handlers: Any) -> None:
        """Register *handlers* (a unit or nested lists of units) for method + path."""
        self._check_not_compiled()
        verb = method.upper()
        if verb not in METHODS:
            msg = f"{method} is not a valid http verb"
            raise ConfigurationError(msg)
        pattern, names = compile_path(path)
        self._layers.append(Layer(path, _flatten([handlers]), pattern, names, method=verb))

    def use(self, path_or_handlers: Any, handlers: Any = None) -> None:
        """Mount middleware or a router, at ``/`` or under a path prefix.

        ``use(handler)`` and ``use("/prefix", handler)`` are both accepted.
        """
        self._check_not_compiled()
        if handlers is None:
            path, handlers = "/", path_or_handlers
        else:
            path = path_or_handlers
        if not isinstance(path, str):
            msg = f"Mount path must be a string, got {type(path).__name__}"
            raise ConfigurationError(msg)
        pattern, names = compile_path(path, prefix=True)
        self._layers.append(Layer(path, _flatten([handlers]), pattern, names))

    def param(self, name: str, handler: Callable[..., Any]) -> None:
        """Register (or replace) the handler run when ``name`` is captured."""
        self._check_not_compiled()
        if not callable(handler):
            msg = f"Parameter handler for {name!r} must be callable"
            raise ConfigurationError(msg)
        self._param_handlers[name] = handler

    def compile(self, environment: Environment | None = None) -> None:
        """Freeze the router (and routers mounted in it).

        *environment* renders ``Template`` values returned by units.
        """
        self._environment = environment
        self._compiled = True
        for layer in self._layers:
            for handler in layer.handlers:
                if isinstance(handler, Router) and not handler.compiled:
                    handler.compile(environment)

    # -- Introspection --

    @property
    def compiled(self) -> bool:
        return self._compiled

    @property
    def params(self) -> dict[str, Callable[..., Any]]:
        """Registered parameter handlers by name (a copy)."""
        return dict(self._param_handlers)

    @property
    def routes(self) -> list[Route]:
        """All route layers in registration order, including mounted routers'."""
        result: list[Route] = []
        for layer in self._layers:
            if layer.method is not None:
                result.append(Route(layer.method, layer.path, layer.handlers))
                continue
            prefix = layer.path.rstrip("/")
            for handler in layer.handlers:
                if isinstance(handler, Router):
                    result.extend(
                        Route(r.method, (prefix + r.path.rstrip("/")) or "/", r.handlers)
                        for r in handler.routes
                    )
        return result

    # -- Dispatch --

    async def __call__(self, request: Request, next: Next) -> Response:
        return await self._dispatch(request, next, 0, {})

    async def _dispatch(
        self,
        request: Request,
        next: Next,
        start: int,
        called: dict[str, str],
    ) -> Response:
        path = request.route_path
        for index in range(start, len(self._layers)):
            layer = self._layers[index]
            if not layer.accepts(request.method):
                continue
            found = layer.match(path)
            if found is None:
                continue
            params, matched = found

            async def proceed(
                req: Request, _index: int = index, _origin: Request = request
            ) -> Response:
                restored = replace(
                    req, root_path=_origin.root_path, path_params=_origin.path_params
                )
                return await self._dispatch(restored, next, _index + 1, called)

            root_path = request.root_path + matched if layer.is_mount else request.root_path
            scoped = replace(
                request,
                path_params={**request.path_params, **params},
                root_path=root_path,
            )
            return await self._run_params(layer, scoped, params, called, proceed)

        return await next(request)

    async def _run_params(
        self,
        layer: Layer,
        request: Request,
        params: dict[str, str],
        called: dict[str, str],
        proceed: Next,
    ) -> Response:
        """Run parameter handlers not yet run for this request, then the stack."""
        pending = [
            (name, value)
            for name, value in params.items()
            if name in self._param_handlers and called.get(name) != value
        ]

        async def run(req: Request, position: int = 0) -> Response:
            if position == len(pending):
                return await self._run_stack(layer.handlers, 0, req, proceed)
            name, value = pending[position]
            called[name] = value

            async def next_param(r: Request) -> Response:
                return await run(r, position + 1)

            result = await invoke(self._param_handlers[name], req, next_param, value)
            return negotiate(result, kida_env=self._environment)

        return await run(request)

    async def _run_stack(
        self,
        handlers: tuple[Callable[..., Any], ...],
        index: int,
        request: Request,
        proceed: Next,
    ) -> Response:
        if index == len(handlers):
            return await proceed(request)

        async def call_next(req: Request) -> Response:
            return await self._run_stack(handlers, index + 1, req, proceed)

        result = await invoke(handlers[index], request, call_next)
        return negotiate(result, kida_env=self._environment)

    def _check_not_compiled(self) -> None:
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
