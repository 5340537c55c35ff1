"""RouterBuilder — turns declarative specifications into router registrations.

A specification is a nested mapping. Path keys (``/...``) nest, parameter
keys (``:name``) register parameter handlers, ``use`` mounts middleware,
``resource`` expands a resource controller and every other key is an HTTP
verb bound to a controller action or a view::

    builder = RouterBuilder({"posts": PostController(), "auth": AuthController()})
    builder.add_specification({
        "use": [request_logger],
        ":post_id": {"action": "posts@load"},
        "/posts": {
            "resource": {"controller": "posts"},
            "/:post_id/publish": {
                "post": {"before": [authenticate], "action": "posts@publish"},
            },
        },
        "/login": {"get": {"view": "login.html"}, "post": {"action": "auth@login"}},
    })
    router = builder.get_router()

Interpretation is pure: every step returns a new ``RouteTable`` and the
router is only touched once the whole specification has been interpreted.
A wiring error therefore leaves the router exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from routespec.binding.actions import (
    ActionContext,
    ActionResolver,
    ControllerRegistry,
    Pipeline,
)
from routespec.binding.adapters import pipeline_units, render
from routespec.binding.keys import HEAD_KEY, PARAM_SIGIL, KeyKind, join_path, parse_key
from routespec.binding.resource import expand_resource
from routespec.binding.table import RouteTable
from routespec.errors import ConfigurationError
from routespec.routing.router import Router, compile_path

logger = logging.getLogger("routespec.binding")


def _middleware(value: Any, where: str) -> list[Callable[..., Any]]:
    """Flatten a unit, a router, or nested lists of them."""
    if value is None:
        return []
    if callable(value):
        return [value]
    if isinstance(value, (list, tuple)):
        flat: list[Callable[..., Any]] = []
        for item in value:
            flat.extend(_middleware(item, where))
        return flat
    kind = type(value).__name__
    msg = f"Middleware must be a callable or a list of callables, got {kind} [{where}]"
    raise ConfigurationError(msg)


def _is_mount_target(spec: Any) -> bool:
    return callable(spec) or isinstance(spec, (list, tuple))


class RouterBuilder:
    """Builds a ``Router`` from specifications.

    Args:
        controllers: Controller instances by name (nested mappings allowed),
            or a ``ControllerRegistry``.
        base_path: Root path for specifications added without a path.
        router: Router to register into. A new one by default.
        strict: Raise ``ConfigurationError`` for verb nodes that build an
            empty middleware pipeline instead of skipping them.
    """

    __slots__ = ("_base_path", "_params", "_registry", "_resolver", "_router", "_strict")

    def __init__(
        self,
        controllers: ControllerRegistry | Mapping[str, Any] | None = None,
        base_path: str = "/",
        *,
        router: Router | None = None,
        strict: bool = False,
    ) -> None:
        self._registry = ControllerRegistry.coerce(controllers)
        self._resolver = ActionResolver(self._registry)
        self._base_path = base_path or "/"
        self._router = router if router is not None else Router()
        self._strict = strict
        # Bare names of parameters already registered with the router
        self._params: set[str] = set()

    # -- Public API --

    def add_specification(self, spec: Any, path: str | None = None) -> RouterBuilder:
        """Interpret *spec* rooted at *path* and register the result."""
        table = self._interpret(spec, path or self._base_path, RouteTable())
        self._commit(table)
        return self

    def add_parameter(self, name: str, opts: Any, override: bool = False) -> None:
        """Register a handler for the ``:name`` path parameter.

        *opts* is a handler ``(request, next, value)`` or ``{"action": ref}``
        whose controller method returns the handler. A parameter is only
        registered once unless *override* is set.
        """
        self._commit(self._param(name, opts, RouteTable(), override=override))

    def add_routers(self, routers: Mapping[str, Any]) -> RouterBuilder:
        """Mount every router or middleware in a (nested) mapping at the root."""
        self._commit(self._routers(routers, RouteTable()))
        return self

    def get_router(self) -> Router:
        return self._router

    @property
    def router(self) -> Router:
        return self._router

    @property
    def base_path(self) -> str:
        return self._base_path

    @property
    def registry(self) -> ControllerRegistry:
        return self._registry

    # -- Interpretation --

    def _commit(self, table: RouteTable) -> None:
        table.apply(self._router)
        self._params |= table.param_names

    def _interpret(self, spec: Any, path: str, table: RouteTable) -> RouteTable:
        if _is_mount_target(spec):
            return self._use(path, spec, table)

        if not isinstance(spec, Mapping):
            msg = (
                "Specification must be a mapping, a router, a middleware callable "
                f"or a list of middleware callables [{path}]"
            )
            raise ConfigurationError(msg)

        # HEAD goes first: GET routes answer HEAD too and would shadow it.
        heads = [key for key in spec if isinstance(key, str) and key.lower() == HEAD_KEY]
        for key in heads:
            table = self._verb(key, path, spec[key], table)

        for key, value in spec.items():
            if key in heads:
                continue
            parsed = parse_key(key)
            match parsed.kind:
                case KeyKind.USE:
                    table = self._use(path, value, table)
                case KeyKind.PATH:
                    table = self._interpret(value, join_path(path, parsed.raw), table)
                case KeyKind.PARAM:
                    table = self._param(parsed.raw, value, table)
                case KeyKind.RESOURCE:
                    expanded = expand_resource(path, value, self._registry)
                    table = self._interpret(expanded, path, table)
                case KeyKind.VERB:
                    table = self._verb(parsed.raw, path, value, table)
        return table

    def _use(self, path: str, handlers: Any, table: RouteTable) -> RouteTable:
        logger.debug("processing use %s", path)
        units = _middleware(handlers, f"use {path}")
        compile_path(path, prefix=True)
        return table.with_mount(path, units)

    def _routers(self, routers: Mapping[str, Any], table: RouteTable) -> RouteTable:
        for name, value in routers.items():
            if _is_mount_target(value):
                table = table.with_mount("/", _middleware(value, f"router {name}"))
            elif isinstance(value, Mapping):
                table = self._routers(value, table)
            else:
                msg = f"Router {name} must be a router, middleware or a mapping of them"
                raise ConfigurationError(msg)
        return table

    def _param(
        self, name: str, opts: Any, table: RouteTable, *, override: bool = False
    ) -> RouteTable:
        logger.debug("processing parameter %s", name)

        if not isinstance(name, str) or not name.startswith(PARAM_SIGIL) or len(name) < 2:
            msg = f"Parameter name must start with {PARAM_SIGIL}, got {name!r}"
            raise ConfigurationError(msg)

        bare = name[1:]
        if not override and (bare in self._params or bare in table.param_names):
            return table

        if callable(opts):
            handler = opts
        elif isinstance(opts, Mapping):
            reference = opts.get("action")
            if reference is None:
                msg = f"Invalid parameter specification ({name})"
                raise ConfigurationError(msg)
            handler = self._resolver.resolve(reference).invoke()
        else:
            msg = f"opts must be a callable or a mapping [param={name}]"
            raise ConfigurationError(msg)

        if handler is not None and not callable(handler):
            msg = f"Parameter handler must be callable [param={name}]"
            raise ConfigurationError(msg)

        return table.with_param(bare, handler)

    def _verb(self, verb: str, path: str, opts: Any, table: RouteTable) -> RouteTable:
        if not self._router.supports(verb):
            msg = f"{verb} is not a valid http verb"
            raise ConfigurationError(msg)

        logger.debug("processing %s %s", verb.upper(), path)
        where = f"{verb} {path}"

        if not isinstance(opts, Mapping):
            msg = f"{where} must be a mapping with an action or view property"
            raise ConfigurationError(msg)

        action, view = opts.get("action"), opts.get("view")
        if action is None and view is None:
            msg = f"{where} must define an action or view property"
            raise ConfigurationError(msg)

        units = _middleware(opts.get("before"), where)
        if action is not None:
            context = ActionContext(path, opts.get("options"))
            units.extend(self._action_units(action, context, where))
        else:
            units.append(render(view))
        units.extend(_middleware(opts.get("after"), where))

        if not units:
            if self._strict:
                msg = f"{where} builds an empty middleware pipeline"
                raise ConfigurationError(msg)
            return table

        compile_path(path)
        return table.with_route(verb, path, units)

    def _action_units(
        self, reference: str, context: ActionContext, where: str
    ) -> list[Callable[..., Any]]:
        call = self._resolver.resolve(reference).bind(context)
        result = call.invoke()

        match result:
            case Pipeline():
                return pipeline_units(result, where)
            case list() | tuple():
                return _middleware(result, where)
            case _ if callable(result):
                return [result]
            case Mapping():
                return pipeline_units(Pipeline.from_mapping(result, where), where)
            case _:
                msg = (
                    "Return type of controller method must be a middleware callable, "
                    f"a list of them, a Pipeline or a mapping [{where}, {call}]"
                )
                raise ConfigurationError(msg)
