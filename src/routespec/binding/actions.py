"""Controller lookup and action resolution.

An action reference is ``"controller@method"``; ``"controller"`` alone
names the controller's single action, its ``__call__``. Controller names may
be dotted (``"admin.users"``) to reach into nested groups of the registry.

Resolution happens at wiring time and fails fast with a typed
``ConfigurationError`` subclass.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from routespec.errors import (
    ConfigurationError,
    ControllerNotFound,
    InvalidActionReference,
    MethodNotFound,
)

ACTION_SEPARATOR = "@"
NAME_SEPARATOR = "."
SINGLE_ACTION_METHOD = "__call__"


def action_ref(
    controller: str, method: str, options: Mapping[str, Any] | None = None
) -> dict[str, Any]:
    """Build the verb options that bind ``controller@method``."""
    action: dict[str, Any] = {"action": f"{controller}{ACTION_SEPARATOR}{method}"}
    if options:
        action["options"] = options
    return action


class ControllerRegistry:
    """Read-only lookup of controller instances by (dotted) name.

    Usage::

        registry = ControllerRegistry({
            "posts": PostController(),
            "admin": {"users": UserController()},
        })
        registry.lookup("admin.users")
    """

    __slots__ = ("_controllers",)

    def __init__(self, controllers: Mapping[str, Any] | None = None) -> None:
        self._controllers: Mapping[str, Any] = controllers or {}

    @classmethod
    def coerce(
        cls, controllers: ControllerRegistry | Mapping[str, Any] | None
    ) -> ControllerRegistry:
        if isinstance(controllers, ControllerRegistry):
            return controllers
        return cls(controllers)

    def lookup(self, name: str) -> Any:
        """Return the controller registered under *name*.

        Raises ``ControllerNotFound`` if any segment of the name is missing.
        """
        node: Any = self._controllers
        for part in name.split(NAME_SEPARATOR):
            if not part or not isinstance(node, Mapping) or part not in node:
                raise ControllerNotFound(name)
            node = node[part]
        if node is None:
            raise ControllerNotFound(name)
        return node

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        try:
            self.lookup(name)
        except ControllerNotFound:
            return False
        return True


@dataclass(frozen=True, slots=True)
class ActionContext:
    """What a controller action method receives at wiring time."""

    path: str
    options: Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class BoundMethodCall:
    """A controller method bound to its instance, plus bind-time arguments."""

    controller_name: str
    method_name: str
    method: Callable[..., Any]
    args: tuple[Any, ...] = field(default=())

    @property
    def controller(self) -> Any:
        return getattr(self.method, "__self__", None)

    def bind(self, *args: Any) -> BoundMethodCall:
        """Return a copy that passes *args* (after any earlier ones) on invoke."""
        return replace(self, args=(*self.args, *args))

    def invoke(self) -> Any:
        return self.method(*self.args)

    def __str__(self) -> str:
        return f"{self.controller_name}{ACTION_SEPARATOR}{self.method_name}"


class ActionResolver:
    """Turns action references into ``BoundMethodCall`` objects."""

    __slots__ = ("_registry",)

    def __init__(self, registry: ControllerRegistry) -> None:
        self._registry = registry

    def resolve(self, reference: str) -> BoundMethodCall:
        if not isinstance(reference, str):
            msg = f"Action reference must be a string, got {type(reference).__name__}"
            raise ConfigurationError(msg)

        parts = reference.split(ACTION_SEPARATOR)
        if len(parts) > 2 or not all(parts):
            raise InvalidActionReference(reference)

        controller_name = parts[0]
        method_name = parts[1] if len(parts) == 2 else SINGLE_ACTION_METHOD

        controller = self._registry.lookup(controller_name)
        method = getattr(controller, method_name, None)
        if method is None or not callable(method):
            raise MethodNotFound(controller_name, method_name)

        return BoundMethodCall(controller_name, method_name, method)


@dataclass(frozen=True, slots=True)
class Pipeline:
    """An action result split into validation, sanitization and execution.

    ``validate`` is a callable or a validation schema (field -> rules);
    ``sanitize`` is a callable; ``execute`` is required and always runs last.
    When ``execute`` returns ``None`` the request continues to the next unit
    (the ``after`` hooks) and, with none left, to the next matching route or
    a 404. Return ``Response("", status=204)`` for an empty success::

        def create(self, ctx):
            return Pipeline(
                validate={"title": [required, max_length(200)]},
                execute=self._create,
            )
    """

    execute: Callable[..., Any]
    validate: Callable[..., Any] | Mapping[str, Any] | None = None
    sanitize: Callable[..., Any] | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], where: str) -> Pipeline:
        """Build from a ``{"validate"?, "sanitize"?, "execute"}`` mapping."""
        execute = data.get("execute")
        if execute is None:
            msg = f"Controller method must define an 'execute' property [{where}]"
            raise ConfigurationError(msg)
        return cls(execute=execute, validate=data.get("validate"), sanitize=data.get("sanitize"))
