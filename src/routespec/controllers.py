"""Controller base classes.

A controller is any object whose methods build middleware at wiring time.
``ResourceController`` adds the conventional action map consumed by
``resource`` nodes::

    class PostController(ResourceController):
        resource_id = "post_id"

        def get_all(self, ctx):
            return list_posts

        def get_one(self, ctx):
            return Pipeline(validate=check_id, execute=show_post)

    spec = {"/posts": {"resource": {"controller": "posts", "deny": ["count"]}}}

Only actions whose method the subclass defines are exposed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from routespec.errors import ConfigurationError

# Placeholder for the resource id in action paths; replaced by ``/:<resource_id>``
RESOURCE_ID_PLACEHOLDER = "/:rcId"


@dataclass(frozen=True, slots=True)
class ActionDefinition:
    """How one resource action is exposed: verb, controller method, sub-path."""

    verb: str
    method: str
    path: str | None = None
    options: Mapping[str, Any] | None = None

    @classmethod
    def coerce(cls, value: Any, where: str) -> ActionDefinition:
        """Accept an ``ActionDefinition`` or a mapping with the same fields."""
        if isinstance(value, ActionDefinition):
            return value
        if isinstance(value, Mapping):
            verb, method = value.get("verb"), value.get("method")
            if not verb or not method:
                msg = f"Action definition must define verb and method [{where}]"
                raise ConfigurationError(msg)
            return cls(verb, method, value.get("path"), value.get("options"))
        msg = f"Unsupported action definition {value!r} [{where}]"
        raise ConfigurationError(msg)


DEFAULT_ACTIONS: dict[str, ActionDefinition] = {
    "create": ActionDefinition("post", "create"),
    "get_all": ActionDefinition("get", "get_all"),
    "get_one": ActionDefinition("get", "get_one", RESOURCE_ID_PLACEHOLDER),
    "update": ActionDefinition("put", "update", RESOURCE_ID_PLACEHOLDER),
    "delete": ActionDefinition("delete", "delete", RESOURCE_ID_PLACEHOLDER),
    "count": ActionDefinition("get", "count", "/count"),
}


class ResourceController:
    """Base class for controllers bound through ``resource`` nodes.

    Subclasses set ``resource_id`` (the path parameter naming one resource)
    and define any of ``create``, ``get_all``, ``get_one``, ``update``,
    ``delete`` and ``count``.
    """

    resource_id: str | None = None

    @property
    def actions(self) -> dict[str, ActionDefinition]:
        return {
            name: definition
            for name, definition in DEFAULT_ACTIONS.items()
            if callable(getattr(self, definition.method, None))
        }
