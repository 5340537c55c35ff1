"""Resource expansion.

A ``resource`` node binds a controller's conventional actions under the
current path. The node is rewritten into an ordinary specification fragment
which the builder then interprets like any other::

    {"resource": {"controller": "posts", "deny": ["count"]}}

    # at /posts, with resource_id = "post_id", becomes
    {
        "post": {"action": "posts@create"},
        "get": {"action": "posts@get_all"},
        "/:post_id": {
            "get": {"action": "posts@get_one"},
            "put": {"action": "posts@update"},
            "delete": {"action": "posts@delete"},
        },
    }
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from routespec.binding.actions import ControllerRegistry, action_ref
from routespec.controllers import RESOURCE_ID_PLACEHOLDER, ActionDefinition
from routespec.errors import ConfigurationError

logger = logging.getLogger("routespec.binding")


def _names(value: Any, key: str, path: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence) and all(isinstance(v, str) for v in value):
        return list(value)
    msg = f"{path} {key} property must be a list of action names"
    raise ConfigurationError(msg)


def _allowed(actions: Mapping[str, Any], opts: Mapping[str, Any], path: str) -> list[str]:
    allow, deny = opts.get("allow"), opts.get("deny")
    if allow is not None and deny is not None:
        msg = f"{path} can only define allow or deny property, not both"
        raise ConfigurationError(msg)

    if allow is not None:
        names = _names(allow, "allow", path)
        unknown = [name for name in names if name not in actions]
        if unknown:
            msg = f"{path} allows undefined actions: {', '.join(unknown)}"
            raise ConfigurationError(msg)
        return names

    names = list(actions)
    if deny is not None:
        denied = set(_names(deny, "deny", path))
        names = [name for name in names if name not in denied]
    return names


def _definitions(value: Any, where: str) -> list[ActionDefinition]:
    if isinstance(value, (list, tuple)):
        return [ActionDefinition.coerce(item, where) for item in value]
    return [ActionDefinition.coerce(value, where)]


def _single_remainder(path: str, prefixes: tuple[str, ...]) -> str | None:
    """The part of *path* after a single-resource prefix, or ``None``."""
    for prefix in prefixes:
        if path == prefix or path.startswith(prefix + "/"):
            return path[len(prefix) :]
    return None


def _bind(node: dict[str, Any], verb: str, action: dict[str, Any], where: str) -> None:
    if verb in node:
        msg = f"{where} binds {verb} more than once"
        raise ConfigurationError(msg)
    node[verb] = action


def expand_resource(path: str, opts: Any, registry: ControllerRegistry) -> dict[str, Any]:
    """Rewrite the resource declaration *opts* at *path* into a specification."""
    logger.debug("processing resource %s", path)

    if not isinstance(opts, Mapping):
        msg = f"{path} resource must be a mapping"
        raise ConfigurationError(msg)

    controller_name = opts.get("controller")
    if not controller_name:
        msg = f"{path} is missing controller property"
        raise ConfigurationError(msg)

    controller = registry.lookup(controller_name)

    actions = getattr(controller, "actions", None)
    if not actions:
        msg = f"{controller_name} must define actions property"
        raise ConfigurationError(msg)
    if not isinstance(actions, Mapping):
        msg = f"{controller_name} actions property must be a mapping"
        raise ConfigurationError(msg)

    resource_id = getattr(controller, "resource_id", None)
    if not resource_id:
        msg = f"{controller_name} must define resource_id property"
        raise ConfigurationError(msg)

    single_base = f"/:{resource_id}"
    prefixes = (single_base, RESOURCE_ID_PLACEHOLDER)
    node_options = opts.get("options")
    if node_options is not None and not isinstance(node_options, Mapping):
        msg = f"{path} options property must be a mapping"
        raise ConfigurationError(msg)

    collection: dict[str, Any] = {}
    single: dict[str, Any] = {}

    for name in _allowed(actions, opts, path):
        for definition in _definitions(actions[name], f"{controller_name}.{name}"):
            options = {**(definition.options or {}), **(node_options or {})} or None
            action = action_ref(controller_name, definition.method, options)
            verb = definition.verb.lower()
            if definition.path and not definition.path.startswith("/"):
                msg = f"{controller_name}.{name} path must start with /, got {definition.path!r}"
                raise ConfigurationError(msg)

            remainder = (
                _single_remainder(definition.path, prefixes) if definition.path else None
            )
            if remainder == "":
                node, where = single, path + single_base
            elif remainder is not None:
                node, where = single.setdefault(remainder, {}), path + single_base + remainder
            elif definition.path:
                node, where = collection.setdefault(definition.path, {}), path + definition.path
            else:
                node, where = collection, path
            _bind(node, verb, action, where)

    # Literal sub-paths such as /count come first so the parameterized path
    # does not capture them.
    if single:
        collection[single_base] = single
    return collection
