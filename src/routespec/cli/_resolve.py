"""Import resolution for CLI targets.

A target is an ``App`` or a bare ``RouterBuilder``; both expose the bound
``router``. ``"module:attribute"`` strings name them, the attribute defaulting
to ``"app"``.
"""

import importlib

from routespec.app import App
from routespec.binding.builder import RouterBuilder
from routespec.routing.router import Router

type Target = App | RouterBuilder


def resolve_target(import_string: str) -> Target:
    """Resolve an import string to an ``App`` or ``RouterBuilder``.

    A callable that is neither is treated as a factory and called.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object has no router or the factory fails.
    """
    module_path, _, attr_name = import_string.partition(":")
    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name or "app")

    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, (App, RouterBuilder)):
        kind = type(obj).__name__
        msg = f"{import_string!r} resolved to {kind}, not a routespec App or RouterBuilder"
        raise TypeError(msg)

    return obj


def router_of(target: Target) -> Router:
    """The router of *target*, compiled when *target* is an App."""
    if isinstance(target, App):
        target._ensure_frozen()
    return target.router
