"""Declarative route binding.

``RouterBuilder`` walks a specification tree and registers routes, resource
actions, parameter handlers and mounted middleware with a ``Router``.
"""

from routespec.binding.actions import (
    ActionContext,
    ActionResolver,
    BoundMethodCall,
    ControllerRegistry,
    Pipeline,
    action_ref,
)
from routespec.binding.builder import RouterBuilder
from routespec.binding.keys import KeyKind, SpecKey, parse_key
from routespec.binding.resource import expand_resource
from routespec.binding.table import RouteTable

__all__ = [
    "ActionContext",
    "ActionResolver",
    "BoundMethodCall",
    "ControllerRegistry",
    "KeyKind",
    "Pipeline",
    "RouteTable",
    "RouterBuilder",
    "SpecKey",
    "action_ref",
    "expand_resource",
    "parse_key",
]
