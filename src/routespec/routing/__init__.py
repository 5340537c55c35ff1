"""Routing — the ordered router primitive.

Routes are registered during setup in the order they should be tried and
frozen with ``compile()`` when the app freezes.
"""

from routespec.routing.route import Layer, PathSegment, Route
from routespec.routing.router import METHODS, Router, compile_path, parse_path

__all__ = [
    "METHODS",
    "Layer",
    "PathSegment",
    "Route",
    "Router",
    "compile_path",
    "parse_path",
]
