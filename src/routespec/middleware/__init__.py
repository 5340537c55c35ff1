"""Middleware — Protocol-based, no inheritance required.

A middleware unit is any callable matching:
    async def unit(request: Request, next: Next) -> Any

Pipelines assembled by ``RouterBuilder`` are lists of such units; the
validate / sanitize / execute adapters in ``routespec.binding.adapters``
produce them from plain functions.
"""

from routespec.middleware.protocol import Middleware, Next, ParamHandler

__all__ = [
    "Middleware",
    "Next",
    "ParamHandler",
]
