"""Middleware protocol and Next type alias.

A middleware unit is any callable matching::

    async def unit(request: Request, next: Next) -> Any: ...

It may return a response value (``Response``, ``str``, ``dict``,
``Template``, ...) to answer the request, or ``await next(request)`` to
continue down the pipeline. Plain ``def`` units are accepted too.

A parameter handler additionally receives the captured parameter value::

    async def load_user(request: Request, next: Next, value: str) -> Any: ...
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from routespec.http.request import Request
from routespec.http.response import Response

# The next unit in the pipeline; always yields a negotiated Response
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for routespec middleware units.

    Accepts both functions and callable objects (a ``Router`` is one)::

        async def timing(request: Request, next: Next) -> Response:
            start = time.monotonic()
            response = await next(request)
            return response.with_header("X-Time", f"{time.monotonic() - start:.3f}")
    """

    def __call__(self, request: Request, next: Next) -> Any: ...


class ParamHandler(Protocol):
    """Protocol for path-parameter handlers registered with ``Router.param``."""

    def __call__(self, request: Request, next: Next, value: str) -> Any: ...
