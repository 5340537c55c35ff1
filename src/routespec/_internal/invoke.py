"""Invoke helpers — call sync or async user callables uniformly.

Middleware units, validators, sanitizers, executors and parameter handlers
can all be ``def`` or ``async def``. Any code that calls one of them goes
through ``invoke`` so the sync/async check lives in exactly one place.

Usage::

    from routespec._internal.invoke import invoke

    outcome = await invoke(validator, request)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *handler* and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
