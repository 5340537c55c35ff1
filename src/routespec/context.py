"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: the ``Request`` the ASGI handler is currently serving.
- ``g``: a mutable namespace scoped to the current request. Parameter
  handlers use it to hand loaded objects to the units that follow::

      async def load_user(request, next, value):
          g.user = await users.get(value)
          return await next(request)

Both are reset by the ASGI handler after each request. ``ContextVar`` is
task-local under asyncio, so concurrent requests never see each other's
values.
"""

from contextvars import ContextVar
from typing import Any

from routespec.http.request import Request

request_var: ContextVar[Request] = ContextVar("routespec_request")


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


_store: ContextVar[dict[str, Any] | None] = ContextVar("routespec_g", default=None)


class _RequestGlobals:
    """Attribute access over a per-request dict held in a ContextVar."""

    __slots__ = ()

    @staticmethod
    def _data() -> dict[str, Any]:
        d = _store.get()
        if d is None:
            d = {}
            _store.set(d)
        return d

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data()[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data()[name] = value

    def __delattr__(self, name: str) -> None:
        try:
            del self._data()[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __contains__(self, name: str) -> bool:
        return name in self._data()

    def get(self, name: str, default: Any = None) -> Any:
        return self._data().get(name, default)

    def _reset(self) -> None:
        _store.set(None)

    def __repr__(self) -> str:
        return f"<g {self._data()!r}>"


g = _RequestGlobals()
"""Request-scoped namespace. Stores arbitrary per-request data."""
