"""ASGI handler — translates ASGI scope/messages to routespec types.

The only component that touches raw ASGI http messages. Converts the scope
to a typed Request, runs app middleware around the router, and sends the
Response back through ASGI send().
"""

from collections.abc import Callable
from contextvars import Token
from typing import Any

from kida import Environment

from routespec._internal.asgi import Receive, Scope, Send
from routespec._internal.invoke import invoke
from routespec.context import g, request_var
from routespec.errors import HTTPError, NotFound
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.middleware.protocol import Next
from routespec.routing.router import Router
from routespec.server.errors import handle_http_error, handle_internal_error
from routespec.server.negotiation import negotiate
from routespec.server.sender import send_response


async def _not_found(request: Request) -> Response:
    raise NotFound(f"Cannot {request.method} {request.path}")


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...] = (),
    kida_env: Environment | None = None,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    # Set request context var (reset after dispatch)
    token: Token[Request] = request_var.set(request)

    try:

        async def dispatch(req: Request) -> Response:
            return await router(req, _not_found)

        # Wrap middleware around the dispatch
        handler: Next = dispatch
        for mw in reversed(middleware):
            outer = handler

            async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
                return negotiate(await invoke(_mw, req, _next), kida_env=kida_env)

            handler = make_next

        response = await handler(request)

    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request)
    finally:
        g._reset()
        request_var.reset(token)

    await send_response(response, send, head=request.method == "HEAD")
