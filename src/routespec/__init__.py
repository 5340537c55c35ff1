"""routespec — declarative route binding for ASGI applications.

Describe routes as a nested specification and bind them to controllers::

    from routespec import App

    app = App({"posts": PostController()})
    app.add_specification({
        "/posts": {
            "resource": {"controller": "posts"},
            "/:post_id/comments": {"get": {"action": "posts@comments"}},
        },
        "/about": {"get": {"view": "about.html"}},
    })

Serve ``app`` with any ASGI server.
"""

__version__ = "0.1.0"
__all__ = [
    "ActionContext",
    "ActionDefinition",
    "App",
    "AppConfig",
    "AppError",
    "ConfigurationError",
    "HTTPError",
    "Middleware",
    "Next",
    "NotFound",
    "Pipeline",
    "Redirect",
    "Request",
    "ResourceController",
    "Response",
    "Router",
    "RouterBuilder",
    "Template",
    "ValidationFailed",
    "g",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import routespec`` fast while providing a clean top-level API.
    """
    if name == "App":
        from routespec.app import App

        return App

    if name == "AppConfig":
        from routespec.config import AppConfig

        return AppConfig

    if name in ("RouterBuilder", "Pipeline", "ActionContext"):
        from routespec import binding as _binding

        return getattr(_binding, name)

    if name in ("ResourceController", "ActionDefinition"):
        from routespec import controllers as _controllers

        return getattr(_controllers, name)

    if name == "Router":
        from routespec.routing.router import Router

        return Router

    if name == "Request":
        from routespec.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from routespec.http import response as _resp

        return getattr(_resp, name)

    if name == "Template":
        from routespec.templating.returns import Template

        return Template

    if name in ("Middleware", "Next"):
        from routespec.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in ("g", "get_request"):
        from routespec import context as _ctx

        return getattr(_ctx, name)

    if name in ("AppError", "ConfigurationError", "HTTPError", "NotFound", "ValidationFailed"):
        from routespec import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
