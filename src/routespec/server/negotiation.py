"""Content negotiation — maps unit return values to Response objects.

Every middleware unit's return value passes through ``negotiate`` before
the previous unit sees it, so ``await next(request)`` always yields a
``Response``. isinstance-based dispatch, no magic, fully predictable.
"""

import json as json_module
from typing import Any

from kida import Environment

from routespec.errors import ConfigurationError
from routespec.http.response import Redirect, Response
from routespec.templating.integration import render_template
from routespec.templating.returns import Template

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


def json_response(data: Any, status: int = 200) -> Response:
    """Serialize *data* as a JSON response. Unknown types fall back to ``str``."""
    return Response(
        body=json_module.dumps(data, default=str),
        status=status,
        content_type=JSON_CONTENT_TYPE,
    )


def negotiate(value: Any, *, kida_env: Environment | None = None) -> Response:
    """Convert a unit's return value to a Response.

    Dispatch order:

    1. ``Response``         -> pass through
    2. ``Redirect``         -> 302 with Location header
    3. ``Template``         -> render via kida -> Response
    4. ``None``             -> 204, empty body
    5. ``str``              -> 200, text/html
    6. ``bytes``            -> 200, application/octet-stream
    7. ``dict`` / ``list``  -> 200, application/json
    8. ``(value, int)``     -> negotiate value, override status
    9. ``(value, int, dict)`` -> negotiate value, override status + headers
    """
    match value:
        case Response():
            return value
        case Redirect():
            return (
                Response(body="")
                .with_status(value.status)
                .with_header("Location", value.url)
                .with_headers(dict(value.headers))
            )
        case Template():
            if kida_env is None:
                msg = (
                    f"Cannot render view {value.name!r}: no template environment. "
                    "Configure template_dir in AppConfig or pass kida_env to App."
                )
                raise ConfigurationError(msg)
            return Response(body=render_template(kida_env, value))
        case None:
            return Response(body="", status=204)
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return json_response(value)
        case (inner, int() as status):
            return negotiate(inner, kida_env=kida_env).with_status(status)
        case (inner, int() as status, dict() as headers):
            return negotiate(inner, kida_env=kida_env).with_status(status).with_headers(headers)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return str, bytes, dict, list, Template, Response, or Redirect."
            )
            raise TypeError(msg)
