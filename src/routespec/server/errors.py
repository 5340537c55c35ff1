"""Error responses for routespec requests.

``error_response`` is the single place that turns an error value into what
the client sees. The mapping is part of the client-visible contract:

=====================  ======  ==============================================
error value            status  body
=====================  ======  ==============================================
``str``                400     ``text/plain``, the text itself
``HTTPError``          status  ``{"errors": {"code", "message", "details"?}}``
other ``AppError``     500     ``{"errors": {"code", "message", "details"?}}``
other exception        500     ``{"errors": {"message": str(exc)}}``
anything else          500     ``{"errors": {"details": value}}``
=====================  ======  ==============================================
"""

import logging
from typing import Any

from routespec.errors import AppError, HTTPError
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.server.negotiation import json_response

logger = logging.getLogger("routespec.server")


def error_response(err: Any) -> Response:
    """Map an error value to its HTTP response."""
    match err:
        case str():
            return Response(body=err, status=400, content_type="text/plain; charset=utf-8")
        case AppError():
            payload: dict[str, Any] = {"code": err.code, "message": err.message}
            if err.details:
                payload["details"] = err.details
            status = err.status if isinstance(err, HTTPError) else 500
            response = json_response({"errors": payload}, status=status)
            if isinstance(err, HTTPError):
                for name, value in err.headers:
                    response = response.with_header(name, value)
            return response
        case BaseException():
            # Plain exceptions only guarantee a message.
            return json_response({"errors": {"message": str(err)}}, status=500)
        case _:
            return json_response({"errors": {"details": err}}, status=500)


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Respond to an ``HTTPError`` that escaped the pipeline."""
    logger.debug("%d %s %s — %s", exc.status, request.method, request.path, exc.message)
    return error_response(exc)


def handle_internal_error(exc: Exception, request: Request) -> Response:
    """Respond to any other exception that escaped the pipeline."""
    logger.exception("500 %s %s", request.method, request.path)
    return error_response(exc)
