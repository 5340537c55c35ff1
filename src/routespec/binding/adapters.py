"""Middleware adapters for validate / sanitize / execute callables and views.

Each adapter turns a plain user callable into a middleware unit with the
same error behaviour: whatever the callable raises, or returns as an error
value, is answered through ``error_response`` and the pipeline stops there.
Only the callable itself is guarded; errors raised further down the
pipeline belong to the units that raised them.

Validate and sanitize callables take the request and report an outcome:

- ``None`` or ``True``: continue with the same request
- a ``Request``: continue with that request instead
- ``False``: fail with a 400 ``validation_failed`` error
- anything else: fail with that value as the error

Execute callables take the request and return a response value, or
``None`` to hand the request to the next unit (the ``after`` hooks).
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from routespec._internal.invoke import invoke
from routespec.binding.actions import Pipeline
from routespec.errors import ConfigurationError, HTTPError, ValidationFailed
from routespec.http.request import Request
from routespec.http.response import Response
from routespec.middleware.protocol import Next
from routespec.server.errors import error_response
from routespec.templating.returns import Template
from routespec.validation import validate

logger = logging.getLogger("routespec.binding")

# Marks an outcome that lets the pipeline continue
_PASS = object()


def _fail(err: Any, request: Request, stage: str) -> Response:
    if isinstance(err, BaseException):
        logger.debug(
            "%s %s rejected in %s: %r", request.method, request.path, stage, err, exc_info=err
        )
    else:
        logger.debug("%s %s rejected in %s: %r", request.method, request.path, stage, err)
    return error_response(err)


def _outcome(value: Any) -> Any:
    if value is None or value is True:
        return _PASS
    if value is False:
        return ValidationFailed()
    return value


def _checker(check: Callable[..., Any], stage: str) -> Callable[..., Any]:
    async def unit(request: Request, next: Next) -> Response:
        try:
            outcome = _outcome(await invoke(check, request))
        except Exception as exc:
            return _fail(exc, request, stage)
        if isinstance(outcome, Request):
            return await next(outcome)
        if outcome is not _PASS:
            return _fail(outcome, request, stage)
        return await next(request)

    unit.__name__ = f"{stage}_{getattr(check, '__name__', type(check).__name__)}"
    return unit


def validate_by_function(validator: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a validation callable."""
    return _checker(validator, "validate")


def sanitizer(sanitize: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a sanitization callable."""
    return _checker(sanitize, "sanitize")


def validate_by_schema(schema: Mapping[str, Any]) -> Callable[..., Any]:
    """Check ``await request.data()`` against a validation schema."""

    async def validate_schema(request: Request, next: Next) -> Response:
        try:
            data = await request.data()
        except ValueError:
            # Malformed JSON or a body that is not UTF-8
            err = HTTPError(400, "invalid_body", "Request body could not be parsed")
            return _fail(err, request, "validate")
        try:
            result = validate(data, schema)
        except Exception as exc:
            return _fail(exc, request, "validate")
        if not result:
            return _fail(ValidationFailed(result.errors), request, "validate")
        return await next(request)

    return validate_schema


def executor(execute: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap the execution callable of a pipeline."""

    async def execute_unit(request: Request, next: Next) -> Any:
        try:
            result = await invoke(execute, request)
        except Exception as exc:
            return _fail(exc, request, "execute")
        if result is None:
            return await next(request)
        return result

    execute_unit.__name__ = f"execute_{getattr(execute, '__name__', type(execute).__name__)}"
    return execute_unit


def render(view: str) -> Callable[..., Any]:
    """A unit that renders the template *view*."""

    async def render_view(request: Request, next: Next) -> Template:  # noqa: ARG001
        return Template(view, request=request)

    render_view.__name__ = f"render_{view}"
    return render_view


def _is_schema(value: Any) -> bool:
    """A mapping of field name to a list or tuple of rule callables."""
    return isinstance(value, Mapping) and all(
        isinstance(rules, (list, tuple)) and all(callable(rule) for rule in rules)
        for rules in value.values()
    )


def pipeline_units(pipeline: Pipeline, where: str) -> list[Callable[..., Any]]:
    """Units for a ``Pipeline``: validate, sanitize, then execute."""
    units: list[Callable[..., Any]] = []

    check = pipeline.validate
    if check is not None:
        if callable(check):
            units.append(validate_by_function(check))
        elif _is_schema(check):
            units.append(validate_by_schema(check))
        else:
            msg = f"Unsupported validate value [{check!r}] [{where}]"
            raise ConfigurationError(msg)

    if pipeline.sanitize is not None:
        if not callable(pipeline.sanitize):
            msg = f"Unsupported sanitize value [{pipeline.sanitize!r}] [{where}]"
            raise ConfigurationError(msg)
        units.append(sanitizer(pipeline.sanitize))

    if not callable(pipeline.execute):
        msg = f"Unsupported execute value [{pipeline.execute!r}] [{where}]"
        raise ConfigurationError(msg)
    units.append(executor(pipeline.execute))
    return units
