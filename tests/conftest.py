"""Shared fixtures for routespec tests."""

import json as json_module
from collections.abc import Callable
from typing import Any

import pytest

from routespec.http.headers import Headers
from routespec.http.query import QueryParams
from routespec.http.request import Request
from routespec.http.response import Response


def build_request(
    method: str = "GET",
    path: str = "/",
    *,
    query: bytes = b"",
    headers: dict[str, str] | None = None,
    body: bytes = b"",
    json: Any = None,
) -> Request:
    """A Request whose body is delivered in one ASGI message."""
    raw_headers = {k.lower(): v for k, v in (headers or {}).items()}
    if json is not None:
        body = json_module.dumps(json).encode("utf-8")
        raw_headers.setdefault("content-type", "application/json")

    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(
        method=method,
        path=path,
        headers=Headers(tuple((k.encode(), v.encode()) for k, v in raw_headers.items())),
        query=QueryParams(query),
        path_params={},
        http_version="1.1",
        client=("127.0.0.1", 0),
        _receive=receive,
    )


@pytest.fixture
def make_request() -> Callable[..., Request]:
    return build_request


async def terminal(request: Request) -> Response:
    """A ``next`` that ends the pipeline with a recognizable response."""
    return Response("fell through", status=299)


@pytest.fixture
def end() -> Callable[[Request], Any]:
    return terminal
