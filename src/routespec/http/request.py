"""Immutable HTTP request.

Frozen metadata with async body access. Routers hand scoped copies of the
request down the pipeline (``dataclasses.replace``) instead of mutating it:
path parameters and the mount prefix (``root_path``) differ per layer, the
body cache is shared.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

from routespec._internal.asgi import Receive
from routespec.http.headers import Headers
from routespec.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``path`` is the full request path. ``root_path`` is the prefix consumed
    by the routers this request has been mounted through; routing happens on
    ``route_path``.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    path_params: dict[str, str]
    http_version: str
    client: tuple[str, int] | None

    # Private: ASGI receive callable for body streaming
    _receive: Receive

    root_path: str = ""

    # Private: mutable cache for body and parsed data, shared by scoped copies
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def route_path(self) -> str:
        """The part of ``path`` below ``root_path``."""
        rest = self.path[len(self.root_path) :]
        if not rest.startswith("/"):
            rest = "/" + rest
        return rest

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body (cached after the first read)."""
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            body = message.get("body", b"")
            if body:
                yield body
            if not message.get("more_body", False):
                break

    async def text(self) -> str:
        raw = await self.body()
        return raw.decode("utf-8")

    async def json(self) -> Any:
        """Parse the body as JSON."""
        import json as json_module

        if "_json" not in self._cache:
            raw = await self.body()
            self._cache["_json"] = json_module.loads(raw) if raw else None
        return self._cache["_json"]

    async def form(self) -> dict[str, str]:
        """Parse an ``application/x-www-form-urlencoded`` body.

        Repeated fields keep their last value.
        """
        if "_form" not in self._cache:
            raw = await self.text()
            self._cache["_form"] = dict(parse_qsl(raw, keep_blank_values=True))
        return self._cache["_form"]

    async def data(self) -> dict[str, Any]:
        """All request data merged into one mapping.

        Later sources win: query string, then body (JSON object or url-encoded
        form), then path parameters.
        """
        merged: dict[str, Any] = dict(self.query)
        if self.method not in ("GET", "HEAD"):
            ct = self.content_type or ""
            if "json" in ct:
                payload = await self.json()
                if isinstance(payload, dict):
                    merged.update(payload)
            elif "x-www-form-urlencoded" in ct:
                merged.update(await self.form())
        merged.update(self.path_params)
        return merged

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            path_params={},
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            _receive=receive,
            root_path=scope.get("root_path", ""),
        )
