"""Immutable HTTP request.

Frozen metadata with async body access. The request is honest about
what it is: received data that doesn't change.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from aim._internal.asgi import Receive, Scope
from aim.errors import MalformedRequest, PayloadTooLarge
from aim.http.headers import Headers
from aim.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, query) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.text()``, ``.json()``
    and read from the transport at most once.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    # Largest body accepted by ``stream()``; ``None`` disables the check
    max_body: int | None = None

    # Private: ASGI receive callable for body streaming
    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # Private: mutable cache for the body bytes
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Computed properties --

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def content_length(self) -> int | None:
        """The Content-Length header as int."""
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def url(self) -> str:
        """Request path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    # -- Async body access --

    async def stream(self) -> AsyncIterator[bytes]:
        """Stream the request body in chunks as the transport delivers them.

        Raises ``PayloadTooLarge`` once more than ``max_body`` bytes arrive.
        """
        if self._receive is None:
            return
        received = 0
        while True:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                break
            chunk = message.get("body", b"")
            if chunk:
                received += len(chunk)
                if self.max_body is not None and received > self.max_body:
                    raise PayloadTooLarge(self.max_body)
                yield chunk
            if not message.get("more_body", False):
                break

    async def body(self) -> bytes:
        """Read the full request body.

        Result is cached: the ASGI receive is consumed once, then
        the same bytes are returned on subsequent calls.
        """
        if "_body" in self._cache:
            return self._cache["_body"]
        if self.max_body is not None and (self.content_length or 0) > self.max_body:
            raise PayloadTooLarge(self.max_body)
        result = b"".join([chunk async for chunk in self.stream()])
        self._cache["_body"] = result
        return result

    async def text(self) -> str:
        """Read the body as UTF-8 text."""
        raw = await self.body()
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedRequest("Request body is not valid UTF-8") from exc

    async def json(self) -> Any:
        """Parse the body as JSON.

        Raises ``MalformedRequest`` (400) for an empty or invalid document.
        """
        text = await self.text()
        try:
            return json_module.loads(text)
        except json_module.JSONDecodeError as exc:
            raise MalformedRequest(f"Invalid JSON body: {exc.msg}") from exc

    # -- Factories --

    @classmethod
    def from_asgi(
        cls,
        scope: Scope,
        receive: Receive,
        *,
        max_body: int | None = None,
    ) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        client = scope.get("client")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            headers=Headers(tuple(scope.get("headers", ()))),
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            max_body=max_body,
            _receive=receive,
        )

    @classmethod
    def build(
        cls,
        method: str,
        target: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
    ) -> Request:
        """Create a Request without a transport, e.g. for ``App.handle()``.

        *target* may carry a query string (``/search?q=aim``).
        """
        path, _, query_string = target.partition("?")
        sent = False

        async def receive() -> dict[str, Any]:
            nonlocal sent
            if sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        return cls(
            method=method.upper(),
            path=path or "/",
            headers=Headers.from_mapping(headers),
            query=QueryParams(query_string.encode("latin-1")),
            _receive=receive,
        )
