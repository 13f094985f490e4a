"""Async test client for aim applications.

Requests go through the app's ASGI entry point, so the sender, the
dispatcher and every middleware run exactly as they do behind a server.
No network is involved.
"""

import json as json_module
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import anyio

from aim._internal.invoke import invoke
from aim.app import App


@dataclass(frozen=True, slots=True)
class TestResponse:
    """What the client received: status, header lines and the body.

    ``chunks`` keeps every non-empty body message in arrival order, so
    tests can tell a streamed body from a buffered one.
    """

    __test__ = False

    status: int
    headers: tuple[tuple[str, str], ...]
    body: bytes
    chunks: tuple[bytes, ...] = ()

    def header(self, name: str, default: str | None = None) -> str | None:
        lower = name.lower()
        for n, v in self.headers:
            if n == lower:
                return v
        return default

    def header_list(self, name: str) -> list[str]:
        lower = name.lower()
        return [v for n, v in self.headers if n == lower]

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")

    def json(self) -> Any:
        return json_module.loads(self.body)

    # -- Status predicates --

    @property
    def is_ok(self) -> bool:
        return self.status == 200

    @property
    def is_created(self) -> bool:
        return self.status == 201

    @property
    def is_no_content(self) -> bool:
        return self.status == 204

    @property
    def is_redirect(self) -> bool:
        return 300 <= self.status < 400

    @property
    def is_bad_request(self) -> bool:
        return self.status == 400

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status == 403

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for aim applications.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/users/42")
            assert response.json() == {"id": "42"}

    Entering the client freezes the app and runs its startup hooks;
    leaving runs the shutdown hooks.
    """

    __slots__ = ("app",)

    def __init__(self, app: App[Any]) -> None:
        self.app = app

    async def __aenter__(self) -> "TestClient":
        self.app._ensure_frozen()
        for hook in self.app._startup_hooks:
            await invoke(hook)
        return self

    async def __aexit__(self, *args: object) -> None:
        for hook in self.app._shutdown_hooks:
            await invoke(hook)

    async def get(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
    ) -> TestResponse:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers, query=query)

    async def head(self, path: str, *, headers: dict[str, str] | None = None) -> TestResponse:
        return await self.request("HEAD", path, headers=headers)

    async def options(self, path: str, *, headers: dict[str, str] | None = None) -> TestResponse:
        return await self.request("OPTIONS", path, headers=headers)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> TestResponse:
        return await self.request("DELETE", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> TestResponse:
        """Send a POST request. ``json=`` encodes the body and sets its type."""
        return await self.request("POST", path, headers=headers, body=body, json=json)

    async def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> TestResponse:
        return await self.request("PUT", path, headers=headers, body=body, json=json)

    async def patch(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> TestResponse:
        return await self.request("PATCH", path, headers=headers, body=body, json=json)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        query: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> TestResponse:
        """Send an arbitrary request through the ASGI app."""
        # Split path and query string
        if "?" in path:
            path_part, query_string = path.split("?", 1)
        else:
            path_part = path
            query_string = ""
        if query:
            extra = urlencode(query)
            query_string = f"{query_string}&{extra}" if query_string else extra

        request_headers = dict(headers or {})
        request_body = body or b""
        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            request_headers.setdefault("content-type", "application/json")

        raw_headers: list[tuple[bytes, bytes]] = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in request_headers.items()
        ]
        if request_body:
            raw_headers.append((b"content-length", str(len(request_body)).encode("latin-1")))

        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method.upper(),
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 0),
        }

        # The client stays connected until the response is complete, so a
        # streamed body is never cut short by a premature disconnect.
        response_complete = anyio.Event()
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            await response_complete.wait()
            return {"type": "http.disconnect"}

        status = 500
        response_headers: list[tuple[str, str]] = []
        chunks: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
                response_headers.extend(
                    (name.decode("latin-1"), value.decode("latin-1"))
                    for name, value in message.get("headers", [])
                )
            elif message["type"] == "http.response.body":
                chunk = message.get("body", b"")
                if chunk:
                    chunks.append(chunk)
                if not message.get("more_body", False):
                    response_complete.set()

        await self.app(scope, receive, send)
        response_complete.set()

        return TestResponse(
            status=status,
            headers=tuple(response_headers),
            body=b"".join(chunks),
            chunks=tuple(chunks),
        )
