"""Per-request Context: request accessors plus a single-write response builder.

A Context is created for exactly one request, owned by that request's
execution, mutated in place by middleware and the handler, and read once
when the chain completes. It is never shared across requests.

Usage::

    @app.get("/users/:id")
    async def user(c: Context[AuthEnv]):
        if c.variables.user_id is None:
            return c.text("Unauthorized", status=401)
        return c.json({"id": c.param("id")})
"""

from collections.abc import Mapping
from enum import StrEnum
from typing import Any

from aim._internal.sources import close_source
from aim.env import Env
from aim.errors import ResponseAlreadySet
from aim.http.headers import Headers, MutableHeaders
from aim.http.query import QueryParams
from aim.http.request import Request
from aim.http.response import (
    ByteSource,
    Response,
    empty_response,
    html_response,
    json_response,
    redirect_response,
    stream_response,
    text_response,
)
from aim.routing.route import Route


class RequestState(StrEnum):
    """Where a request is in the dispatcher's state machine."""

    CREATED = "created"
    ROUTE_RESOLVED = "route_resolved"
    UNRESOLVED = "unresolved"
    MIDDLEWARE_EXECUTING = "middleware_executing"
    HANDLER_EXECUTED = "handler_executed"
    ERROR_CAUGHT = "error_caught"
    RESPONSE_FINALIZED = "response_finalized"


class Context[E: Env]:
    """The per-request object handed to middleware and handlers.

    ``variables`` holds the typed container produced by the app's
    environment factory. Response state (status, headers, body) starts
    as an empty ``200`` and is read off by the dispatcher at the end.
    """

    __slots__ = (
        "_body",
        "_body_headers",
        "_body_written",
        "_headers",
        "_status",
        "_written",
        "params",
        "request",
        "route",
        "state",
        "variables",
    )

    def __init__(
        self,
        request: Request,
        variables: E,
        params: Mapping[str, str] | None = None,
        route: Route | None = None,
    ) -> None:
        self.request = request
        self.route = route
        self.variables: E = variables
        self.params: dict[str, str] = dict(params or {})
        self.state = RequestState.CREATED
        self._status = 200
        self._headers = MutableHeaders()
        self._body: bytes | ByteSource = b""
        self._body_headers: tuple[tuple[str, str], ...] = ()
        self._body_written = False
        self._written: Response | None = None

    def __repr__(self) -> str:
        return f"<Context {self.method} {self.path} status={self._status} state={self.state}>"

    # -- Request accessors --

    @property
    def req(self) -> Request:
        """Shorthand for ``request``."""
        return self.request

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    @property
    def headers(self) -> Headers:
        """Request headers."""
        return self.request.headers

    @property
    def query(self) -> QueryParams:
        return self.request.query

    def param(self, name: str) -> str:
        """A path parameter bound by the matched route.

        Raises ``KeyError`` when the route pattern has no such parameter.
        """
        try:
            return self.params[name]
        except KeyError:
            msg = f"Path parameter {name!r} not found"
            raise KeyError(msg) from None

    def query_param(self, name: str, default: str | None = None) -> str:
        """A query parameter, or *default*.

        Without a default a missing parameter is the client's mistake and
        raises ``MalformedRequest`` (400).
        """
        if default is None:
            return self.request.query.require(name)
        return self.request.query.get(name, default)

    async def body(self) -> bytes:
        return await self.request.body()

    async def text_body(self) -> str:
        return await self.request.text()

    async def json_body(self) -> Any:
        return await self.request.json()

    # -- Response mutators --

    @property
    def status(self) -> int:
        return self._status

    @property
    def response_headers(self) -> MutableHeaders:
        return self._headers

    def set_status(self, status: int) -> None:
        if not 100 <= status <= 599:
            msg = f"Invalid status code: {status}"
            raise ValueError(msg)
        self._status = status

    def set_header(self, name: str, value: str) -> None:
        """Add a response header. Earlier values for *name* are kept."""
        self._headers.add(name, value)

    @property
    def finalized(self) -> bool:
        """True once a body-producing helper has run."""
        return self._body_written

    @property
    def response(self) -> Response:
        """The response as it stands right now."""
        return Response(self._body, self._status, self._headers.items() + self._body_headers)

    # -- Body-producing helpers (each at most once per Context) --

    def json(self, value: Any, status: int = 200, headers: Mapping[str, str] | None = None) -> Response:
        return self._write(json_response(value, status, headers))

    def text(self, value: str, status: int = 200, headers: Mapping[str, str] | None = None) -> Response:
        return self._write(text_response(value, status, headers))

    def html(self, value: str, status: int = 200, headers: Mapping[str, str] | None = None) -> Response:
        return self._write(html_response(value, status, headers))

    def redirect(self, location: str, status: int = 302) -> Response:
        return self._write(redirect_response(location, status))

    def stream(
        self,
        source: ByteSource,
        status: int = 200,
        headers: Mapping[str, str] | None = None,
    ) -> Response:
        """Respond with a body pulled incrementally from *source*.

        *source* is an iterable or async iterable of ``bytes`` (``str``
        chunks are UTF-8 encoded). Nothing is buffered: the transport pulls
        each chunk as the client can take it, and closes the source if the
        client goes away.
        """
        return self._write(stream_response(source, status, headers))

    def empty(self, status: int = 204) -> Response:
        """Finish with no body."""
        return self._write(empty_response(status))

    def not_found(self, message: str | None = None) -> Response:
        return self._write(text_response(message or "Not Found", 404))

    def adopt(self, response: Response) -> Response:
        """Take over a Response built outside the helpers.

        Headers set on the Context come first, then the response's own
        headers.
        """
        return self._write(response)

    def _write(self, response: Response) -> Response:
        if self._body_written:
            msg = (
                f"A response body was already written for {self.method} {self.path}; "
                "call at most one of json/text/html/redirect/stream/empty per request."
            )
            raise ResponseAlreadySet(msg)
        self._body_written = True
        self._status = response.status
        self._body = response.body
        self._body_headers = response.headers
        self._written = self.response
        return self._written

    def _reset_response(self) -> None:
        """Drop status, body and the headers that came with the body.

        Headers set through ``set_header`` (CORS, request ids) are kept.
        """
        self._status = 200
        self._body = b""
        self._body_headers = ()
        self._body_written = False
        self._written = None

    async def _discard_response(self) -> None:
        """Reset the response, closing a streamed body that will never be sent."""
        if not isinstance(self._body, bytes):
            await close_source(self._body)
        self._reset_response()
