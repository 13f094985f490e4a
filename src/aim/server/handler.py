"""Request dispatch: route resolution, the middleware chain, the error boundary.

``Dispatcher.dispatch(request) -> Response`` is the one entry point. The
ASGI adapter (``handle_request``) and the in-process test client both go
through it, so tested behavior is served behavior.

Per request::

    CREATED -> ROUTE_RESOLVED | UNRESOLVED -> MIDDLEWARE_EXECUTING
            -> HANDLER_EXECUTED | ERROR_CAUGHT -> RESPONSE_FINALIZED
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from aim._internal.asgi import Receive, Scope, Send
from aim._internal.invoke import invoke
from aim._internal.types import Chain, ErrorHandler, Handler
from aim.context import Context, RequestState
from aim.env import EmptyEnv, EnvFactory
from aim.http.request import Request
from aim.http.response import Response
from aim.middleware.chain import build_chain
from aim.routing.router import Router
from aim.server.errors import default_not_found, handle_error
from aim.server.negotiation import settle
from aim.server.sender import send_response

logger = logging.getLogger("aim.server")


@dataclass(frozen=True, slots=True)
class Dispatcher:
    """Frozen runtime state of an app: built once, read by every request.

    ``routed`` and ``unrouted`` are the two composed chains: global
    middleware around the matched route's handler, and the same
    middleware around the not-found handler.
    """

    router: Router
    routed: Chain
    unrouted: Chain
    env_factory: EnvFactory
    error_handler: ErrorHandler | None = None
    debug: bool = False

    @classmethod
    def build(
        cls,
        *,
        router: Router,
        middleware: Sequence[Any],
        env_factory: EnvFactory,
        not_found_handler: Handler | None = None,
        error_handler: ErrorHandler | None = None,
        debug: bool = False,
    ) -> "Dispatcher":
        not_found = not_found_handler or default_not_found

        async def run_route(c: Context[Any]) -> None:
            assert c.route is not None
            await settle(c, await invoke(c.route.handler, c))
            c.state = RequestState.HANDLER_EXECUTED

        async def run_not_found(c: Context[Any]) -> None:
            await settle(c, await invoke(not_found, c))
            c.state = RequestState.HANDLER_EXECUTED

        return cls(
            router=router,
            routed=build_chain(middleware, run_route),
            unrouted=build_chain(middleware, run_not_found),
            env_factory=env_factory,
            error_handler=error_handler,
            debug=debug,
        )

    async def dispatch(self, request: Request) -> Response:
        """Run one request through the app and return its final response."""
        match = self.router.resolve(request.method, request.path)

        factory_error: Exception | None = None
        try:
            variables = self.env_factory()
        except Exception as exc:
            factory_error = exc
            variables = EmptyEnv()

        c: Context[Any] = Context(
            request,
            variables,
            params=match.params if match else None,
            route=match.route if match else None,
        )

        if match is None:
            c.state = RequestState.UNRESOLVED
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "404 %s %s (methods for this path: %s)",
                    request.method,
                    request.path,
                    ", ".join(sorted(self.router.allowed_methods(request.path))) or "none",
                )
            chain = self.unrouted
        else:
            c.state = RequestState.ROUTE_RESOLVED
            chain = self.routed

        try:
            if factory_error is not None:
                raise factory_error
            c.state = RequestState.MIDDLEWARE_EXECUTING
            await chain(c)
        except Exception as exc:
            c.state = RequestState.ERROR_CAUGHT
            await handle_error(exc, c, self.error_handler, debug=self.debug)

        c.state = RequestState.RESPONSE_FINALIZED
        return c.response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    max_body: int | None = None,
) -> None:
    """Process a single ASGI HTTP request through the dispatcher."""
    request = Request.from_asgi(scope, receive, max_body=max_body)
    response = await dispatcher.dispatch(request)
    await send_response(
        response,
        send,
        receive,
        head=request.method == "HEAD",
        label=f"{request.method} {request.path}",
    )
