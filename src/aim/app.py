"""Aim application class.

Mutable during setup (routes, middleware, not-found and error handlers).
Frozen at runtime when ``handle()``, ``__call__()`` or ``run()`` is first
invoked.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from aim._internal.asgi import Receive, Scope, Send
from aim._internal.invoke import invoke
from aim._internal.types import ErrorHandler, Handler
from aim.config import AppConfig
from aim.env import EmptyEnv, Env, EnvFactory, check_capabilities
from aim.http.request import Request
from aim.http.response import Response
from aim.middleware.protocol import Middleware
from aim.routing.route import Route
from aim.routing.router import Router
from aim.server.handler import Dispatcher, handle_request

logger = logging.getLogger("aim.app")


class App[E: Env]:
    """The aim application.

    Usage::

        app = App()

        @app.get("/ping")
        def ping(c):
            return c.text("pong")

    A custom environment factory gives every request a typed variables
    container::

        app = App(env_factory=AuthEnv)

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        caller compiles the app. After freezing, the route table,
        middleware and handler slots are read-only.
    """

    __slots__ = (
        "_dispatcher",
        "_env_factory",
        "_error_handler",
        "_freeze_lock",
        "_frozen",
        "_middleware_list",
        "_not_found_handler",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        env_factory: Callable[[], E] | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._env_factory: EnvFactory = env_factory or EmptyEnv
        self._router = Router()
        self._middleware_list: list[Middleware] = []
        self._not_found_handler: Handler | None = None
        self._error_handler: ErrorHandler | None = None
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._dispatcher: Dispatcher | None = None

    # -- Route registration --

    def on(
        self,
        method: str | Iterable[str],
        path: str,
        handler: Handler | None = None,
        *,
        metadata: Any = None,
    ) -> Any:
        """Register *handler* for *method* (or several) and *path*.

        Works directly (``app.on("GET", "/", index)``) or as a decorator
        (``@app.on("GET", "/")``). Patterns use ``:name`` for parameters.
        *metadata* is stored on the route for introspection only.
        """
        methods = [method] if isinstance(method, str) else list(method)

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            for m in methods:
                self._router.add(m, path, func, metadata=metadata)
            return func

        if handler is not None:
            return decorator(handler)
        return decorator

    def get(self, path: str, handler: Handler | None = None, *, metadata: Any = None) -> Any:
        """Register a GET route."""
        return self.on("GET", path, handler, metadata=metadata)

    def post(self, path: str, handler: Handler | None = None, *, metadata: Any = None) -> Any:
        """Register a POST route."""
        return self.on("POST", path, handler, metadata=metadata)

    def put(self, path: str, handler: Handler | None = None, *, metadata: Any = None) -> Any:
        return self.on("PUT", path, handler, metadata=metadata)

    def delete(self, path: str, handler: Handler | None = None, *, metadata: Any = None) -> Any:
        return self.on("DELETE", path, handler, metadata=metadata)

    def patch(self, path: str, handler: Handler | None = None, *, metadata: Any = None) -> Any:
        return self.on("PATCH", path, handler, metadata=metadata)

    def head(self, path: str, handler: Handler | None = None, *, metadata: Any = None) -> Any:
        return self.on("HEAD", path, handler, metadata=metadata)

    def options(self, path: str, handler: Handler | None = None, *, metadata: Any = None) -> Any:
        return self.on("OPTIONS", path, handler, metadata=metadata)

    def mount(self, prefix: str, sub_app: "App[Any]") -> None:
        """Copy every route of *sub_app* under *prefix*.

        Only routes are copied: the sub-app's middleware, handlers and
        environment factory are not applied. Later registrations on the
        sub-app are not picked up.
        """
        self._check_not_frozen()
        base = prefix.rstrip("/")
        for route in sub_app.routes:
            path = f"{base}/{route.pattern.lstrip('/')}" if route.pattern.strip("/") else base or "/"
            self._router.add(route.method, path, route.handler, metadata=route.metadata)

    @property
    def routes(self) -> list[Route]:
        """Every registered route, in registration order."""
        return self._router.routes

    # -- Middleware --

    def use(self, middleware: Middleware) -> Middleware:
        """Add a global middleware. Runs in registration order."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)
        return middleware

    # -- Not-found and error handlers --

    def not_found(self, handler: Handler) -> Handler:
        """Set the handler for requests no route matches. Last one wins."""
        self._check_not_frozen()
        self._not_found_handler = handler
        return handler

    def on_error(self, handler: ErrorHandler) -> ErrorHandler:
        """Set the handler for uncaught errors, called as ``handler(error, c)``.

        Last one wins.
        """
        self._check_not_frozen()
        self._error_handler = handler
        return handler

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Entry points --

    async def handle(self, request: Request) -> Response:
        """Run *request* through routing, middleware and handlers.

        The transport-independent entry point: the ASGI adapter and the
        test client both end up here.
        """
        self._ensure_frozen()
        assert self._dispatcher is not None
        return await self._dispatcher.dispatch(request)

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with pounce."""
        self._ensure_frozen()

        from aim.server.serve import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            workers=self.config.workers,
            log_level=self.config.log_level,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return

        self._ensure_frozen()
        assert self._dispatcher is not None
        await handle_request(
            scope,
            receive,
            send,
            dispatcher=self._dispatcher,
            max_body=self.config.max_content_length,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup (before the first HTTP request), then
        runs registered startup/shutdown hooks and signals completion
        back to the server.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    await self._run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self._run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    @staticmethod
    async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
        for hook in hooks:
            await invoke(hook)

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        middleware = tuple(self._middleware_list)

        # Capabilities are checked before anything is compiled so a
        # failed check leaves the app unfrozen.
        check_capabilities(self._env_factory, middleware)

        self._router.compile()
        self._dispatcher = Dispatcher.build(
            router=self._router,
            middleware=middleware,
            env_factory=self._env_factory,
            not_found_handler=self._not_found_handler,
            error_handler=self._error_handler,
            debug=self.config.debug,
        )
        self._frozen = True
        logger.debug(
            "App frozen: %d route(s), %d middleware", len(self._router.routes), len(middleware)
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and handlers before serving."
            )
            raise RuntimeError(msg)
