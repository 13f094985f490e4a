"""aim: a minimal async HTTP application core.

Declarative routes, onion-model middleware and a typed per-request
context, served over ASGI.

Basic usage::

    from aim import App

    app = App()

    @app.get("/users/:id")
    async def user(c):
        return c.json({"id": c.param("id")})

    app.run()

Serving with ``app.run()`` needs the optional server
(``pip install aim-server[server]``); any ASGI server can also serve
``app`` directly.
"""

__version__ = "0.1.0"
__all__ = [
    "AimError",
    "App",
    "AppConfig",
    "ConfigurationError",
    "Context",
    "EmptyEnv",
    "Env",
    "HTTPError",
    "MalformedRequest",
    "Middleware",
    "Next",
    "NextCalledTwice",
    "PayloadTooLarge",
    "Request",
    "RequestState",
    "Response",
    "ResponseAlreadySet",
    "TransportError",
    "requires",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import aim`` fast while providing a clean top-level API.
    """
    if name == "App":
        from aim.app import App

        return App

    if name == "AppConfig":
        from aim.config import AppConfig

        return AppConfig

    if name in ("Context", "RequestState"):
        from aim import context as _ctx

        return getattr(_ctx, name)

    if name in ("Env", "EmptyEnv", "requires"):
        from aim import env as _env

        return getattr(_env, name)

    if name == "Request":
        from aim.http.request import Request

        return Request

    if name == "Response":
        from aim.http.response import Response

        return Response

    if name in ("Middleware", "Next"):
        from aim.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in (
        "AimError",
        "ConfigurationError",
        "HTTPError",
        "MalformedRequest",
        "NextCalledTwice",
        "PayloadTooLarge",
        "ResponseAlreadySet",
        "TransportError",
    ):
        from aim import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
