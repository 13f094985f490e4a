"""Typed per-request variables.

Every request gets a fresh container built by the app's environment
factory before any middleware runs. It is the one sanctioned place for
middleware to hand structured state (an authenticated principal, decoded
token claims) to later middleware and the handler::

    class AuthEnv(Env):
        user_id: str | None = None

    app = App(env_factory=AuthEnv)

    @requires(AuthEnv)
    async def authenticate(c, next):
        c.variables.user_id = verify(c.headers.get("authorization"))
        await next()

Middleware that depends on specific fields declares them with
``@requires(...)``. The app checks the factory's container type against
those capabilities once, when it freezes, so a mismatch fails at startup
rather than on the first request.
"""

import inspect
import typing
from collections.abc import Callable
from typing import Any, Protocol

from aim.errors import ConfigurationError

_REQUIRES_ATTR = "__aim_requires__"


class Env:
    """Base class for variables containers.

    Subclass it and declare fields with class-level defaults; mutable
    defaults belong in ``__init__`` so they are not shared across requests.
    """

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in vars(self).items())
        return f"{type(self).__name__}({fields})"


class EmptyEnv(Env):
    """Default container when the app has no environment factory."""


type EnvFactory = Callable[[], Env]


def requires[F](*capabilities: type) -> Callable[[F], F]:
    """Declare the container capabilities a middleware relies on.

    A capability is an ``Env`` subclass (checked with ``issubclass``) or a
    ``Protocol`` whose annotated attributes the container must provide.
    """

    def decorator(middleware: F) -> F:
        existing = getattr(middleware, _REQUIRES_ATTR, ())
        setattr(middleware, _REQUIRES_ATTR, (*existing, *capabilities))
        return middleware

    return decorator


def required_capabilities(middleware: Any) -> tuple[type, ...]:
    """Capabilities declared on a middleware function or instance."""
    declared = getattr(middleware, _REQUIRES_ATTR, None)
    if declared is None:
        declared = getattr(type(middleware), _REQUIRES_ATTR, ())
    return tuple(declared)


def container_type(factory: Callable[[], Any]) -> type | None:
    """Best-effort static type of what *factory* produces.

    A class is its own container type; a function contributes its return
    annotation. Returns None when nothing can be determined.
    """
    if inspect.isclass(factory):
        return factory
    try:
        hints = typing.get_type_hints(factory)
    except (NameError, TypeError):
        return None
    produced = hints.get("return")
    return produced if inspect.isclass(produced) else None


def _is_protocol(capability: type) -> bool:
    return bool(getattr(capability, "_is_protocol", False))


def _protocol_members(capability: type) -> set[str]:
    members: set[str] = set()
    for base in capability.__mro__:
        if base is object or base is Protocol or not getattr(base, "_is_protocol", False):
            continue
        members.update(getattr(base, "__annotations__", {}))
        members.update(
            name for name, value in vars(base).items()
            if not name.startswith("_") and callable(value)
        )
    return members


def satisfies(env_type: type, capability: type) -> bool:
    """Whether containers of *env_type* provide *capability*."""
    if _is_protocol(capability):
        provided = set(dir(env_type))
        for klass in env_type.__mro__:
            provided.update(getattr(klass, "__annotations__", {}))
        return _protocol_members(capability) <= provided
    return issubclass(env_type, capability)


def check_capabilities(factory: Callable[[], Any], middleware: tuple[Any, ...]) -> None:
    """Fail at composition time if a middleware needs what the container lacks.

    Raises ``ConfigurationError`` naming the middleware and the missing
    capability. Factories whose product type is unknown are not checked.
    """
    env_type = container_type(factory)
    if env_type is None:
        return
    for mw in middleware:
        for capability in required_capabilities(mw):
            if not satisfies(env_type, capability):
                name = getattr(mw, "__qualname__", type(mw).__qualname__)
                msg = (
                    f"Middleware {name} requires {capability.__qualname__}, but the "
                    f"environment factory produces {env_type.__qualname__}. "
                    f"Pass an env_factory whose container provides it."
                )
                raise ConfigurationError(msg)
