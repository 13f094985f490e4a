"""Invoke helpers: call sync or async callables uniformly.

Aim handlers, middleware, error handlers, and lifecycle hooks can be
``def`` or ``async def``. Any code that calls a user-provided callable
must handle both cases; the check lives here and nowhere else.

Usage::

    from aim._internal.invoke import invoke

    result = await invoke(handler, ctx)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *func* and await the result if it's awaitable.

    Works with both sync and async callables::

        # sync: returns immediately, no await needed
        def ping(c):
            return c.text("pong")

        # async: returns coroutine, awaited automatically
        async def profile(c):
            user = await load_user(c.param("id"))
            return c.json(user)
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
