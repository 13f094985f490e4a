"""Onion composition of middleware around a terminal handler.

The chain is built once, at freeze time, by plain function composition.
``middleware[0]`` runs first and receives a continuation that runs
``middleware[1]``, and so on down to the terminal step. Before-phases run
in registration order; after-phases unwind in reverse.
"""

import inspect
from collections.abc import Coroutine, Sequence
from typing import Any

from aim._internal.invoke import invoke
from aim._internal.types import Chain
from aim.context import Context
from aim.errors import NextCalledTwice


def build_chain(middleware: Sequence[Any], terminal: Chain) -> Chain:
    """Compose *middleware* around *terminal* into a single ``Context -> None``.

    Each layer gets its own ``next`` per request; calling it twice raises
    ``NextCalledTwice``.
    """
    chain = terminal
    for mw in reversed(middleware):
        chain = _wrap(mw, chain)
    return chain


def _wrap(mw: Any, inner: Chain) -> Chain:
    async def layer(c: Context[Any]) -> None:
        pending: list[Coroutine[Any, Any, None]] = []

        async def run_inner() -> None:
            await inner(c)

        def next() -> Coroutine[Any, Any, None]:  # noqa: A001
            if pending:
                name = getattr(mw, "__qualname__", type(mw).__qualname__)
                msg = f"next() called multiple times by middleware {name}"
                raise NextCalledTwice(msg)
            pending.append(run_inner())
            return pending[0]

        try:
            await invoke(mw, c, next)
        except BaseException:
            if pending and _not_started(pending[0]):
                pending[0].close()
            raise

        # A sync middleware may call next() without returning it: the rest
        # of the chain still runs, after the middleware body has finished.
        if pending and _not_started(pending[0]):
            await pending[0]

    return layer


def _not_started(continuation: Coroutine[Any, Any, None]) -> bool:
    return inspect.getcoroutinestate(continuation) == inspect.CORO_CREATED
