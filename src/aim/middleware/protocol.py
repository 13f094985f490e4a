"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(c: Context, next: Next) -> None: ...

No base class required. The framework checks the shape, not the lineage.

``next`` runs the rest of the chain and may be awaited at most once.
Not awaiting it short-circuits: nothing further runs and whatever the
middleware wrote to the Context is the response.
"""

from typing import Any, Protocol

from aim._internal.types import Next
from aim.context import Context

__all__ = ["Middleware", "Next"]


class Middleware(Protocol):
    """Protocol for aim middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(c: Context, next: Next) -> None:
            start = time.monotonic()
            await next()
            c.set_header("X-Time", f"{time.monotonic() - start:.3f}")

        # Class middleware
        class RequireAuth:
            async def __call__(self, c: Context, next: Next) -> None:
                if "authorization" not in c.headers:
                    c.text("Unauthorized", status=401)
                    return
                await next()
    """

    async def __call__(self, c: Context[Any], next: Next) -> None: ...
