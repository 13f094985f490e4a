"""Middleware: Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(c: Context, next: Next) -> None

Middleware packages (CORS, auth, logging, static files) live outside the
core; they only touch the documented Context surface.
"""

from aim.middleware.chain import build_chain
from aim.middleware.protocol import Middleware, Next

__all__ = [
    "Middleware",
    "Next",
    "build_chain",
]
