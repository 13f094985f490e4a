"""Shared type aliases used across aim modules."""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from aim.context import Context

# The continuation passed to middleware: runs the rest of the chain
Next: TypeAlias = Callable[[], Awaitable[None]]

# Route handler: receives the Context, may return a Response
Handler: TypeAlias = Callable[["Context[Any]"], Any]

# Error handler: receives (error, context) and populates the response
ErrorHandler: TypeAlias = Callable[[Exception, "Context[Any]"], Any]

# Composed chain produced once at freeze time
Chain: TypeAlias = Callable[["Context[Any]"], Awaitable[None]]
