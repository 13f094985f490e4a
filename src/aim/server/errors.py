"""Error and not-found paths of the dispatcher.

Unexpected failures are logged once and handed to the app's error
handler, or answered with a built-in response when none is registered.
"""

import logging
from typing import Any

from aim._internal.invoke import invoke
from aim._internal.types import ErrorHandler
from aim.context import Context
from aim.errors import HTTPError
from aim.http.response import Response
from aim.server.negotiation import settle

logger = logging.getLogger("aim.server")


def default_not_found(c: Context[Any]) -> Response:
    """Built-in not-found handler: a plain ``404 Not Found``."""
    return c.not_found()


def default_error(c: Context[Any], exc: Exception, *, debug: bool) -> Response:
    """Built-in error response.

    ``HTTPError`` keeps its status, detail and headers. Anything else is a
    generic 500; the exception text is only exposed in debug mode.
    """
    if isinstance(exc, HTTPError):
        for name, value in exc.headers:
            c.set_header(name, value)
        return c.text(exc.detail or f"Error {exc.status}", status=exc.status)

    return internal_error(c, exc, debug=debug)


def internal_error(c: Context[Any], exc: Exception, *, debug: bool) -> Response:
    body = "Internal Server Error"
    if debug:
        body = f"{body}: {type(exc).__name__}: {exc}"
    return c.text(body, status=500)


def log_error(exc: Exception, c: Context[Any]) -> None:
    if isinstance(exc, HTTPError):
        logger.debug("%d %s %s: %s", exc.status, c.method, c.path, exc.detail)
    else:
        logger.exception("500 %s %s", c.method, c.path, exc_info=exc)


async def handle_error(
    exc: Exception,
    c: Context[Any],
    error_handler: ErrorHandler | None,
    *,
    debug: bool,
) -> None:
    """Populate *c*'s response for an error that aborted the chain.

    The Context's status and body are reset first, so the error handler
    starts from a clean slate even if the handler had written a body
    before failing. A streamed body dropped this way is closed. If the
    error handler itself raises, both failures are logged and the
    built-in 500 is used.
    """
    log_error(exc, c)
    await c._discard_response()

    if error_handler is None:
        default_error(c, exc, debug=debug)
        return

    try:
        result = await invoke(error_handler, exc, c)
        await settle(c, result)
    except Exception:
        logger.exception(
            "Error handler failed for %s %s (original error: %r)", c.method, c.path, exc
        )
        await c._discard_response()
        internal_error(c, exc, debug=debug)
