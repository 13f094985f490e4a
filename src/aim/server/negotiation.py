"""Turn what a handler returned into the Context's response.

Handlers either write through the Context helpers (``c.text(...)``) and
return that result, return a ``Response`` they built themselves, or
return nothing after setting status and headers.
"""

from typing import Any

from aim._internal.sources import close_source
from aim.context import Context
from aim.errors import ResponseAlreadySet
from aim.http.response import Response


async def settle(c: Context[Any], result: Any) -> None:
    """Apply a handler's return value to *c*.

    - ``None``: the Context is final as it stands.
    - The Response a helper just produced: nothing to do.
    - Any other ``Response``: adopted, unless a helper already wrote a
      body, which raises ``ResponseAlreadySet``. A streamed body on the
      rejected Response is closed first.
    """
    if result is None:
        return
    if not isinstance(result, Response):
        msg = (
            f"Handler for {c.method} {c.path} returned {type(result).__name__}; "
            "expected a Response (use c.text(), c.json(), ...) or None."
        )
        raise TypeError(msg)
    if c.finalized:
        if result is c._written:
            return
        if result.is_streaming:
            await close_source(result.body)
        msg = f"Handler for {c.method} {c.path} returned a new Response after writing a body."
        raise ResponseAlreadySet(msg)
    c.adopt(result)
