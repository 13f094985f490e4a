"""Release byte sources handed to ``Context.stream()``."""

import inspect
from collections.abc import AsyncIterable, Iterable
from typing import Any

import anyio


async def close_source(source: Iterable[Any] | AsyncIterable[Any] | bytes) -> None:
    """Release whatever the byte source holds (file handles, generators).

    Runs shielded so a cancelled request still closes its source.
    """
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        with anyio.CancelScope(shield=True):
            result = aclose()
            if inspect.isawaitable(result):
                await result
        return
    close = getattr(source, "close", None)
    if close is not None:
        close()
