"""ASGI response sending: translates aim Responses to ASGI messages.

Buffered bodies go out in one message with a ``content-length``. Streamed
bodies are pulled one chunk at a time and sent with ``more_body=True``
while a sibling task watches for the client going away. A failed write,
a disconnect or an error raised by the source stops the pump, closes the
byte source, and abandons the request without ending the body: these
failures are logged, never retried.
"""

import contextlib
import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterator, Sequence
from typing import Any

import anyio
import anyio.to_thread

from aim._internal.asgi import Receive, Send
from aim._internal.sources import close_source
from aim.errors import TransportError
from aim.http.response import Response

logger = logging.getLogger("aim.server")

_EXHAUSTED = object()

_WRITE_ERRORS = (
    OSError,
    RuntimeError,
    anyio.BrokenResourceError,
    anyio.ClosedResourceError,
)


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(response: Response) -> list[tuple[bytes, bytes]]:
    return [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers
        if name.lower() != "content-length"
    ]


async def _write(send: Send, message: dict[str, Any]) -> None:
    try:
        await send(message)
    except _WRITE_ERRORS as exc:
        msg = f"Failed to send {message['type']}: {exc}"
        raise TransportError(msg) from exc


async def send_response(
    response: Response,
    send: Send,
    receive: Receive,
    *,
    head: bool = False,
    label: str = "",
) -> None:
    """Translate an aim Response into ASGI send() calls."""
    try:
        if response.is_streaming:
            await send_streaming_response(response, send, receive, head=head, label=label)
        else:
            await send_buffered_response(response, send, head=head)
    except TransportError as exc:
        logger.warning("Transport error for %s, request abandoned: %s", label, exc)


async def send_buffered_response(response: Response, send: Send, *, head: bool = False) -> None:
    raw_headers = _raw_headers(response)
    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await _write(
        send,
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        },
    )
    await _write(send, {"type": "http.response.body", "body": b"" if head else body})


async def send_streaming_response(
    response: Response,
    send: Send,
    receive: Receive,
    *,
    head: bool = False,
    label: str = "",
) -> None:
    """Send a streamed body without buffering it.

    Headers go out first, then each chunk as it is pulled from the
    source. The source is closed however the stream ends: exhausted,
    client disconnect, failed write, or an error raised by the source.
    """
    source = response.body
    try:
        await _write(
            send,
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": _raw_headers(response),
            },
        )
        if head or not _body_allowed(response.status):
            await _write(send, {"type": "http.response.body", "body": b""})
            return

        disconnected = False
        source_failed = False
        failure: TransportError | None = None
        async with anyio.create_task_group() as tg:

            async def watch_disconnect() -> None:
                nonlocal disconnected
                while True:
                    message = await receive()
                    if message.get("type") == "http.disconnect":
                        disconnected = True
                        tg.cancel_scope.cancel()
                        return

            tg.start_soon(watch_disconnect)
            try:
                await _pump(source, send)
            except TransportError as exc:
                failure = exc
            except Exception:
                source_failed = True
                logger.exception("Byte source failed mid-stream for %s", label)
            tg.cancel_scope.cancel()

        if failure is not None:
            raise failure
        if disconnected:
            logger.info("Client disconnected during stream for %s", label)
            return
        if source_failed:
            # No final message: the server drops the connection and the
            # client sees an incomplete body instead of a short one.
            return
        await _write(send, {"type": "http.response.body", "body": b"", "more_body": False})
    finally:
        await close_source(source)


async def _pump(source: Any, send: Send) -> None:
    async with contextlib.aclosing(_chunks(source)) as chunks:
        async for chunk in chunks:
            if chunk:
                await _write(
                    send,
                    {"type": "http.response.body", "body": chunk, "more_body": True},
                )


async def _chunks(source: Any) -> AsyncIterator[bytes]:
    """Yield encoded chunks one at a time from any supported source.

    Sync iterators (file reads, generators) are advanced in a worker thread
    so a slow read never blocks the event loop; in-memory sequences are
    walked inline.
    """
    if isinstance(source, AsyncIterable):
        async for chunk in source:
            yield _encode(chunk)
    elif isinstance(source, Sequence):
        for chunk in source:
            yield _encode(chunk)
    else:
        iterator: Iterator[Any] = iter(source)
        while True:
            chunk = await anyio.to_thread.run_sync(next, iterator, _EXHAUSTED)
            if chunk is _EXHAUSTED:
                return
            yield _encode(chunk)


def _encode(chunk: bytes | str) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)

