"""HTTP response with chainable .with_*() transformation API.

One model covers both body kinds: a buffered ``bytes`` body, or a byte
source (sync or async iterable of chunks) that the transport pulls
incrementally. Each transformation returns a new Response.
"""

import json as json_module
from collections.abc import AsyncIterable, Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

# A source of body chunks pulled one at a time by the sender
type ByteSource = Iterable[bytes | str] | AsyncIterable[bytes | str]

TEXT_PLAIN = "text/plain; charset=utf-8"
TEXT_HTML = "text/html; charset=utf-8"
APPLICATION_JSON = "application/json"
OCTET_STREAM = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    ``headers`` is an ordered tuple of pairs; a name may appear more than
    once. ``body`` is either ``bytes`` or a ``ByteSource``.
    """

    body: bytes | ByteSource = b""
    status: int = 200
    headers: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if not 100 <= self.status <= 599:
            msg = f"Invalid status code: {self.status}"
            raise ValueError(msg)

    # -- Chainable transformations --

    def with_status(self, status: int) -> "Response":
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        """Return a new Response with additional headers."""
        return replace(self, headers=(*self.headers, *headers.items()))

    # -- Accessors --

    @property
    def is_streaming(self) -> bool:
        """True when the body is a byte source rather than buffered bytes."""
        return not isinstance(self.body, bytes)

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or None."""
        lower = name.lower()
        for n, v in self.headers:
            if n.lower() == lower:
                return v
        return None

    def header_list(self, name: str) -> list[str]:
        """Every value of header *name*, in order."""
        lower = name.lower()
        return [v for n, v in self.headers if n.lower() == lower]

    @property
    def content_type(self) -> str | None:
        return self.header("content-type")

    @property
    def body_bytes(self) -> bytes:
        """Buffered body. Streamed bodies belong to the transport."""
        if isinstance(self.body, bytes):
            return self.body
        msg = "A streamed body can only be consumed by the transport."
        raise TypeError(msg)

    @property
    def text(self) -> str:
        """Buffered body decoded as UTF-8."""
        return self.body_bytes.decode("utf-8")


# -- Constructors used by the Context helpers --


def _merge(defaults: tuple[tuple[str, str], ...], extra: Mapping[str, str] | None) -> tuple[tuple[str, str], ...]:
    if not extra:
        return defaults
    overridden = {name.lower() for name in extra}
    kept = tuple((n, v) for n, v in defaults if n.lower() not in overridden)
    return (*kept, *extra.items())


def json_response(
    value: Any,
    status: int = 200,
    headers: Mapping[str, str] | None = None,
) -> Response:
    body = json_module.dumps(value, separators=(",", ":")).encode("utf-8")
    return Response(body, status, _merge((("content-type", APPLICATION_JSON),), headers))


def text_response(
    value: str,
    status: int = 200,
    headers: Mapping[str, str] | None = None,
) -> Response:
    return Response(value.encode("utf-8"), status, _merge((("content-type", TEXT_PLAIN),), headers))


def html_response(
    value: str,
    status: int = 200,
    headers: Mapping[str, str] | None = None,
) -> Response:
    return Response(value.encode("utf-8"), status, _merge((("content-type", TEXT_HTML),), headers))


def redirect_response(location: str, status: int = 302) -> Response:
    """Redirect to *location*. Only 3xx statuses are accepted."""
    if not 300 <= status < 400:
        msg = f"Redirect status code must be 3xx, got {status}"
        raise ValueError(msg)
    return Response(b"", status, (("location", location),))


def stream_response(
    source: ByteSource,
    status: int = 200,
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Response whose body is pulled chunk by chunk from *source*."""
    if isinstance(source, (bytes, str)):
        msg = "stream() expects an iterable of chunks, not a single bytes/str value"
        raise TypeError(msg)
    return Response(source, status, _merge((("content-type", OCTET_STREAM),), headers))


def empty_response(status: int = 204, headers: Mapping[str, str] | None = None) -> Response:
    return Response(b"", status, tuple((headers or {}).items()))
