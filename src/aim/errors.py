"""Aim exception hierarchy.

Shared across Router, App, Context, dispatcher, and middleware so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class AimError(Exception):
    """Base for all aim-specific errors."""


class ConfigurationError(AimError):
    """Raised when app configuration is invalid.

    Typically raised while registering routes or during ``App._freeze()``
    at startup, never while serving.
    """


class ResponseAlreadySet(AimError):  # noqa: N818
    """A body-producing helper was called twice on the same Context.

    The first write wins and is final; a second one is a programming
    error and fails loudly instead of silently replacing the body.
    """


class NextCalledTwice(AimError):  # noqa: N818
    """A middleware invoked its ``next`` continuation more than once."""


class TransportError(AimError):
    """Writing the response to the client failed (broken connection).

    Raised inside the sender only. Never retried and never routed to the
    app's error handler: the response has already started.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(AimError):
    """An expected failure that maps directly to an HTTP status code.

    Raise it from a handler or middleware to turn a detected problem
    (bad input, oversized body) into a 4xx response. It still flows
    through the app's error handler; the default one answers with
    ``status`` and ``detail``.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class MalformedRequest(HTTPError):  # noqa: N818
    """400: the request body or parameters could not be understood."""

    def __init__(self, detail: str = "Bad Request") -> None:
        super().__init__(status=400, detail=detail)


class PayloadTooLarge(HTTPError):  # noqa: N818
    """413: the request body exceeds ``AppConfig.max_content_length``."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            status=413,
            detail=f"Request body exceeds the limit of {limit} bytes",
        )
