"""Path pattern compilation and matching.

Patterns and request paths are split on ``/`` with empty pieces dropped,
so leading, trailing and doubled separators collapse the same way on
both sides. A ``:name`` segment binds exactly one path segment; every
other segment must match byte-for-byte; segment counts must be equal.
There is no prefix matching: a collaborator serving a subtree strips its
own prefix before delegating.

Examples::

    compile_pattern("/")                 -> ()
    compile_pattern("/users/:id")        -> (PathSegment("users"), PathSegment("id", is_param=True))
    match_segments(segs, "/users/42/")   -> {"id": "42"}
"""

from aim.errors import ConfigurationError
from aim.routing.route import PathSegment

PARAM_MARKER = ":"
WILDCARD_MARKER = "*"


def split_path(path: str) -> list[str]:
    """Split on ``/`` and drop empty pieces."""
    return [part for part in path.split("/") if part]


def compile_pattern(pattern: str) -> tuple[PathSegment, ...]:
    """Compile a route pattern into literal and parameter segments.

    Raises ``ConfigurationError`` for an unnamed or repeated parameter and
    for wildcard segments, which are reserved.
    """
    segments: list[PathSegment] = []
    seen: set[str] = set()
    for part in split_path(pattern):
        if part.startswith(WILDCARD_MARKER):
            msg = f"Wildcard segments are not supported: {part!r} in route {pattern!r}"
            raise ConfigurationError(msg)
        if part.startswith(PARAM_MARKER):
            name = part[len(PARAM_MARKER):]
            if not name:
                msg = f"Route {pattern!r} has a parameter without a name."
                raise ConfigurationError(msg)
            if name in seen:
                msg = f"Route {pattern!r} declares parameter {name!r} twice."
                raise ConfigurationError(msg)
            seen.add(name)
            segments.append(PathSegment(name, is_param=True))
        else:
            segments.append(PathSegment(part))
    return tuple(segments)


def match_segments(segments: tuple[PathSegment, ...], path: str) -> dict[str, str] | None:
    """Match a request path against compiled segments.

    Returns the parameter bindings in pattern order, or None on mismatch.
    """
    parts = split_path(path)
    if len(parts) != len(segments):
        return None
    params: dict[str, str] = {}
    for seg, part in zip(segments, parts, strict=True):
        if seg.is_param:
            params[seg.value] = part
        elif seg.value != part:
            return None
    return params
