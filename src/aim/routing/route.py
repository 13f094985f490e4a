"""PathSegment, Route and RouteMatch frozen dataclasses."""

from dataclasses import dataclass, field
from typing import Any

from aim._internal.types import Handler


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Literal:  ``users``  (is_param=False)
    Param:    ``:id``    (is_param=True, value="id")
    """

    value: str
    is_param: bool = False


@dataclass(frozen=True, slots=True)
class Route:
    """A registered route. The compiled segments travel with it."""

    method: str
    pattern: str
    handler: Handler
    segments: tuple[PathSegment, ...]
    metadata: Any = field(default=None, compare=False)

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(seg.value for seg in self.segments if seg.is_param)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful resolution. Params are in pattern order."""

    route: Route
    params: dict[str, str]
