"""Route table: per-method ordered lists, first registered match wins.

Predictability is chosen over most-specific matching. Callers with
overlapping patterns register the more specific one first::

    router = Router()
    router.add("GET", "/users/me", me)
    router.add("GET", "/users/:id", user)
    router.compile()
    router.resolve("GET", "/users/me").route.handler   # -> me
"""

from typing import Any

from aim._internal.types import Handler
from aim.routing.matcher import compile_pattern, match_segments
from aim.routing.route import Route, RouteMatch


class Router:
    """Ordered route table.

    Mutable until ``compile()``; read-only afterwards, so concurrent
    requests can resolve without locking.
    """

    __slots__ = ("_by_method", "_compiled", "_routes")

    def __init__(self) -> None:
        self._by_method: dict[str, list[Route]] = {}
        self._routes: list[Route] = []
        self._compiled = False

    def add(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *,
        metadata: Any = None,
    ) -> Route:
        """Append a route. Duplicates are kept; nothing is overridden."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        route = Route(
            method=method.upper(),
            pattern=pattern,
            handler=handler,
            segments=compile_pattern(pattern),
            metadata=metadata,
        )
        self._by_method.setdefault(route.method, []).append(route)
        self._routes.append(route)
        return route

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    @property
    def routes(self) -> list[Route]:
        """Every registered route, in registration order."""
        return list(self._routes)

    def resolve(self, method: str, path: str) -> RouteMatch | None:
        """First route for *method* whose pattern matches *path*, or None."""
        for route in self._by_method.get(method.upper(), ()):
            params = match_segments(route.segments, path)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    def allowed_methods(self, path: str) -> frozenset[str]:
        """Methods with at least one pattern matching *path*."""
        return frozenset(
            method
            for method, routes in self._by_method.items()
            if any(match_segments(r.segments, path) is not None for r in routes)
        )
