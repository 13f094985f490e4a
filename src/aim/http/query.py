"""Decoded query string.

Values are percent-decoded and blank values are kept (``?flag=`` binds
``flag`` to ``""``). A name may repeat; lookups return the first value.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl

from aim.errors import MalformedRequest


class QueryParams(Mapping[str, str]):
    """Immutable, multi-value query parameters."""

    __slots__ = ("_raw", "_values")

    def __init__(self, query_string: bytes = b"") -> None:
        values: dict[str, tuple[str, ...]] = {}
        for name, value in parse_qsl(query_string.decode("latin-1"), keep_blank_values=True):
            values[name] = (*values.get(name, ()), value)
        self._raw = query_string
        self._values = values

    def __getitem__(self, key: str) -> str:
        return self._values[key][0]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw.decode('latin-1')!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        values = self._values.get(key)
        return values[0] if values else default

    def get_list(self, key: str) -> list[str]:
        """Every value bound to *key*, in order of appearance."""
        return list(self._values.get(key, ()))

    def require(self, key: str) -> str:
        """First value for *key*; a missing key is the client's mistake (400)."""
        value = self.get(key)
        if value is None:
            raise MalformedRequest(f"Query parameter {key!r} is required")
        return value

    @property
    def raw(self) -> bytes:
        """The undecoded query string."""
        return self._raw
