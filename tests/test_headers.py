"""Tests for aim.http.headers and aim.http.query."""

import pytest

from aim.errors import MalformedRequest
from aim.http.headers import Headers, MutableHeaders
from aim.http.query import QueryParams


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        headers = Headers(((b"content-type", b"text/plain"),))
        assert headers["Content-Type"] == "text/plain"
        assert "CONTENT-TYPE" in headers

    def test_repeated_names(self) -> None:
        headers = Headers(((b"accept", b"a"), (b"Accept", b"b")))
        assert headers.get("accept") == "a"
        assert headers.get_list("accept") == ["a", "b"]
        assert len(headers) == 1

    def test_missing(self) -> None:
        headers = Headers()
        assert headers.get("x-missing") is None
        assert headers.get("x-missing", "fallback") == "fallback"

    def test_from_mapping(self) -> None:
        headers = Headers.from_mapping({"X-Token": "abc"})
        assert headers.raw == ((b"x-token", b"abc"),)


class TestMutableHeaders:
    def test_add_keeps_duplicates(self) -> None:
        headers = MutableHeaders()
        headers.add("Set-Cookie", "a=1")
        headers.add("set-cookie", "b=2")
        assert headers.get_list("SET-COOKIE") == ["a=1", "b=2"]
        assert len(headers) == 2

    def test_replace(self) -> None:
        headers = MutableHeaders([("Vary", "Accept"), ("Vary", "Cookie")])
        headers.replace("vary", "Origin")
        assert headers.items() == (("vary", "Origin"),)

    def test_remove(self) -> None:
        headers = MutableHeaders([("x-a", "1"), ("x-b", "2")])
        headers.remove("X-A")
        assert "x-a" not in headers
        assert list(headers) == [("x-b", "2")]


class TestQueryParams:
    def test_first_value_and_list(self) -> None:
        query = QueryParams(b"tag=a&tag=b&page=2")
        assert query["tag"] == "a"
        assert query.get_list("tag") == ["a", "b"]
        assert query.get("page") == "2"

    def test_blank_values_kept(self) -> None:
        query = QueryParams(b"flag=")
        assert "flag" in query
        assert query.get("flag") == ""

    def test_percent_decoding(self) -> None:
        query = QueryParams(b"q=hello%20world&x=a+b")
        assert query.get("q") == "hello world"
        assert query.get("x") == "a b"

    def test_empty(self) -> None:
        query = QueryParams()
        assert len(query) == 0
        assert query.get("missing") is None
        assert query.get_list("missing") == []

    def test_require(self) -> None:
        query = QueryParams(b"q=aim")
        assert query.require("q") == "aim"
        with pytest.raises(MalformedRequest, match="'page' is required"):
            query.require("page")
