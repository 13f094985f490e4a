"""Tests for aim.http.request: metadata, body access and body limits."""

from typing import Any

import pytest

from aim.errors import MalformedRequest, PayloadTooLarge
from aim.http.request import Request


def asgi_scope(**overrides: Any) -> dict[str, Any]:
    scope: dict[str, Any] = {
        "type": "http",
        "http_version": "1.1",
        "method": "post",
        "path": "/upload",
        "query_string": b"a=1&a=2&b=",
        "headers": [(b"content-type", b"application/json")],
        "client": ("10.0.0.1", 5000),
    }
    scope.update(overrides)
    return scope


def chunked_receive(*chunks: bytes):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]
    calls = {"count": 0}

    async def receive() -> dict[str, Any]:
        calls["count"] += 1
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return receive, calls


class TestFromAsgi:
    def test_metadata(self) -> None:
        receive, _ = chunked_receive(b"")
        request = Request.from_asgi(asgi_scope(), receive)

        assert request.method == "POST"
        assert request.path == "/upload"
        assert request.query.get_list("a") == ["1", "2"]
        assert request.query.get("b") == ""
        assert request.content_type == "application/json"
        assert request.client == ("10.0.0.1", 5000)
        assert request.url == "/upload?a=1&a=2&b="

    async def test_body_joins_chunks(self) -> None:
        receive, _ = chunked_receive(b'{"a"', b": 1}")
        request = Request.from_asgi(asgi_scope(), receive)
        assert await request.json() == {"a": 1}

    async def test_body_is_read_once(self) -> None:
        receive, calls = chunked_receive(b"one", b"two")
        request = Request.from_asgi(asgi_scope(), receive)
        assert await request.body() == b"onetwo"
        assert await request.body() == b"onetwo"
        assert calls["count"] == 2

    async def test_stream_stops_on_disconnect(self) -> None:
        async def receive() -> dict[str, Any]:
            return {"type": "http.disconnect"}

        request = Request.from_asgi(asgi_scope(), receive)
        assert [chunk async for chunk in request.stream()] == []


class TestBodyLimits:
    async def test_declared_length_over_limit(self) -> None:
        receive, calls = chunked_receive(b"x" * 10)
        scope = asgi_scope(headers=[(b"content-length", b"10")])
        request = Request.from_asgi(scope, receive, max_body=4)

        with pytest.raises(PayloadTooLarge) as exc_info:
            await request.body()
        assert exc_info.value.status == 413
        assert calls["count"] == 0

    async def test_streamed_bytes_over_limit(self) -> None:
        receive, _ = chunked_receive(b"abc", b"def")
        request = Request.from_asgi(asgi_scope(headers=[]), receive, max_body=4)

        with pytest.raises(PayloadTooLarge):
            await request.body()


class TestMalformedBodies:
    async def test_invalid_json(self) -> None:
        request = Request.build("POST", "/", body=b"{not json")
        with pytest.raises(MalformedRequest, match="Invalid JSON") as exc_info:
            await request.json()
        assert exc_info.value.status == 400

    async def test_empty_json_body(self) -> None:
        request = Request.build("POST", "/")
        with pytest.raises(MalformedRequest):
            await request.json()

    async def test_invalid_utf8(self) -> None:
        request = Request.build("POST", "/", body=b"\xff\xfe")
        with pytest.raises(MalformedRequest, match="UTF-8"):
            await request.text()


class TestBuild:
    def test_target_with_query(self) -> None:
        request = Request.build("get", "/search?q=aim", headers={"Accept": "text/html"})
        assert request.method == "GET"
        assert request.path == "/search"
        assert request.query.get("q") == "aim"
        assert request.headers.get("accept") == "text/html"

    def test_empty_target_is_root(self) -> None:
        assert Request.build("GET", "").path == "/"
