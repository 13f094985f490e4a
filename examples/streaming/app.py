"""Streaming: bodies pulled chunk by chunk, from async and sync sources.

Demonstrates:
- ``c.stream()`` with an async generator (a ticker)
- ``c.stream()`` with a plain generator, pulled in a worker thread
- Cleanup in the generator's ``finally`` when the client disconnects

Run:
    cd examples/streaming && python app.py
    curl -N localhost:8000/ticks?count=5
"""

import logging

import anyio

from aim import App, AppConfig, Context, MalformedRequest

logger = logging.getLogger("aim.examples.streaming")

app = App(AppConfig(debug=True))


@app.get("/ticks")
def ticks(c: Context):
    try:
        count = int(c.query_param("count", "10"))
        interval = float(c.query_param("interval", "0"))
    except ValueError as exc:
        raise MalformedRequest("count and interval must be numbers") from exc

    async def source():
        try:
            for i in range(count):
                yield f"tick {i}\n"
                await anyio.sleep(interval)
        finally:
            logger.info("ticker closed")

    return c.stream(source(), headers={"content-type": "text/plain; charset=utf-8"})


@app.get("/lines/:count")
def lines(c: Context):
    try:
        count = int(c.param("count"))
    except ValueError as exc:
        raise MalformedRequest(f"Not a line count: {c.param('count')!r}") from exc

    def source():
        for i in range(count):
            yield f"line {i:04d}\n".encode()

    return c.stream(source(), headers={"content-type": "text/plain; charset=utf-8"})


if __name__ == "__main__":
    app.run()
