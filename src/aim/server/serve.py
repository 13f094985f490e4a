"""Serve an aim App over the network with pounce.

pounce is an optional dependency (``pip install aim-server[server]``);
it is only imported when ``App.run()`` is called.
"""

import logging

logger = logging.getLogger("aim.server")


def run_server(
    app: object,
    host: str,
    port: int,
    *,
    workers: int = 1,
    log_level: str = "info",
) -> None:
    """Start a pounce server with the given aim App.

    Pounce's ``run()`` takes an import string (e.g., ``"myapp:app"``),
    but we hold a live ``App`` object, so ``pounce.Server`` is used
    directly with the ASGI callable.

    Args:
        app: ASGI callable (aim App instance).
        host: Bind host address.
        port: Bind port number.
        workers: Number of worker processes.
        log_level: Server log level name.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "App.run() requires the 'pounce' server. Install it with: pip install aim-server[server]"
        raise RuntimeError(msg) from exc

    logging.getLogger("aim").setLevel(log_level.upper())
    logger.info("Serving on http://%s:%d (%d worker(s))", host, port, workers)

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        reload=False,
    )
    server = Server(config, app)
    server.run()
