"""Process entry point: bind the listener and serve the relay.

The listener binds its own socket so a busy port can be retried on the next
one up before uvicorn takes over.
"""

from __future__ import annotations

import argparse
import asyncio
import errno
import logging
import socket
import sys
from collections.abc import Sequence

import uvicorn

from chat_relay.core.logging import configure_logging
from chat_relay.core.settings import Settings, settings
from chat_relay.main import create_app

logger = logging.getLogger(__name__)

DEFAULT_PORT_RETRIES = 5


class BindConflictError(RuntimeError):
    """Raised when every port in the retry window is already taken."""


def _open_socket(host: str, port: int) -> socket.socket:
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(socket.SOMAXCONN)
    except OSError:
        sock.close()
        raise
    sock.setblocking(False)
    return sock


def bind_with_retry(
    host: str, port: int, retries: int = DEFAULT_PORT_RETRIES
) -> socket.socket:
    """Bind a listening socket on `port`, moving up one port per conflict.

    Args:
        host: Interface to bind.
        port: First port to try.
        retries: How many higher ports to try after the first one.

    Returns:
        A bound, listening socket.

    Raises:
        BindConflictError: If `port` through `port + retries` are all in use.
        OSError: For bind failures other than the address being in use.
    """
    for attempt in range(retries + 1):
        candidate = port + attempt
        try:
            sock = _open_socket(host, candidate)
        except OSError as exc:
            if exc.errno != errno.EADDRINUSE:
                raise
            if attempt < retries:
                logger.warning("port %d in use, trying %d...", candidate, candidate + 1)
            continue
        if attempt:
            logger.info("Bound to fallback port %d", candidate)
        return sock
    raise BindConflictError(
        f"ports {port}-{port + retries} are all in use"
    )


def build_server(config: Settings) -> uvicorn.Server:
    """Create the uvicorn server for the relay app."""
    uv_config = uvicorn.Config(
        create_app(config),
        log_level=config.log_level.lower(),
        ws_ping_interval=config.ws_ping_interval,
        ws_ping_timeout=config.ws_ping_timeout,
    )
    return uvicorn.Server(uv_config)


async def serve(config: Settings | None = None) -> None:
    """Bind (with retry) and serve until shut down."""
    config = config or settings
    sock = bind_with_retry(config.host, config.port, config.port_retries)
    bound_port = sock.getsockname()[1]
    logger.info("chat relay listening on %s:%d", config.host, bound_port)
    server = build_server(config)
    try:
        await server.serve(sockets=[sock])
    finally:
        sock.close()


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the chat relay server.")
    parser.add_argument("--host", help="Interface to bind (env HOST)")
    parser.add_argument("--port", type=int, help="First port to try (env PORT)")
    parser.add_argument("--retries", type=int, help="Extra ports to try when busy (env PORT_RETRIES)")
    parser.add_argument("--log-level", help="Logging level (env LOG_LEVEL)")
    return parser.parse_args(argv)


def run(argv: Sequence[str] | None = None) -> int:
    """Console entry point. Returns the process exit status."""
    args = _parse_args(argv)
    overrides = {
        key: value
        for key, value in {
            "host": args.host,
            "port": args.port,
            "port_retries": args.retries,
            "log_level": args.log_level,
        }.items()
        if value is not None
    }
    config = settings.model_copy(update=overrides) if overrides else settings
    configure_logging(config.log_level)

    try:
        asyncio.run(serve(config))
    except BindConflictError as exc:
        logger.error("failed to start chat relay: %s", exc)
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(run())
