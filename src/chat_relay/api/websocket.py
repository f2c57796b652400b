"""Websocket endpoint wiring accepted connections into the relay."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from fastapi import APIRouter, WebSocket
from starlette.datastructures import Address

from chat_relay.db.time import now_ms
from chat_relay.schemas.frames import SysFrame
from chat_relay.services.registry import Connection, ConnectionState
from chat_relay.services.relay import Relay, Reply

logger = logging.getLogger(__name__)

router = APIRouter(tags=["relay"])

WELCOME_TEXT = "ws connected"
UNKNOWN_ADDRESS = "unknown"


def resolve_client_address(headers: Mapping[str, str], client: Address | None) -> str:
    """Work out where a connection really comes from.

    Priority: first hop of `X-Forwarded-For`, then `X-Real-IP`, then the
    transport peer.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    if client is not None and client.host:
        return client.host
    return UNKNOWN_ADDRESS


@router.websocket("/")
@router.websocket("/ws")
async def relay_socket(websocket: WebSocket) -> None:
    """Serve one client for the lifetime of its websocket."""
    relay: Relay = websocket.app.state.relay
    registry = relay.registry

    await websocket.accept()
    address = resolve_client_address(websocket.headers, websocket.client)
    connection = Connection(websocket, address)

    # The identity notice must be the first frame a client sees.
    welcome = SysFrame(text=WELCOME_TEXT, ts=now_ms(), ip=address)
    await relay.deliver(connection, Reply.to_sender(welcome))
    registry.register(connection)
    logger.info("client connected: %s", address)

    close_code: int | None = None
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                close_code = message.get("code")
                break
            data = message.get("text")
            if data is None:
                data = message.get("bytes") or b""
            try:
                await relay.handle(connection, data)
            except Exception:
                logger.exception("Unhandled error on frame from %s", address)
    finally:
        connection.state = ConnectionState.CLOSING
        registry.unregister(connection)
        connection.state = ConnectionState.CLOSED
        logger.info("client disconnected: %s code=%s", address, close_code)
