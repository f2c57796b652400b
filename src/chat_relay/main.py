"""Application factory for the chat relay."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chat_relay.api import health_router, system_router, websocket_router
from chat_relay.core.settings import Settings, settings
from chat_relay.db.session import dispose_engine
from chat_relay.services.history import HistoryService
from chat_relay.services.registry import ConnectionRegistry
from chat_relay.services.relay import Relay
from chat_relay.services.store import MessageStore

logger = logging.getLogger(__name__)


def create_app(
    config: Settings | None = None,
    store: MessageStore | None = None,
    registry: ConnectionRegistry | None = None,
) -> FastAPI:
    """Build the FastAPI application with its relay wired in.

    Args:
        config: Settings to use. Defaults to the module-level settings.
        store: Message store. Defaults to a store on the configured database.
        registry: Connection registry. A fresh one is created when omitted.
    """
    if config is None:
        config = settings
    owns_store = store is None
    if store is None:
        store = MessageStore(timeout=config.store_timeout_seconds)
    if registry is None:
        registry = ConnectionRegistry()
    relay = Relay(
        registry,
        store,
        HistoryService(store),
        general_channel=config.general_channel,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("%s %s ready", config.app_name, config.app_version)
        yield
        if owns_store:
            dispose_engine()

    app = FastAPI(
        title=config.app_name,
        description="Real-time channel-based chat relay",
        version=config.app_version,
        lifespan=lifespan,
    )
    app.state.relay = relay
    app.state.settings = config

    app.include_router(health_router)
    app.include_router(system_router, prefix="/api/v1")
    app.include_router(websocket_router)
    return app


app = create_app()
