"""Health and transparency endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request

from chat_relay.services.relay import Relay

router = APIRouter(prefix="/system", tags=["system"])
health_router = APIRouter(tags=["system"])


@health_router.get("/health")
async def health_check(request: Request) -> dict[str, object]:
    """Report liveness and the number of open websocket connections."""
    relay: Relay = request.app.state.relay
    return {"status": "ok", "connections": len(relay.registry)}


@router.get("/config")
async def get_public_config(request: Request) -> dict[str, object]:
    """Return a sanitized snapshot of runtime configuration.

    Excludes credentials and connection strings.
    """
    relay: Relay = request.app.state.relay
    return {
        "app": request.app.state.settings.public_config,
        "relay": {
            "general_channel": relay.general_channel,
            "connections": len(relay.registry),
            "delivery": relay.registry.stats.as_dict(),
        },
    }
