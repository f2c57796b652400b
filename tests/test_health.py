"""Tests for health and transparency endpoints."""

from fastapi import status
from fastapi.testclient import TestClient

from chat_relay.core.settings import Settings
from chat_relay.main import create_app
from chat_relay.services.registry import ConnectionRegistry


def test_create_app_keeps_injected_empty_registry(store) -> None:
    registry = ConnectionRegistry()
    config = Settings(GENERAL_CHANNEL="#lobby")

    app = create_app(config=config, store=store, registry=registry)

    assert len(registry) == 0
    assert app.state.relay.registry is registry
    assert app.state.relay.store is store
    assert app.state.settings is config
    assert app.state.relay.general_channel == "#lobby"


def test_health_reports_ok(client: TestClient) -> None:
    r = client.get("/health")
    assert r.status_code == status.HTTP_200_OK
    assert r.json() == {"status": "ok", "connections": 0}


def test_public_config_hides_credentials(client: TestClient) -> None:
    r = client.get("/api/v1/system/config")
    assert r.status_code == status.HTTP_200_OK
    data = r.json()
    assert data["relay"]["general_channel"] == "#general"
    assert data["relay"]["delivery"] == {"broadcasts": 0, "delivered": 0, "failed": 0}
    assert "db_pool_size" in data["app"]
    flat = str(data).lower()
    assert "password" not in flat
    assert "database_url" not in flat
