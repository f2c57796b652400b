"""Application settings and configuration.

This module defines all configuration options for the chat relay. Settings are
loaded from environment variables (or a `.env` file) with sensible defaults, so
a bare `chat-relay` invocation starts a working server.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Chat Relay", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")

    # Listener
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8787, alias="PORT")
    port_retries: int = Field(default=5, ge=0, alias="PORT_RETRIES")

    # Keepalive at the websocket protocol level (handled by uvicorn)
    ws_ping_interval: float | None = Field(default=20.0, alias="WS_PING_INTERVAL")
    ws_ping_timeout: float | None = Field(default=20.0, alias="WS_PING_TIMEOUT")

    # Relay behaviour
    general_channel: str = Field(default="#general", alias="GENERAL_CHANNEL")

    # Database configuration
    database_url: str | None = Field(default=None, alias="DATABASE_URL")
    db_driver: str = Field(default="postgresql+psycopg", alias="DB_DRIVER")
    db_host: str | None = Field(default=None, alias="DB_HOST")
    db_port: int = Field(default=5432, alias="DB_PORT")
    db_user: str | None = Field(default=None, alias="DB_USER")
    db_password: str | None = Field(default=None, alias="DB_PASSWORD")
    db_name: str | None = Field(default=None, alias="DB_NAME")
    db_pool_size: int = Field(default=10, ge=1, alias="DB_POOL_SIZE")
    # None waits for a pooled connection indefinitely.
    db_pool_timeout: float | None = Field(default=None, alias="DB_POOL_TIMEOUT")
    store_timeout_seconds: float | None = Field(default=None, alias="STORE_TIMEOUT_SECONDS")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Logging
    log_level: str = Field(default="info", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL the store should connect to.

        An explicit `DATABASE_URL` wins. Otherwise the URL is assembled from the
        `DB_*` parts when a host is configured, falling back to a local SQLite
        file for development.

        Returns:
            A SQLAlchemy database URL string
        """
        if self.database_url:
            return self.database_url
        if self.db_host:
            url = URL.create(
                self.db_driver,
                username=self.db_user,
                password=self.db_password,
                host=self.db_host,
                port=self.db_port,
                database=self.db_name,
            )
            return url.render_as_string(hide_password=False)
        return "sqlite:///./chat_relay.db"

    @property
    def public_config(self) -> dict[str, object]:
        """Return the configuration that is safe to expose over HTTP."""
        return {
            "name": self.app_name,
            "version": self.app_version,
            "port": self.port,
            "general_channel": self.general_channel,
            "db_pool_size": self.db_pool_size,
            "store_timeout_seconds": self.store_timeout_seconds,
            "ws_ping_interval": self.ws_ping_interval,
        }


settings = Settings()  # type: ignore[call-arg]
