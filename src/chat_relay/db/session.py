"""Database engine and session configuration.

The engine is created lazily on first use so importing the package never opens
a connection or loads a database driver.
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from chat_relay.core.settings import Settings, settings


class Base(DeclarativeBase):
    """Declarative base shared by all ORM models."""


_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def build_engine(config: Settings) -> Engine:
    """Create an engine backed by a bounded connection pool.

    The pool never overflows past `db_pool_size`; callers beyond that wait in
    line for a connection (indefinitely unless `db_pool_timeout` is set).
    """
    url = make_url(config.effective_database_url)
    kwargs: dict[str, object] = {"pool_pre_ping": True, "echo": config.sql_debug}
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"check_same_thread": False}
        if url.database in (None, "", ":memory:"):
            return create_engine(url, **kwargs)
    kwargs.update(
        pool_size=config.db_pool_size,
        max_overflow=0,
        pool_timeout=config.db_pool_timeout,
    )
    return create_engine(url, **kwargs)


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first call."""
    global _engine
    if _engine is None:
        _engine = build_engine(settings)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Return the process-wide session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(
            bind=get_engine(), autocommit=False, autoflush=False, expire_on_commit=False
        )
    return _session_factory


def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


def create_tables(engine: Engine | None = None) -> None:
    """Create all database tables."""
    import chat_relay.models  # noqa: F401

    Base.metadata.create_all(bind=engine or get_engine())
