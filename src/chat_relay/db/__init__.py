"""Database configuration and utilities."""

from .session import Base, create_tables, get_engine, get_session_factory

__all__ = ["Base", "create_tables", "get_engine", "get_session_factory"]
