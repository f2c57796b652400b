"""One-off schema setup for the relay's message table.

The server never creates tables itself; run this (or your own migration
tooling) once against a fresh database.
"""

from chat_relay.db.session import create_tables, get_engine


def init_db() -> None:
    """Create the chat_messages table and its index if missing."""
    create_tables(get_engine())


if __name__ == "__main__":
    init_db()
    print("Database initialized.")
