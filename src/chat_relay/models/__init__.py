"""SQLAlchemy models for the chat relay."""

from .chat_message import ChatMessage

__all__ = ["ChatMessage"]
