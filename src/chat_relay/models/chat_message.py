"""Model for persisted chat messages."""

from sqlalchemy import BigInteger, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from chat_relay.db.session import Base


class ChatMessage(Base):
    """One posted chat event.

    Rows are append-only. Nothing here enforces uniqueness of
    `(channel, ts, uuid)`; duplicate submissions are stored as-is.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (Index("ix_chat_messages_channel_ts", "channel", "ts"),)

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    channel: Mapped[str] = mapped_column(String(255), nullable=False)
    # Origin address as observed by the server
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ts: Mapped[int] = mapped_column(BigInteger, nullable=False)
    from_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resolution: Mapped[str | None] = mapped_column(String(64), nullable=True)
    uuid: Mapped[str | None] = mapped_column(String(64), nullable=True)
