"""SQLAlchemy ORM model for the message store.

Learn: One table, one row per conversational turn. The turn itself is
stored as the JSON text of its OpenAI wire dict, so whatever the backend
saw can be replayed byte for byte. Ordering is (updated_at, id):
updated_at is set on insert and reset when a pending row is unqueued.

Timestamps are set Python-side (not server_default) so every dialect,
SQLite included, keeps sub-second precision for ordering.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredMessage(Base):
    """A persisted turn of a user's conversation."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("idx_chat_messages_history", "user_id", "updated_at", "id"),
        Index("idx_chat_messages_queued", "user_id", "queued"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(200), nullable=False)
    queued: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
