"""
SQLAlchemy models for chats and their messages.

A chat is created lazily on its first turn; messages are append only.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from chanswer.db.database import Base


class Chat(Base):
    """Conversation owned by one user, titled from its first user message."""

    __tablename__ = "chats"

    # Client-supplied UUID
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        comment="Chat UUID",
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Owning user ID",
    )

    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Chat display title",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Record creation timestamp",
    )

    __table_args__ = (Index("idx_chats_user_created", "user_id", "created_at"),)

    def __repr__(self) -> str:
        return f"<Chat(id={self.id}, user_id={self.user_id}, title={self.title[:30]})>"


class Message(Base):
    """
    Message within a chat.

    Content is either a JSON string (plain text) or a JSON array of parts
    (text, tool-call, tool-result) with camelCase keys.
    """

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        comment="Message UUID",
    )

    chat_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Chat UUID",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Message role: system, user, assistant, or tool",
    )

    content: Mapped[Any] = mapped_column(
        JSONB,
        nullable=False,
        comment="Message content as text or list of parts",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Record creation timestamp",
    )

    __table_args__ = (Index("idx_messages_chat_created", "chat_id", "created_at"),)

    def __repr__(self) -> str:
        return (
            f"<Message(id={self.id}, chat_id={self.chat_id}, "
            f"role={self.role}, created_at={self.created_at})>"
        )
