"""SQLAlchemy models for documents drafted in chat and their suggestions."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from chanswer.db.database import Base


class Document(Base):
    """Document created by createDocument and rewritten in place by updateDocument."""

    __tablename__ = "documents"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        comment="Document UUID",
    )

    title: Mapped[str] = mapped_column(Text, nullable=False, comment="Document title")

    content: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Markdown body"
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Owning user ID",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Record creation timestamp",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        comment="Record last update timestamp",
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, title={self.title[:30]}, user_id={self.user_id})>"


class Suggestion(Base):
    """Proposed edit to one sentence of a document."""

    __tablename__ = "suggestions"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        comment="Suggestion UUID",
    )

    document_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Document UUID",
    )

    original_text: Mapped[str] = mapped_column(Text, nullable=False)
    suggested_text: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_resolved: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Whether the user accepted or dismissed the suggestion",
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Owning user ID",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Record creation timestamp",
    )

    def __repr__(self) -> str:
        return f"<Suggestion(id={self.id}, document_id={self.document_id})>"
