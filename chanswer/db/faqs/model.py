"""SQLAlchemy model for frequently asked questions."""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from chanswer.db.database import Base


class Faq(Base):
    """Question and answer pair injected as context into every chat turn."""

    __tablename__ = "faqs"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        server_default="gen_random_uuid()",
        comment="FAQ UUID",
    )

    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[str | None] = mapped_column(
        String(100), nullable=True, comment="Optional grouping shown to clients"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        comment="Record creation timestamp",
    )

    def __repr__(self) -> str:
        return f"<Faq(id={self.id}, question={self.question[:30]})>"
