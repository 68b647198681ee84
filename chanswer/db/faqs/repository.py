"""Repository for FAQ database operations."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chanswer.db.faqs.model import Faq
from chanswer.utils.logger import logger


class FaqRepository:
    """Repository for managing FAQ entries in the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_faq(
        self, question: str, answer: str, category: str | None = None
    ) -> Faq:
        """Append an FAQ entry."""
        faq = Faq(id=str(uuid.uuid4()), question=question, answer=answer, category=category)
        self.session.add(faq)
        await self.session.flush()
        await self.session.refresh(faq)
        logger.info("[FaqRepository] Saved FAQ", faq_id=faq.id)
        return faq

    async def query_faqs(self, question: str) -> list[Faq]:
        """
        Find FAQs whose question contains the given text, case-insensitively.

        An empty string matches every entry.
        """
        stmt = select(Faq).order_by(Faq.created_at)
        if question:
            stmt = stmt.where(Faq.question.icontains(question, autoescape=True))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_questions(self) -> list[tuple[str, str | None]]:
        """Get (question, category) pairs, oldest first."""
        stmt = select(Faq.question, Faq.category).order_by(Faq.created_at)
        result = await self.session.execute(stmt)
        return [(row.question, row.category) for row in result.all()]
