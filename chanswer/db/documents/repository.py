"""Repository for document and suggestion database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chanswer.db.documents.model import Document, Suggestion
from chanswer.utils.logger import logger


class DocumentRepository:
    """Repository for managing documents and suggestions in the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_document(self, document_id: str) -> Document | None:
        """Get a document by ID regardless of owner."""
        stmt = select(Document).where(Document.id == document_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert_document(
        self,
        document_id: str,
        title: str,
        content: str | None,
        user_id: str,
    ) -> Document:
        """
        Create a document or overwrite the title and content of an existing one.

        Args:
            document_id: Document UUID
            title: Document title
            content: Markdown body
            user_id: Owning user ID

        Returns:
            Document: Created or updated document
        """
        document = await self.get_document(document_id)
        if document is None:
            document = Document(
                id=document_id, title=title, content=content, user_id=user_id
            )
            self.session.add(document)
            action = "Created"
        else:
            document.title = title
            document.content = content
            action = "Updated"

        await self.session.flush()
        await self.session.refresh(document)
        logger.info(f"[DocumentRepository] {action} document", document_id=document_id)
        return document

    async def add_suggestions(self, suggestions: list[Suggestion]) -> list[Suggestion]:
        """Append suggestions."""
        self.session.add_all(suggestions)
        await self.session.flush()
        logger.info("[DocumentRepository] Saved suggestions", count=len(suggestions))
        return suggestions

    async def list_suggestions(self, document_id: str) -> list[Suggestion]:
        """Get a document's suggestions, oldest first."""
        stmt = (
            select(Suggestion)
            .where(Suggestion.document_id == document_id)
            .order_by(Suggestion.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
