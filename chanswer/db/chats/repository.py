"""
Repository for chat and message database operations.

Methods flush but never commit; the caller owns the transaction.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from chanswer.db.chats.model import Chat, Message
from chanswer.utils.logger import logger


class ChatRepository:
    """Repository for managing chats and messages in the database."""

    def __init__(self, session: AsyncSession):
        """
        Initialize the repository with a database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    # ========== Chat Operations ==========

    async def get_chat(self, chat_id: str) -> Chat | None:
        """
        Get a chat by ID regardless of owner.

        Ownership is checked by the caller so that a foreign chat can be
        told apart from a missing one.
        """
        stmt = select(Chat).where(Chat.id == chat_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_chat(self, chat_id: str, user_id: str, title: str) -> Chat:
        """
        Create a chat with a client-supplied ID.

        Args:
            chat_id: Chat UUID
            user_id: Owning user ID
            title: Chat title

        Returns:
            Chat: Created chat
        """
        chat = Chat(id=chat_id, user_id=user_id, title=title)
        self.session.add(chat)
        await self.session.flush()
        await self.session.refresh(chat)

        logger.info("[ChatRepository] Created chat", chat_id=chat_id, user_id=user_id)
        return chat

    async def delete_chat(self, chat_id: str) -> bool:
        """
        Delete a chat and all its messages.

        Returns:
            bool: True if a chat was deleted, False if it did not exist
        """
        await self.session.execute(delete(Message).where(Message.chat_id == chat_id))
        result = await self.session.execute(delete(Chat).where(Chat.id == chat_id))
        deleted = result.rowcount > 0

        if deleted:
            logger.info("[ChatRepository] Deleted chat", chat_id=chat_id)
        return deleted

    # ========== Message Operations ==========

    async def add_messages(self, chat_id: str, messages: list[dict[str, Any]]) -> list[Message]:
        """
        Append messages to a chat.

        Args:
            chat_id: Chat UUID
            messages: Dicts with id, role and JSON-ready content

        Returns:
            list[Message]: Created messages in the given order
        """
        # Spread timestamps so one batch keeps its order under ORDER BY created_at
        base = datetime.now(UTC)
        rows = [
            Message(
                id=message["id"],
                chat_id=chat_id,
                role=message["role"],
                content=message["content"],
                created_at=base + timedelta(microseconds=index),
            )
            for index, message in enumerate(messages)
        ]
        self.session.add_all(rows)
        await self.session.flush()

        logger.info("[ChatRepository] Saved messages", chat_id=chat_id, count=len(rows))
        return rows

    async def list_messages(self, chat_id: str) -> list[Message]:
        """Get all messages of a chat, oldest first."""
        stmt = (
            select(Message)
            .where(Message.chat_id == chat_id)
            .order_by(Message.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
