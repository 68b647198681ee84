"""ChatStore backed by PostgreSQL through async SQLAlchemy."""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chanswer.ai.base import ChatMessage
from chanswer.db.chats.repository import ChatRepository
from chanswer.db.chats.schemas import ChatRecord, MessageRecord
from chanswer.db.documents.model import Suggestion
from chanswer.db.documents.repository import DocumentRepository
from chanswer.db.documents.schemas import DocumentRecord, SuggestionRecord
from chanswer.db.faqs.repository import FaqRepository
from chanswer.db.faqs.schemas import FaqRecord, FaqSuggestion
from chanswer.db.store import ChatStore


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (TypeError, ValueError, AttributeError):
        return False
    return True


class SQLAlchemyChatStore(ChatStore):
    """
    Store composing the per-entity repositories.

    Each operation opens its own session and commits on success, so a turn
    never holds a connection while it streams.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_chat(self, chat_id: str) -> ChatRecord | None:
        # Ids are UUID columns; anything else cannot exist
        if not _is_uuid(chat_id):
            return None
        async with self._session_factory() as session:
            chat = await ChatRepository(session).get_chat(chat_id)
            return ChatRecord.model_validate(chat) if chat else None

    async def save_chat(self, chat_id: str, user_id: str, title: str) -> ChatRecord:
        async with self._session_factory() as session, session.begin():
            chat = await ChatRepository(session).create_chat(chat_id, user_id, title)
            return ChatRecord.model_validate(chat)

    async def delete_chat(self, chat_id: str) -> bool:
        if not _is_uuid(chat_id):
            return False
        async with self._session_factory() as session, session.begin():
            return await ChatRepository(session).delete_chat(chat_id)

    async def save_messages(
        self, chat_id: str, messages: list[ChatMessage]
    ) -> list[MessageRecord]:
        payload = [
            {
                "id": message.id or str(uuid.uuid4()),
                "role": message.role.value,
                "content": message.dump_content(),
            }
            for message in messages
        ]
        async with self._session_factory() as session, session.begin():
            rows = await ChatRepository(session).add_messages(chat_id, payload)
            return [MessageRecord.model_validate(row) for row in rows]

    async def get_messages(self, chat_id: str) -> list[MessageRecord]:
        if not _is_uuid(chat_id):
            return []
        async with self._session_factory() as session:
            rows = await ChatRepository(session).list_messages(chat_id)
            return [MessageRecord.model_validate(row) for row in rows]

    async def get_document(self, document_id: str) -> DocumentRecord | None:
        if not _is_uuid(document_id):
            return None
        async with self._session_factory() as session:
            document = await DocumentRepository(session).get_document(document_id)
            return DocumentRecord.model_validate(document) if document else None

    async def save_document(
        self, document_id: str, title: str, content: str | None, user_id: str
    ) -> DocumentRecord:
        async with self._session_factory() as session, session.begin():
            document = await DocumentRepository(session).upsert_document(
                document_id, title, content, user_id
            )
            return DocumentRecord.model_validate(document)

    async def save_suggestions(
        self, suggestions: list[SuggestionRecord]
    ) -> list[SuggestionRecord]:
        rows = [
            Suggestion(
                id=s.id,
                document_id=s.document_id,
                original_text=s.original_text,
                suggested_text=s.suggested_text,
                description=s.description,
                is_resolved=s.is_resolved,
                user_id=s.user_id,
                created_at=s.created_at,
            )
            for s in suggestions
        ]
        async with self._session_factory() as session, session.begin():
            await DocumentRepository(session).add_suggestions(rows)
        return list(suggestions)

    async def get_suggestions(self, document_id: str) -> list[SuggestionRecord]:
        if not _is_uuid(document_id):
            return []
        async with self._session_factory() as session:
            rows = await DocumentRepository(session).list_suggestions(document_id)
            return [SuggestionRecord.model_validate(row) for row in rows]

    async def save_faq(
        self, question: str, answer: str, category: str | None = None
    ) -> FaqRecord:
        async with self._session_factory() as session, session.begin():
            faq = await FaqRepository(session).create_faq(question, answer, category)
            return FaqRecord.model_validate(faq)

    async def query_faqs(self, question: str) -> list[FaqRecord]:
        async with self._session_factory() as session:
            rows = await FaqRepository(session).query_faqs(question)
            return [FaqRecord.model_validate(row) for row in rows]

    async def list_faq_suggestions(self) -> list[FaqSuggestion]:
        async with self._session_factory() as session:
            pairs = await FaqRepository(session).list_questions()
            return [
                FaqSuggestion(question=question, category=category)
                for question, category in pairs
            ]
