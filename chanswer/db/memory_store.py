"""In-process ChatStore for local development and tests."""

import asyncio
import uuid
from datetime import UTC, datetime

from chanswer.ai.base import ChatMessage
from chanswer.db.chats.schemas import ChatRecord, MessageRecord
from chanswer.db.documents.schemas import DocumentRecord, SuggestionRecord
from chanswer.db.faqs.schemas import FaqRecord, FaqSuggestion
from chanswer.db.store import ChatStore
from chanswer.utils.logger import logger


class InMemoryChatStore(ChatStore):
    """
    Dict-backed store. Data lives as long as the process.

    A single lock serializes operations so each one behaves like a
    transaction.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._chats: dict[str, ChatRecord] = {}
        self._messages: dict[str, list[MessageRecord]] = {}
        self._documents: dict[str, DocumentRecord] = {}
        self._suggestions: dict[str, list[SuggestionRecord]] = {}
        self._faqs: list[FaqRecord] = []

    async def get_chat(self, chat_id: str) -> ChatRecord | None:
        async with self._lock:
            return self._chats.get(chat_id)

    async def save_chat(self, chat_id: str, user_id: str, title: str) -> ChatRecord:
        async with self._lock:
            chat = ChatRecord(id=chat_id, user_id=user_id, title=title)
            self._chats[chat_id] = chat
            self._messages.setdefault(chat_id, [])
            logger.info("[InMemoryChatStore] Created chat", chat_id=chat_id)
            return chat

    async def delete_chat(self, chat_id: str) -> bool:
        async with self._lock:
            if self._chats.pop(chat_id, None) is None:
                return False
            self._messages.pop(chat_id, None)
            logger.info("[InMemoryChatStore] Deleted chat", chat_id=chat_id)
            return True

    async def save_messages(
        self, chat_id: str, messages: list[ChatMessage]
    ) -> list[MessageRecord]:
        async with self._lock:
            records = [
                MessageRecord.from_chat_message(
                    message, chat_id=chat_id, message_id=message.id or str(uuid.uuid4())
                )
                for message in messages
            ]
            self._messages.setdefault(chat_id, []).extend(records)
            return records

    async def get_messages(self, chat_id: str) -> list[MessageRecord]:
        async with self._lock:
            return list(self._messages.get(chat_id, []))

    async def get_document(self, document_id: str) -> DocumentRecord | None:
        async with self._lock:
            return self._documents.get(document_id)

    async def save_document(
        self, document_id: str, title: str, content: str | None, user_id: str
    ) -> DocumentRecord:
        async with self._lock:
            existing = self._documents.get(document_id)
            if existing is None:
                document = DocumentRecord(
                    id=document_id, title=title, content=content, user_id=user_id
                )
            else:
                document = existing.model_copy(
                    update={
                        "title": title,
                        "content": content,
                        "updated_at": datetime.now(UTC),
                    }
                )
            self._documents[document_id] = document
            return document

    async def save_suggestions(
        self, suggestions: list[SuggestionRecord]
    ) -> list[SuggestionRecord]:
        async with self._lock:
            for suggestion in suggestions:
                self._suggestions.setdefault(suggestion.document_id, []).append(suggestion)
            return list(suggestions)

    async def get_suggestions(self, document_id: str) -> list[SuggestionRecord]:
        async with self._lock:
            return list(self._suggestions.get(document_id, []))

    async def save_faq(
        self, question: str, answer: str, category: str | None = None
    ) -> FaqRecord:
        async with self._lock:
            faq = FaqRecord(
                id=str(uuid.uuid4()), question=question, answer=answer, category=category
            )
            self._faqs.append(faq)
            return faq

    async def query_faqs(self, question: str) -> list[FaqRecord]:
        needle = question.casefold()
        async with self._lock:
            return [faq for faq in self._faqs if needle in faq.question.casefold()]

    async def list_faq_suggestions(self) -> list[FaqSuggestion]:
        async with self._lock:
            return [
                FaqSuggestion(question=faq.question, category=faq.category)
                for faq in self._faqs
            ]
