"""
Persistence interface used by the chat turn, its tools and the HTTP routes.

Every operation is its own unit of work; nothing is shared between calls.
"""

from abc import ABC, abstractmethod

from chanswer.ai.base import ChatMessage
from chanswer.db.chats.schemas import ChatRecord, MessageRecord
from chanswer.db.documents.schemas import DocumentRecord, SuggestionRecord
from chanswer.db.faqs.schemas import FaqRecord, FaqSuggestion


class ChatStore(ABC):
    """Abstract store for chats, messages, documents, suggestions and FAQs."""

    # ========== Chats ==========

    @abstractmethod
    async def get_chat(self, chat_id: str) -> ChatRecord | None:
        """Get a chat by ID regardless of owner."""
        pass

    @abstractmethod
    async def save_chat(self, chat_id: str, user_id: str, title: str) -> ChatRecord:
        """Create a chat."""
        pass

    @abstractmethod
    async def delete_chat(self, chat_id: str) -> bool:
        """Delete a chat and its messages atomically. False if it did not exist."""
        pass

    @abstractmethod
    async def save_messages(
        self, chat_id: str, messages: list[ChatMessage]
    ) -> list[MessageRecord]:
        """
        Append messages to a chat in one transaction.

        Each message keeps its id when set, otherwise a fresh UUID is assigned.
        """
        pass

    @abstractmethod
    async def get_messages(self, chat_id: str) -> list[MessageRecord]:
        """Get a chat's messages, oldest first."""
        pass

    # ========== Documents ==========

    @abstractmethod
    async def get_document(self, document_id: str) -> DocumentRecord | None:
        pass

    @abstractmethod
    async def save_document(
        self, document_id: str, title: str, content: str | None, user_id: str
    ) -> DocumentRecord:
        """Create or overwrite a document."""
        pass

    @abstractmethod
    async def save_suggestions(
        self, suggestions: list[SuggestionRecord]
    ) -> list[SuggestionRecord]:
        pass

    @abstractmethod
    async def get_suggestions(self, document_id: str) -> list[SuggestionRecord]:
        pass

    # ========== FAQs ==========

    @abstractmethod
    async def save_faq(
        self, question: str, answer: str, category: str | None = None
    ) -> FaqRecord:
        pass

    @abstractmethod
    async def query_faqs(self, question: str) -> list[FaqRecord]:
        """Case-insensitive substring match on the question; "" returns all."""
        pass

    @abstractmethod
    async def list_faq_suggestions(self) -> list[FaqSuggestion]:
        pass
