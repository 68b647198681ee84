"""Import every ORM model so Base.metadata knows all tables."""

from chanswer.db.chats.model import Chat, Message
from chanswer.db.documents.model import Document, Suggestion
from chanswer.db.faqs.model import Faq

__all__ = ["Chat", "Message", "Document", "Suggestion", "Faq"]
