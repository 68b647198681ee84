"""Persistence layer: PostgreSQL via SQLAlchemy, or in memory."""

from chanswer.db.dependencies import get_chat_store, set_chat_store
from chanswer.db.store import ChatStore

__all__ = ["ChatStore", "get_chat_store", "set_chat_store"]
