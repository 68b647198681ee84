"""
FastAPI dependencies for persistence.

The store is a process-wide singleton chosen by STORE_BACKEND.
"""

from chanswer.config import StoreBackend, get_app_settings
from chanswer.db.store import ChatStore
from chanswer.utils.logger import logger

_chat_store: ChatStore | None = None


def create_chat_store(backend: StoreBackend | None = None) -> ChatStore:
    """
    Create a store for the given backend.

    Args:
        backend: Backend to use, defaults to the STORE_BACKEND setting

    Returns:
        ChatStore: New store instance
    """
    backend = backend or get_app_settings().store_backend
    logger.info("Creating chat store", backend=backend.value)

    if backend == StoreBackend.MEMORY:
        from chanswer.db.memory_store import InMemoryChatStore

        return InMemoryChatStore()

    from chanswer.db.database import get_async_session_local
    from chanswer.db.sql_store import SQLAlchemyChatStore

    return SQLAlchemyChatStore(get_async_session_local())


def get_chat_store() -> ChatStore:
    """FastAPI dependency returning the shared store."""
    global _chat_store
    if _chat_store is None:
        _chat_store = create_chat_store()
    return _chat_store


def set_chat_store(store: ChatStore | None) -> None:
    """Replace the shared store. Useful for testing."""
    global _chat_store
    _chat_store = store
