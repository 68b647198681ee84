"""Tests for SQLAlchemyChatStore that need no database."""

from unittest.mock import MagicMock

import pytest

from chanswer.db.sql_store import SQLAlchemyChatStore


@pytest.fixture
def session_factory():
    return MagicMock()


@pytest.fixture
def store(session_factory):
    return SQLAlchemyChatStore(session_factory)


@pytest.mark.asyncio
async def test_non_uuid_ids_resolve_to_nothing_without_a_query(store, session_factory):
    assert await store.get_chat("not-a-uuid") is None
    assert await store.delete_chat("not-a-uuid") is False
    assert await store.get_messages("not-a-uuid") == []
    assert await store.get_document("not-a-uuid") is None
    assert await store.get_suggestions("not-a-uuid") == []

    session_factory.assert_not_called()
