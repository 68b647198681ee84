"""Tests for the chat, FAQ and document HTTP routes."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from chanswer.ai.chat.config import ChatSettings
from chanswer.ai.chat.dependencies import get_chat_service
from chanswer.ai.chat.events import TextEvent, UserMessageIdEvent
from chanswer.ai.chat.router import sse_with_heartbeat
from chanswer.ai.chat.service import ChatTurnService
from chanswer.ai.chat.tests.fakes import ScriptedProvider, text_step
from chanswer.ai.tools.registry import build_default_registry
from chanswer.auth.dependencies import get_current_user, get_current_user_optional
from chanswer.auth.schemas import User
from chanswer.db.dependencies import get_chat_store
from chanswer.db.memory_store import InMemoryChatStore
from chanswer.main import app

CHAT_ID = "5f0a6b1c-2d3e-4f50-8a9b-0c1d2e3f4a5b"
TEST_USER = User(id="test-user-123", email="test@example.com")


@pytest.fixture
def store():
    return InMemoryChatStore()


@pytest.fixture
def provider():
    return ScriptedProvider(steps=[text_step("We open\nat 9.")])


@pytest.fixture
def current_user():
    return {"user": TEST_USER}


@pytest.fixture
def client(store, provider, current_user):
    """Test client with an in-memory store, scripted model and switchable user."""
    service = ChatTurnService(
        provider=provider, tools=build_default_registry(), settings=ChatSettings()
    )
    app.dependency_overrides[get_chat_service] = lambda: service
    app.dependency_overrides[get_chat_store] = lambda: store
    app.dependency_overrides[get_current_user_optional] = lambda: current_user["user"]
    app.dependency_overrides[get_current_user] = lambda: current_user["user"]

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def chat_body(text="What are your hours?", model_id="gpt-4o-mini", **extra):
    return {
        "id": CHAT_ID,
        "messages": [{"role": "user", "content": text}],
        "modelId": model_id,
        **extra,
    }


class TestChatRoute:
    def test_streams_turn_as_sse(self, client):
        response = client.post("/api/chat", json=chat_body())

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")

        body = response.text
        assert body.index("event: user-message-id") < body.index("data: We open\\nat 9.")
        assert "event: message-annotation" in body
        assert body.rstrip().endswith("event: done\ndata: complete")

    def test_accepts_conversation_id(self, client, store):
        body = chat_body()
        body["conversationId"] = body.pop("id")

        response = client.post("/api/chat", json=body)

        assert response.status_code == 200
        assert asyncio.run(store.get_chat(CHAT_ID)) is not None

    def test_unauthenticated_is_401(self, client, current_user, store):
        current_user["user"] = None

        response = client.post("/api/chat", json=chat_body())

        assert response.status_code == 401
        assert asyncio.run(store.get_chat(CHAT_ID)) is None

    def test_unknown_model_is_404(self, client):
        response = client.post("/api/chat", json=chat_body(model_id="nonexistent"))

        assert response.status_code == 404

    def test_no_user_message_is_400(self, client):
        body = chat_body()
        body["messages"] = [{"role": "assistant", "content": "Hello"}]

        response = client.post("/api/chat", json=body)

        assert response.status_code == 400

    def test_malformed_body_is_400(self, client):
        response = client.post("/api/chat", json={"id": CHAT_ID})

        assert response.status_code == 400

    def test_non_uuid_chat_id_is_400(self, client, store):
        response = client.post("/api/chat", json={**chat_body(), "id": "not-a-uuid"})

        assert response.status_code == 400
        assert asyncio.run(store.get_chat("not-a-uuid")) is None

    def test_non_object_message_is_400(self, client):
        body = chat_body()
        body["messages"] = ["hi"]

        response = client.post("/api/chat", json=body)

        assert response.status_code == 400

    def test_tool_invocation_without_call_id_is_400(self, client, store):
        body = chat_body()
        body["messages"].insert(
            0,
            {
                "role": "assistant",
                "content": "",
                "toolInvocations": [{"toolName": "getWeather", "result": {}}],
            },
        )

        response = client.post("/api/chat", json=body)

        assert response.status_code == 400
        assert asyncio.run(store.get_chat(CHAT_ID)) is None


class TestDeleteChatRoute:
    def test_missing_id_is_404(self, client):
        assert client.delete("/api/chat").status_code == 404

    def test_non_uuid_id_is_404(self, client):
        assert client.delete("/api/chat", params={"id": "not-a-uuid"}).status_code == 404

    def test_delete_then_delete_again(self, client):
        client.post("/api/chat", json=chat_body())

        first = client.delete("/api/chat", params={"id": CHAT_ID})
        second = client.delete("/api/chat", params={"id": CHAT_ID})

        assert first.status_code == 200
        assert second.status_code == 404

    def test_foreign_chat_is_401(self, client, store):
        asyncio.run(store.save_chat(CHAT_ID, "someone-else", "Theirs"))

        response = client.delete("/api/chat", params={"id": CHAT_ID})

        assert response.status_code == 401
        assert asyncio.run(store.get_chat(CHAT_ID)) is not None


class TestToolRoute:
    def test_runs_faq_tool(self, client):
        saved = client.post(
            "/api/chat/tools/saveFaq",
            json={"args": {"question": "Do you ship?", "answer": "Yes."}},
        )
        suggestions = client.post("/api/chat/tools/getFaqSuggestions", json={})

        assert saved.json() == {"success": True, "message": "FAQ saved successfully"}
        assert suggestions.json() == {
            "success": True,
            "suggestions": [{"question": "Do you ship?", "category": None}],
        }

    def test_streaming_tool_is_404(self, client):
        response = client.post(
            "/api/chat/tools/createDocument", json={"args": {"title": "x"}}
        )

        assert response.status_code == 404


class TestFaqAndDocumentRoutes:
    def test_lists_faqs(self, client, store):
        asyncio.run(store.save_faq("What are your hours?", "9 to 5", "General"))

        response = client.get("/api/faq")

        assert response.status_code == 200
        assert response.json() == {
            "faqs": [{"question": "What are your hours?", "category": "General"}]
        }

    def test_document_of_another_user_is_404(self, client, store):
        asyncio.run(store.save_document("doc-1", "Title", "Body", "someone-else"))

        response = client.get("/api/document", params={"id": "doc-1"})

        assert response.status_code == 404

    def test_own_document_and_suggestions(self, client, store):
        asyncio.run(store.save_document("doc-1", "Title", "Body", TEST_USER.id))

        document = client.get("/api/document", params={"id": "doc-1"})
        suggestions = client.get("/api/suggestions", params={"documentId": "doc-1"})

        assert document.json()["title"] == "Title"
        assert document.json()["userId"] == TEST_USER.id
        assert suggestions.json() == {"suggestions": []}


@pytest.mark.asyncio
async def test_heartbeat_sent_while_idle():
    async def slow_events():
        yield UserMessageIdEvent(content="m-1")
        await asyncio.sleep(0.05)
        yield TextEvent(content="late")

    frames = [
        frame
        async for frame in sse_with_heartbeat(slow_events(), heartbeat_interval=0.01)
    ]

    assert frames[0] == 'event: user-message-id\ndata: "m-1"\n\n'
    assert "event: heartbeat\ndata: keep-alive\n\n" in frames
    assert frames[-2] == "data: late\n\n"
    assert frames[-1] == "event: done\ndata: complete\n\n"
