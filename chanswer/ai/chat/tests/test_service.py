"""
Tests for ChatTurnService.

Turns run against the in-memory store and a scripted provider; the weather
API is served by an httpx.MockTransport.
"""

import httpx
import pytest

from chanswer.ai.base import ChatMessage, MessageRole, ToolCallPart, ToolResultPart
from chanswer.ai.chat.config import ChatSettings
from chanswer.ai.chat.events import (
    ClearEvent,
    DocumentIdEvent,
    DocumentTitleEvent,
    ErrorEvent,
    FinishEvent,
    MessageAnnotationEvent,
    TextDeltaEvent,
    TextEvent,
    ToolCallEvent,
    ToolResultEvent,
    UserMessageIdEvent,
)
from chanswer.ai.chat.exceptions import (
    ChatNotFoundError,
    ModelNotFoundError,
    NoUserMessageError,
    ToolNotFoundError,
    UnauthorizedError,
)
from chanswer.ai.chat.service import ChatTurnService
from chanswer.ai.chat.tests.fakes import ScriptedProvider, text_step, tool_step
from chanswer.ai.openai.exceptions import OpenAIStreamError
from chanswer.ai.tools.documents import (
    CreateDocumentTool,
    RequestSuggestionsTool,
    UpdateDocumentTool,
)
from chanswer.ai.tools.faq import AnswerFaqTool, GetFaqSuggestionsTool, SaveFaqTool
from chanswer.ai.tools.registry import ToolRegistry
from chanswer.ai.tools.weather import GetWeatherTool
from chanswer.auth.schemas import User
from chanswer.db.memory_store import InMemoryChatStore

CHAT_ID = "0b7c2f4e-5a0e-4d3b-9a57-1c2d3e4f5a6b"
MODEL_ID = "gpt-4o-mini"

WEATHER_PAYLOAD = {
    "latitude": 52.52,
    "longitude": 13.41,
    "current": {"time": "2026-10-19T10:00", "temperature_2m": 21.5},
    "daily": {"sunrise": ["2026-10-19T07:30"], "sunset": ["2026-10-19T18:10"]},
}


def weather_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=WEATHER_PAYLOAD)


def build_registry() -> ToolRegistry:
    return ToolRegistry(
        [
            CreateDocumentTool(),
            UpdateDocumentTool(),
            RequestSuggestionsTool(),
            GetWeatherTool(transport=httpx.MockTransport(weather_handler)),
            SaveFaqTool(),
            AnswerFaqTool(),
            GetFaqSuggestionsTool(),
        ]
    )


def make_service(provider: ScriptedProvider, **settings) -> ChatTurnService:
    return ChatTurnService(
        provider=provider,
        tools=build_registry(),
        settings=ChatSettings(**settings),
    )


def user_turn(text: str) -> list[dict]:
    return [{"role": "user", "content": text}]


async def run(service, store, user, messages, model_id=MODEL_ID, chat_id=CHAT_ID):
    return [
        event
        async for event in service.handle_turn(chat_id, messages, model_id, user, store)
    ]


@pytest.fixture
def store():
    return InMemoryChatStore()


@pytest.fixture
def user():
    return User(id="user-1", email="user@example.com")


# ========== Preconditions ==========


@pytest.mark.asyncio
async def test_unauthenticated_turn_persists_nothing(store):
    """An anonymous turn is rejected before any chat or message is stored."""
    service = make_service(ScriptedProvider(steps=[text_step("Hi")]))

    with pytest.raises(UnauthorizedError) as exc_info:
        await run(service, store, None, user_turn("What are your hours?"))

    assert exc_info.value.status_code == 401
    assert await store.get_chat(CHAT_ID) is None
    assert await store.get_messages(CHAT_ID) == []


@pytest.mark.asyncio
async def test_unknown_model_persists_nothing(store, user):
    service = make_service(ScriptedProvider())

    with pytest.raises(ModelNotFoundError) as exc_info:
        await run(service, store, user, user_turn("Hello"), model_id="nonexistent")

    assert exc_info.value.status_code == 404
    assert await store.get_chat(CHAT_ID) is None


@pytest.mark.asyncio
async def test_turn_without_user_message_is_rejected(store, user):
    service = make_service(ScriptedProvider())

    with pytest.raises(NoUserMessageError) as exc_info:
        await run(service, store, user, [{"role": "assistant", "content": "Hi there"}])

    assert exc_info.value.status_code == 400
    assert await store.get_chat(CHAT_ID) is None


@pytest.mark.asyncio
async def test_turn_on_foreign_chat_is_rejected(store, user):
    await store.save_chat(CHAT_ID, "someone-else", "Their chat")
    service = make_service(ScriptedProvider())

    with pytest.raises(UnauthorizedError):
        await run(service, store, user, user_turn("Hello"))

    assert await store.get_messages(CHAT_ID) == []


# ========== First turn ==========


@pytest.mark.asyncio
async def test_first_turn_creates_chat_and_persists_response(store, user):
    """A first turn titles the chat, injects FAQs and stores both sides."""
    await store.save_faq("What are your hours?", "9am to 5pm on weekdays.", "General")
    provider = ScriptedProvider(steps=[text_step("We are open ", "9am to 5pm.")])
    service = make_service(provider)

    events = await run(service, store, user, user_turn("What are your hours?"))

    chat = await store.get_chat(CHAT_ID)
    assert chat is not None
    assert chat.title == "Store hours"
    assert chat.user_id == "user-1"

    stored = await store.get_messages(CHAT_ID)
    assert [m.role for m in stored] == [MessageRole.USER, MessageRole.ASSISTANT]
    assert stored[1].to_chat_message().text() == "We are open 9am to 5pm."

    # FAQ block follows the history as a system message
    sent = provider.outer_calls[0]["messages"]
    assert sent[-1].role == MessageRole.SYSTEM
    assert "Q: What are your hours?\nA: 9am to 5pm on weekdays." in sent[-1].text()
    assert sent[-1].text().startswith("Here are some relevant FAQs for context:")

    assert isinstance(events[0], UserMessageIdEvent)
    assert events[0].content == stored[0].id
    assert [e.content for e in events if isinstance(e, TextEvent)] == [
        "We are open ",
        "9am to 5pm.",
    ]

    annotations = [e for e in events if isinstance(e, MessageAnnotationEvent)]
    assert len(annotations) == 1
    assert annotations[0].content.message_id_from_server == stored[1].id
    assert events[-1] is annotations[0]


@pytest.mark.asyncio
async def test_existing_chat_keeps_title(store, user):
    await store.save_chat(CHAT_ID, "user-1", "Original title")
    provider = ScriptedProvider(steps=[text_step("Sure.")])
    service = make_service(provider)

    await run(service, store, user, user_turn("Another question"))

    assert (await store.get_chat(CHAT_ID)).title == "Original title"
    assert provider.title_calls == []


@pytest.mark.asyncio
async def test_title_falls_back_to_message_text(store, user):
    provider = ScriptedProvider(steps=[text_step("Hi")], fail_title=True)
    service = make_service(provider, title_max_length=20)

    await run(service, store, user, user_turn('Can you tell me: "when" do you open tomorrow?'))

    assert (await store.get_chat(CHAT_ID)).title == "Can you tell me when"


@pytest.mark.asyncio
async def test_generated_title_is_cleaned(store, user):
    provider = ScriptedProvider(steps=[text_step("Hi")], title='"Hours: weekdays"')
    service = make_service(provider)

    await run(service, store, user, user_turn("When are you open?"))

    assert (await store.get_chat(CHAT_ID)).title == "Hours weekdays"


# ========== Tools ==========


@pytest.mark.asyncio
async def test_weather_result_precedes_final_answer(store, user):
    """getWeather resolves to temperature data before the model answers."""
    provider = ScriptedProvider(
        steps=[
            tool_step("call-1", "getWeather", {"latitude": 52.52, "longitude": 13.41}),
            text_step("It is 21.5°C in Berlin."),
        ]
    )
    service = make_service(provider)

    events = await run(service, store, user, user_turn("Weather in Berlin?"))

    calls = [e for e in events if isinstance(e, ToolCallEvent)]
    results = [e for e in events if isinstance(e, ToolResultEvent)]
    assert len(calls) == len(results) == 1
    assert results[0].content.tool_call_id == "call-1"
    assert results[0].content.result["success"] is True
    assert results[0].content.result["current"]["temperature_2m"] == 21.5

    result_index = events.index(results[0])
    text_index = next(i for i, e in enumerate(events) if isinstance(e, TextEvent))
    assert result_index < text_index

    # Second step sees the call and its result
    second_step = provider.outer_calls[1]["messages"]
    assert second_step[-1].role == MessageRole.TOOL
    assert second_step[-2].role == MessageRole.ASSISTANT

    stored = await store.get_messages(CHAT_ID)
    assert [m.role for m in stored] == [
        MessageRole.USER,
        MessageRole.ASSISTANT,
        MessageRole.TOOL,
        MessageRole.ASSISTANT,
    ]
    annotations = [e for e in events if isinstance(e, MessageAnnotationEvent)]
    assert [a.content.message_id_from_server for a in annotations] == [
        stored[1].id,
        stored[3].id,
    ]


@pytest.mark.asyncio
async def test_final_step_has_no_tools_and_dangling_call_is_not_persisted(store, user):
    provider = ScriptedProvider(
        steps=[
            tool_step("call-1", "getWeather", {"latitude": 52.52, "longitude": 13.41}),
            text_step("Here is what I found.")
            + tool_step("call-2", "getFaqSuggestions"),
        ]
    )
    service = make_service(provider, max_steps=2)

    events = await run(service, store, user, user_turn("Weather in Berlin?"))

    assert provider.outer_calls[0]["tools"]
    assert provider.outer_calls[1]["tools"] is None

    # The dangling call is streamed but never executed
    assert len([e for e in events if isinstance(e, ToolCallEvent)]) == 2
    assert len([e for e in events if isinstance(e, ToolResultEvent)]) == 1

    stored_parts = [
        part
        for message in await store.get_messages(CHAT_ID)
        for part in message.to_chat_message().parts()
    ]
    stored_call_ids = {p.tool_call_id for p in stored_parts if isinstance(p, ToolCallPart)}
    stored_result_ids = {p.tool_call_id for p in stored_parts if isinstance(p, ToolResultPart)}
    assert stored_call_ids == {"call-1"}
    assert stored_result_ids == {"call-1"}


@pytest.mark.asyncio
async def test_step_budget_caps_tool_rounds(store, user):
    provider = ScriptedProvider(
        steps=[tool_step(f"call-{i}", "getFaqSuggestions") for i in range(10)]
    )
    service = make_service(provider)

    await run(service, store, user, user_turn("Loop forever"))

    assert len(provider.outer_calls) == 5


@pytest.mark.asyncio
async def test_create_document_round_trip(store, user):
    """The saved document equals the concatenated text-delta events."""
    provider = ScriptedProvider(
        steps=[
            tool_step("call-1", "createDocument", {"title": "Opening hours"}),
            text_step("I created the document."),
        ],
        drafts=["# Opening hours\n\n", "We open at 9am ", "and close at 5pm."],
    )
    service = make_service(provider)

    events = await run(service, store, user, user_turn("Write a page about our hours"))

    document_id = next(e.content for e in events if isinstance(e, DocumentIdEvent))
    deltas = "".join(e.content for e in events if isinstance(e, TextDeltaEvent))
    document = await store.get_document(document_id)

    assert document.title == "Opening hours"
    assert document.content == deltas
    assert document.user_id == "user-1"

    kinds = [type(e) for e in events]
    assert kinds.index(DocumentIdEvent) < kinds.index(DocumentTitleEvent) < kinds.index(ClearEvent)
    assert kinds.index(FinishEvent) < kinds.index(ToolResultEvent)

    result = next(e for e in events if isinstance(e, ToolResultEvent)).content.result
    assert result["content"] == "A document was created and is now visible to the user."


@pytest.mark.asyncio
async def test_unknown_tool_request_becomes_failed_result(store, user):
    provider = ScriptedProvider(steps=[tool_step("call-1", "launchRocket"), text_step("Sorry.")])
    service = make_service(provider)

    events = await run(service, store, user, user_turn("Launch it"))

    result = next(e for e in events if isinstance(e, ToolResultEvent)).content.result
    assert result == {"success": False, "error": "Unknown tool: launchRocket"}


# ========== Failures ==========


@pytest.mark.asyncio
async def test_upstream_failure_emits_error_and_skips_persistence(store, user):
    provider = ScriptedProvider(stream_error=OpenAIStreamError("upstream down"))
    service = make_service(provider)

    events = await run(service, store, user, user_turn("Hello"))

    assert isinstance(events[0], UserMessageIdEvent)
    assert isinstance(events[-1], ErrorEvent)
    assert [m.role for m in await store.get_messages(CHAT_ID)] == [MessageRole.USER]


@pytest.mark.asyncio
async def test_timeout_emits_error_event(store, user):
    provider = ScriptedProvider(steps=[text_step("too late")], step_delay=1.0)
    service = make_service(provider, turn_timeout_seconds=0.05)

    events = await run(service, store, user, user_turn("Hello"))

    assert isinstance(events[-1], ErrorEvent)
    assert "timed out" in events[-1].content.message
    assert not any(isinstance(e, TextEvent) for e in events)
    assert [m.role for m in await store.get_messages(CHAT_ID)] == [MessageRole.USER]


class FailingResponseStore(InMemoryChatStore):
    """Stores the user message but fails when the response is saved."""

    def __init__(self):
        super().__init__()
        self.save_calls = 0

    async def save_messages(self, chat_id, messages):
        self.save_calls += 1
        if self.save_calls > 1:
            raise RuntimeError("database unavailable")
        return await super().save_messages(chat_id, messages)


@pytest.mark.asyncio
async def test_persistence_failure_is_swallowed(user):
    store = FailingResponseStore()
    service = make_service(ScriptedProvider(steps=[text_step("Answer")]))

    events = await run(service, store, user, user_turn("Hello"))

    assert [e.content for e in events if isinstance(e, TextEvent)] == ["Answer"]
    assert not any(isinstance(e, (MessageAnnotationEvent, ErrorEvent)) for e in events)
    assert store.save_calls == 2


# ========== Deletion ==========


@pytest.mark.asyncio
async def test_delete_twice_is_not_found_the_second_time(store, user):
    await store.save_chat(CHAT_ID, "user-1", "Mine")
    await store.save_messages(CHAT_ID, [ChatMessage(role=MessageRole.USER, content="hi")])
    service = make_service(ScriptedProvider())

    await service.delete_chat(CHAT_ID, user, store)
    assert await store.get_chat(CHAT_ID) is None
    assert await store.get_messages(CHAT_ID) == []

    with pytest.raises(ChatNotFoundError):
        await service.delete_chat(CHAT_ID, user, store)


@pytest.mark.asyncio
async def test_delete_foreign_chat_leaves_it_intact(store, user):
    await store.save_chat(CHAT_ID, "someone-else", "Theirs")
    service = make_service(ScriptedProvider())

    with pytest.raises(UnauthorizedError):
        await service.delete_chat(CHAT_ID, user, store)

    assert await store.get_chat(CHAT_ID) is not None


@pytest.mark.asyncio
async def test_delete_requires_id_and_user(store, user):
    service = make_service(ScriptedProvider())

    with pytest.raises(ChatNotFoundError):
        await service.delete_chat(None, user, store)
    with pytest.raises(UnauthorizedError):
        await service.delete_chat(CHAT_ID, None, store)
    with pytest.raises(ChatNotFoundError):
        await service.delete_chat("unknown", user, store)


# ========== Direct tool calls ==========


@pytest.mark.asyncio
async def test_invoke_faq_tools_directly(store, user):
    service = make_service(ScriptedProvider())

    saved = await service.invoke_tool(
        "saveFaq",
        {"question": "Do you deliver?", "answer": "Yes, within 10 miles."},
        user,
        store,
    )
    answered = await service.invoke_tool(
        "answerFaq", {"question": "do you DELIVER"}, user, store
    )

    assert saved == {"success": True, "message": "FAQ saved successfully"}
    assert answered == {"success": True, "answer": "Yes, within 10 miles.", "source": "faq"}


@pytest.mark.asyncio
async def test_invoke_streaming_tool_directly_is_not_found(store, user):
    service = make_service(ScriptedProvider())

    with pytest.raises(ToolNotFoundError):
        await service.invoke_tool("createDocument", {"title": "x"}, user, store)
    with pytest.raises(UnauthorizedError):
        await service.invoke_tool("answerFaq", {"question": "x"}, None, store)


@pytest.mark.asyncio
async def test_annotation_maps_streamed_message_id_to_stored_id(store, user):
    """Text events carry the id the annotation later resolves."""
    provider = ScriptedProvider(
        steps=[
            tool_step("call-1", "getWeather", {"latitude": 52.52, "longitude": 13.41}),
            text_step("Here ", "you go."),
        ]
    )
    service = make_service(provider)

    events = await run(service, store, user, user_turn("Weather in Berlin?"))

    call_ids = {e.message_id for e in events if isinstance(e, ToolCallEvent)}
    text_ids = {e.message_id for e in events if isinstance(e, TextEvent)}
    assert len(call_ids) == len(text_ids) == 1
    assert call_ids != text_ids

    stored = await store.get_messages(CHAT_ID)
    annotations = {
        e.content.response_message_id: e.content.message_id_from_server
        for e in events
        if isinstance(e, MessageAnnotationEvent)
    }
    assert annotations == {
        call_ids.pop(): stored[1].id,
        text_ids.pop(): stored[3].id,
    }
