"""Tests for the OpenAI provider's request building and stream handling."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai.types.responses import (
    ResponseCompletedEvent,
    ResponseFailedEvent,
    ResponseFunctionToolCall,
    ResponseOutputItemDoneEvent,
    ResponseTextDeltaEvent,
)

from chanswer.ai.base import (
    ChatMessage,
    MessageRole,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    ToolSpec,
)
from chanswer.ai.openai.config import get_openai_settings
from chanswer.ai.openai.exceptions import OpenAIStreamError
from chanswer.ai.providers.openai import (
    OpenAIProvider,
    build_function_tools,
    build_input_items,
)


@pytest.fixture
def provider(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    get_openai_settings.cache_clear()
    provider = OpenAIProvider(enable_braintrust=False)
    yield provider
    get_openai_settings.cache_clear()


class FakeStream:
    """Async-iterable stand-in for the SDK stream, optionally failing after its events."""

    def __init__(self, *events, error: Exception | None = None):
        self.events = events
        self.error = error
        self.close = AsyncMock()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


def _client_returning(stream) -> MagicMock:
    client = MagicMock()
    client.responses.create = AsyncMock(return_value=stream)
    return client


class TestBuildInputItems:
    def test_converts_text_calls_and_results_in_order(self):
        items = build_input_items(
            [
                ChatMessage(role=MessageRole.USER, content="Weather in Paris?"),
                ChatMessage(
                    role=MessageRole.ASSISTANT,
                    content=[
                        TextPart(text="Let me check."),
                        ToolCallPart(
                            tool_call_id="call-1",
                            tool_name="getWeather",
                            args={"latitude": 48.85, "longitude": 2.35},
                        ),
                    ],
                ),
                ChatMessage(
                    role=MessageRole.TOOL,
                    content=[
                        ToolResultPart(
                            tool_call_id="call-1",
                            tool_name="getWeather",
                            result={"success": True, "current": {"temperature_2m": 12}},
                        )
                    ],
                ),
                ChatMessage(role=MessageRole.SYSTEM, content="FAQ block"),
            ]
        )

        assert items[0] == {"role": "user", "content": "Weather in Paris?"}
        assert items[1] == {"role": "assistant", "content": "Let me check."}
        assert items[2]["type"] == "function_call"
        assert items[2]["call_id"] == "call-1"
        assert json.loads(items[2]["arguments"]) == {"latitude": 48.85, "longitude": 2.35}
        assert items[3]["type"] == "function_call_output"
        assert json.loads(items[3]["output"])["current"]["temperature_2m"] == 12
        assert items[4] == {"role": "system", "content": "FAQ block"}

    def test_skips_empty_text(self):
        assert build_input_items([ChatMessage(role=MessageRole.ASSISTANT, content="")]) == []

    def test_function_tools(self):
        [tool] = build_function_tools(
            [ToolSpec(name="answerFaq", description="Answer", parameters={"type": "object"})]
        )

        assert tool["type"] == "function"
        assert tool["name"] == "answerFaq"
        assert tool["strict"] is False


class TestStreamChat:
    @pytest.mark.asyncio
    async def test_yields_text_then_tool_calls_then_finish(self, provider):
        stream = FakeStream(
            ResponseTextDeltaEvent.model_construct(
                type="response.output_text.delta", delta="Checking"
            ),
            ResponseOutputItemDoneEvent.model_construct(
                type="response.output_item.done",
                item=ResponseFunctionToolCall.model_construct(
                    type="function_call",
                    call_id="call-1",
                    name="getWeather",
                    arguments='{"latitude": 1, "longitude": 2}',
                ),
            ),
            ResponseCompletedEvent.model_construct(type="response.completed"),
        )
        provider._client = _client_returning(stream)

        chunks = [
            chunk
            async for chunk in provider.stream_chat(
                [ChatMessage(role=MessageRole.USER, content="Weather?")],
                instructions="Be brief",
                tools=[ToolSpec(name="getWeather", description="Weather")],
                model="gpt-4o-mini",
            )
        ]

        assert chunks[0].content == "Checking"
        assert chunks[1].tool_calls[0].tool_name == "getWeather"
        assert chunks[1].tool_calls[0].args == {"latitude": 1, "longitude": 2}
        assert chunks[-1].finish_reason == "tool-calls"

        request = provider._client.responses.create.call_args.kwargs
        assert request["stream"] is True
        assert request["instructions"] == "Be brief"
        assert request["tools"][0]["name"] == "getWeather"
        assert request["temperature"] == 0.7

    @pytest.mark.asyncio
    async def test_no_tools_means_no_tool_params(self, provider):
        provider._client = _client_returning(
            FakeStream(ResponseCompletedEvent.model_construct(type="response.completed"))
        )

        chunks = [
            chunk
            async for chunk in provider.stream_chat(
                [ChatMessage(role=MessageRole.USER, content="Hi")], tools=None
            )
        ]

        request = provider._client.responses.create.call_args.kwargs
        assert "tools" not in request
        assert chunks[-1].finish_reason == "stop"

    @pytest.mark.asyncio
    async def test_failed_response_raises(self, provider):
        provider._client = _client_returning(
            FakeStream(ResponseFailedEvent.model_construct(type="response.failed"))
        )

        with pytest.raises(OpenAIStreamError):
            async for _ in provider.stream_chat(
                [ChatMessage(role=MessageRole.USER, content="Hi")]
            ):
                pass

    @pytest.mark.asyncio
    async def test_request_failure_raises_stream_error(self, provider):
        client = MagicMock()
        client.responses.create = AsyncMock(side_effect=RuntimeError("connection reset"))
        provider._client = client

        with pytest.raises(OpenAIStreamError):
            async for _ in provider.stream_chat(
                [ChatMessage(role=MessageRole.USER, content="Hi")]
            ):
                pass


def test_reasoning_models_use_effort_instead_of_temperature(provider):
    params = provider._build_model_params(model="o3-mini", temperature=0.2)

    assert "temperature" not in params
    assert params["reasoning"] == {"effort": "low"}


class TestStreamLifecycle:
    @pytest.mark.asyncio
    async def test_transport_error_midway_becomes_stream_error(self, provider):
        stream = FakeStream(
            ResponseTextDeltaEvent.model_construct(
                type="response.output_text.delta", delta="Partial"
            ),
            error=httpx.ReadError("connection reset"),
        )
        provider._client = _client_returning(stream)
        received = []

        with pytest.raises(OpenAIStreamError):
            async for chunk in provider.stream_chat(
                [ChatMessage(role=MessageRole.USER, content="Hi")]
            ):
                received.append(chunk.content)

        assert received == ["Partial"]
        stream.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stream_is_closed_when_consumer_stops_early(self, provider):
        stream = FakeStream(
            ResponseTextDeltaEvent.model_construct(
                type="response.output_text.delta", delta="One"
            ),
            ResponseTextDeltaEvent.model_construct(
                type="response.output_text.delta", delta="Two"
            ),
        )
        provider._client = _client_returning(stream)

        chunks = provider.stream_chat([ChatMessage(role=MessageRole.USER, content="Hi")])
        first = await chunks.__anext__()
        await chunks.aclose()

        assert first.content == "One"
        stream.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stream_is_closed_after_completion(self, provider):
        stream = FakeStream(ResponseCompletedEvent.model_construct(type="response.completed"))
        provider._client = _client_returning(stream)

        async for _ in provider.stream_chat([ChatMessage(role=MessageRole.USER, content="Hi")]):
            pass

        stream.close.assert_awaited_once()
