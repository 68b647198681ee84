"""
Chat turn orchestration.

A turn is split in two. `start_turn` checks the caller, the model and the
messages, creates the chat on first use and persists the user message; it
raises before anything is streamed. `stream_turn` then runs the model with
tools in a producer task that feeds a channel, and yields the channel's
events to the caller.
"""

import asyncio
import re
import uuid
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, AsyncGenerator

from chanswer.ai.base import (
    AIProvider,
    ChatMessage,
    MessageRole,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from chanswer.ai.chat.config import ChatSettings, get_chat_settings
from chanswer.ai.chat.events import (
    ErrorEvent,
    ErrorPayload,
    MessageAnnotation,
    MessageAnnotationEvent,
    StreamChannel,
    StreamEvent,
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
    TurnTimeoutError,
    UnauthorizedError,
)
from chanswer.ai.chat.messages import (
    build_faq_context_message,
    get_most_recent_user_message,
    normalize_messages,
    sanitize_response_messages,
)
from chanswer.ai.models import DEFAULT_MODEL_ID, DEFAULT_MODELS, ChatModel, find_model
from chanswer.ai.prompts import SYSTEM_PROMPT, TITLE_PROMPT
from chanswer.ai.tools.base import ToolContext, ToolResult
from chanswer.ai.tools.registry import DIRECT_TOOLS, ToolRegistry
from chanswer.auth.schemas import User
from chanswer.db.store import ChatStore
from chanswer.utils.logger import logger

DEFAULT_TITLE = "New Chat"

_TITLE_STRIP = re.compile(r"[\"':“”‘’]")


@dataclass
class PreparedTurn:
    """State handed from start_turn to stream_turn."""

    chat_id: str
    user_id: str
    model: ChatModel
    history: list[ChatMessage]
    user_message_id: str
    deadline: float


class ChatTurnService:
    """Runs tool-augmented chat turns against one provider and tool registry."""

    def __init__(
        self,
        provider: AIProvider,
        tools: ToolRegistry,
        models: tuple[ChatModel, ...] = DEFAULT_MODELS,
        settings: ChatSettings | None = None,
    ):
        self.provider = provider
        self.tools = tools
        self.models = models
        self.settings = settings or get_chat_settings()

    # ========== Turn ==========

    async def start_turn(
        self,
        chat_id: str,
        messages: list[dict[str, Any] | ChatMessage],
        model_id: str | None,
        user: User | None,
        store: ChatStore,
    ) -> PreparedTurn:
        """
        Validate a turn and persist its user message.

        The turn deadline starts here and also covers streaming.

        Raises:
            UnauthorizedError: Anonymous caller, or the chat belongs to someone else
            ModelNotFoundError: model_id is not configured
            NoUserMessageError: No user message in messages
            TurnTimeoutError: The deadline passed while preparing
        """
        deadline = asyncio.get_running_loop().time() + self.settings.turn_timeout_seconds
        try:
            async with asyncio.timeout_at(deadline):
                return await self._prepare_turn(
                    chat_id, messages, model_id, user, store, deadline
                )
        except TimeoutError:
            logger.error("[CHAT] Turn timed out before streaming", chat_id=chat_id)
            raise TurnTimeoutError(self.settings.turn_timeout_seconds)

    async def _prepare_turn(
        self,
        chat_id: str,
        messages: list[dict[str, Any] | ChatMessage],
        model_id: str | None,
        user: User | None,
        store: ChatStore,
        deadline: float,
    ) -> PreparedTurn:
        if user is None:
            raise UnauthorizedError()

        model = find_model(self.models, model_id)
        if model is None:
            raise ModelNotFoundError(model_id)

        history = normalize_messages(messages)
        user_message = get_most_recent_user_message(history)
        if user_message is None:
            raise NoUserMessageError()

        chat = await store.get_chat(chat_id)
        if chat is not None and chat.user_id != user.id:
            logger.warning(
                "[CHAT] Turn on a chat owned by another user",
                chat_id=chat_id,
                user_id=user.id,
            )
            raise UnauthorizedError()

        if chat is None:
            title = await self.generate_title(user_message, model)
            await store.save_chat(chat_id, user.id, title)

        user_message_id = str(uuid.uuid4())
        await store.save_messages(
            chat_id, [user_message.model_copy(update={"id": user_message_id})]
        )

        logger.info(
            "[USER_INPUT]",
            chat_id=chat_id,
            user_id=user.id,
            model=model.id,
            input=user_message.text(),
        )
        return PreparedTurn(
            chat_id=chat_id,
            user_id=user.id,
            model=model,
            history=history,
            user_message_id=user_message_id,
            deadline=deadline,
        )

    async def generate_title(self, user_message: ChatMessage, model: ChatModel) -> str:
        """
        Summarize the first user message as a short title.

        Falls back to the truncated message text when the model call fails
        or returns nothing usable.
        """
        text = user_message.text().strip()
        limit = self.settings.title_max_length
        fallback = self._clean_title(text, limit) or DEFAULT_TITLE

        try:
            result = await self.provider.generate_content(
                prompt=text or user_message.model_dump_json(),
                instructions=TITLE_PROMPT,
                model=model.api_identifier,
            )
        except Exception as e:
            logger.warning(
                "[CHAT] Title generation failed, using message text",
                error=str(e),
                error_type=type(e).__name__,
            )
            return fallback

        return self._clean_title(result.text, limit) or fallback

    @staticmethod
    def _clean_title(text: str, limit: int) -> str:
        title = " ".join(_TITLE_STRIP.sub("", text).split())
        return title[:limit].rstrip()

    async def stream_turn(
        self, turn: PreparedTurn, store: ChatStore
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Run the turn in a producer task and yield its events in order.

        Closing this generator early cancels the producer.
        """
        channel = StreamChannel(max_size=self.settings.channel_max_size)
        producer = asyncio.create_task(self.run_turn(turn, channel, store))
        try:
            async for event in channel:
                yield event
            await producer
        finally:
            if not producer.done():
                producer.cancel()
                with suppress(asyncio.CancelledError):
                    await producer

    async def handle_turn(
        self,
        chat_id: str,
        messages: list[dict[str, Any] | ChatMessage],
        model_id: str | None,
        user: User | None,
        store: ChatStore,
    ) -> AsyncGenerator[StreamEvent, None]:
        """Prepare and stream a turn. Precondition errors raise on first iteration."""
        turn = await self.start_turn(chat_id, messages, model_id, user, store)
        async for event in self.stream_turn(turn, store):
            yield event

    async def run_turn(
        self, turn: PreparedTurn, channel: StreamChannel, store: ChatStore
    ) -> None:
        """
        Producer side of a turn. Always closes the channel.

        Timeouts and model failures become an error event and nothing of the
        response is persisted.
        """
        with logger.context(chat_id=turn.chat_id, user_id=turn.user_id):
            try:
                async with asyncio.timeout_at(turn.deadline):
                    await channel.send(UserMessageIdEvent(content=turn.user_message_id))
                    response_messages = await self._run_steps(turn, channel, store)
                    await self._persist_response(turn, response_messages, channel, store)
            except TimeoutError:
                logger.error(
                    "[CHAT] Turn timed out",
                    timeout_seconds=self.settings.turn_timeout_seconds,
                )
                await self._send_error(
                    channel, TurnTimeoutError(self.settings.turn_timeout_seconds).message
                )
            except Exception as e:
                logger.exception(
                    "[CHAT] Turn failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self._send_error(
                    channel, "An error occurred while generating the response"
                )
            finally:
                channel.close()

    async def _send_error(self, channel: StreamChannel, message: str) -> None:
        await channel.send(ErrorEvent(content=ErrorPayload(message=message)))

    async def _run_steps(
        self, turn: PreparedTurn, channel: StreamChannel, store: ChatStore
    ) -> list[ChatMessage]:
        """Run up to max_steps model steps and return the response messages."""
        faqs = await store.query_faqs("")
        conversation = [*turn.history, build_faq_context_message(faqs)]
        context = ToolContext(
            user_id=turn.user_id,
            model=turn.model,
            provider=self.provider,
            store=store,
            channel=channel,
        )
        tool_specs = self.tools.specs()
        response: list[ChatMessage] = []
        tools_used: list[str] = []

        for step in range(self.settings.max_steps):
            # The last step gets no tools so the model has to answer
            final_step = step == self.settings.max_steps - 1
            message_id = str(uuid.uuid4())
            parts: list[TextPart | ToolCallPart] = []

            async for chunk in self.provider.stream_chat(
                messages=[*conversation, *response],
                instructions=SYSTEM_PROMPT,
                tools=None if final_step else tool_specs,
                model=turn.model.api_identifier,
            ):
                if chunk.content:
                    if parts and isinstance(parts[-1], TextPart):
                        parts[-1] = TextPart(text=parts[-1].text + chunk.content)
                    else:
                        parts.append(TextPart(text=chunk.content))
                    await channel.send(
                        TextEvent(content=chunk.content, message_id=message_id)
                    )

                for call in chunk.tool_calls:
                    part = ToolCallPart(
                        tool_call_id=call.tool_call_id,
                        tool_name=call.tool_name,
                        args=call.args,
                    )
                    parts.append(part)
                    await channel.send(ToolCallEvent(content=part, message_id=message_id))

            if parts:
                response.append(
                    ChatMessage(id=message_id, role=MessageRole.ASSISTANT, content=parts)
                )

            calls = [part for part in parts if isinstance(part, ToolCallPart)]
            if not calls or final_step:
                break

            results: list[ToolResultPart] = []
            for call in calls:
                tools_used.append(call.tool_name)
                result = await self._execute_tool(call, context)
                result_part = ToolResultPart(
                    tool_call_id=call.tool_call_id,
                    tool_name=call.tool_name,
                    result=result.to_output(),
                )
                await channel.send(ToolResultEvent(content=result_part))
                results.append(result_part)
            response.append(ChatMessage(role=MessageRole.TOOL, content=results))

        if tools_used:
            logger.info("[TOOLS_USED]", tools=tools_used)
        return response

    async def _execute_tool(self, call: ToolCallPart, context: ToolContext) -> ToolResult:
        tool = self.tools.get(call.tool_name)
        if tool is None:
            logger.warning("[CHAT] Model requested an inactive tool", tool_name=call.tool_name)
            return ToolResult.fail(f"Unknown tool: {call.tool_name}")
        logger.info("[TOOL] Executing", tool_name=call.tool_name, call_id=call.tool_call_id)
        return await tool.execute(call.args, context)

    async def _persist_response(
        self,
        turn: PreparedTurn,
        response_messages: list[ChatMessage],
        channel: StreamChannel,
        store: ChatStore,
    ) -> None:
        """
        Save the sanitized response, then annotate assistant messages with
        their stored ids. A failed save is logged and the turn still ends
        normally.
        """
        sanitized = sanitize_response_messages(response_messages)
        if not sanitized:
            return

        to_save: list[ChatMessage] = []
        annotations: list[MessageAnnotation] = []
        for message in sanitized:
            message_id = str(uuid.uuid4())
            if message.role == MessageRole.ASSISTANT:
                annotations.append(
                    MessageAnnotation(
                        message_id_from_server=message_id,
                        response_message_id=message.id,
                    )
                )
            to_save.append(message.model_copy(update={"id": message_id}))

        try:
            await store.save_messages(turn.chat_id, to_save)
        except Exception as e:
            logger.exception(
                "[CHAT] Failed to save chat",
                error=str(e),
                error_type=type(e).__name__,
            )
            return

        logger.info("[CHAT] Saved response", count=len(to_save))
        for annotation in annotations:
            await channel.send(MessageAnnotationEvent(content=annotation))

    # ========== Chats ==========

    async def delete_chat(
        self, chat_id: str | None, user: User | None, store: ChatStore
    ) -> None:
        """
        Delete a chat owned by the caller.

        Raises:
            ChatNotFoundError: chat_id missing or unknown
            UnauthorizedError: Anonymous caller or not the owner
        """
        if not chat_id:
            raise ChatNotFoundError()
        if user is None:
            raise UnauthorizedError()

        chat = await store.get_chat(chat_id)
        if chat is None:
            raise ChatNotFoundError(chat_id)
        if chat.user_id != user.id:
            raise UnauthorizedError()

        if not await store.delete_chat(chat_id):
            raise ChatNotFoundError(chat_id)
        logger.info("[CHAT] Deleted chat", chat_id=chat_id, user_id=user.id)

    # ========== Direct tool calls ==========

    async def invoke_tool(
        self,
        tool_name: str,
        args: dict[str, Any],
        user: User | None,
        store: ChatStore,
    ) -> dict[str, Any]:
        """
        Run a non-streaming tool outside a model turn.

        Raises:
            UnauthorizedError: Anonymous caller
            ToolNotFoundError: Unknown, inactive or streaming-only tool
        """
        if user is None:
            raise UnauthorizedError()

        tool = self.tools.get(tool_name) if tool_name in DIRECT_TOOLS else None
        if tool is None:
            raise ToolNotFoundError(tool_name)

        model = find_model(self.models, DEFAULT_MODEL_ID) or self.models[0]
        context = ToolContext(
            user_id=user.id, model=model, provider=self.provider, store=store
        )
        logger.info("[TOOL] Direct invocation", tool_name=tool_name, user_id=user.id)
        result = await tool.execute(args, context)
        return result.to_output()
