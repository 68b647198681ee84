"""Conversions and clean-up applied to the messages of a chat turn."""

from typing import Any

from chanswer.ai.base import (
    ChatMessage,
    MessageRole,
    TextPart,
    ToolCallPart,
    ToolResultPart,
)
from chanswer.ai.prompts import FAQ_CONTEXT_TEMPLATE
from chanswer.db.faqs.schemas import FaqRecord


def normalize_messages(raw_messages: list[dict[str, Any] | ChatMessage]) -> list[ChatMessage]:
    """
    Bring client messages into canonical form.

    Accepts plain strings and part lists. Client-side `toolInvocations`
    (the UI representation of finished tool calls on an assistant message)
    are expanded into a tool-call part on the assistant message followed by
    a tool message holding the result. Invocations without a result are
    dropped.

    Raises:
        ValueError: A message or tool invocation has the wrong shape
    """
    normalized: list[ChatMessage] = []
    for raw in raw_messages:
        if isinstance(raw, ChatMessage):
            normalized.append(raw)
            continue
        if not isinstance(raw, dict):
            raise ValueError("Each message must be an object")

        invocations = raw.get("toolInvocations") or []
        if not isinstance(invocations, list):
            raise ValueError("toolInvocations must be a list")
        message = ChatMessage.model_validate(
            {key: value for key, value in raw.items() if key in ("id", "role", "content")}
        )
        if not invocations:
            normalized.append(message)
            continue

        parts = message.parts()
        results: list[ToolResultPart] = []
        for invocation in invocations:
            if not isinstance(invocation, dict):
                raise ValueError("Each tool invocation must be an object")
            if "result" not in invocation:
                continue
            call_id = invocation.get("toolCallId")
            tool_name = invocation.get("toolName")
            if not isinstance(call_id, str) or not isinstance(tool_name, str):
                raise ValueError("Tool invocations need toolCallId and toolName")
            args = invocation.get("args") or {}
            parts.append(
                ToolCallPart(
                    tool_call_id=call_id,
                    tool_name=tool_name,
                    args=args if isinstance(args, dict) else {"value": args},
                )
            )
            result = invocation["result"]
            results.append(
                ToolResultPart(
                    tool_call_id=call_id,
                    tool_name=tool_name,
                    result=result if isinstance(result, dict) else {"value": result},
                )
            )

        normalized.append(message.model_copy(update={"content": parts}))
        if results:
            normalized.append(ChatMessage(role=MessageRole.TOOL, content=results))
    return normalized


def get_most_recent_user_message(messages: list[ChatMessage]) -> ChatMessage | None:
    return next(
        (message for message in reversed(messages) if message.role == MessageRole.USER),
        None,
    )


def sanitize_response_messages(messages: list[ChatMessage]) -> list[ChatMessage]:
    """
    Remove what must not be persisted from a turn's response messages.

    Tool-call parts with no matching tool result and empty text parts are
    dropped, then messages left without content are dropped.
    """
    resolved_ids = {
        part.tool_call_id
        for message in messages
        if message.role == MessageRole.TOOL
        for part in message.parts()
        if isinstance(part, ToolResultPart)
    }

    sanitized: list[ChatMessage] = []
    for message in messages:
        if message.role != MessageRole.ASSISTANT:
            if message.parts():
                sanitized.append(message)
            continue

        kept = [
            part
            for part in message.parts()
            if (isinstance(part, TextPart) and part.text)
            or (isinstance(part, ToolCallPart) and part.tool_call_id in resolved_ids)
        ]
        if kept:
            sanitized.append(message.model_copy(update={"content": kept}))
    return sanitized


def build_faq_context_message(faqs: list[FaqRecord]) -> ChatMessage:
    """Render every FAQ as a Q:/A: block inside a system message."""
    faq_block = "\n\n".join(f"Q: {faq.question}\nA: {faq.answer}" for faq in faqs)
    return ChatMessage(
        role=MessageRole.SYSTEM,
        content=FAQ_CONTEXT_TEMPLATE.format(faq_block=faq_block),
    )
