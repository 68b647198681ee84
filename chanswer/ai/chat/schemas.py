"""Request and response models for the chat endpoints."""

import uuid
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from chanswer.ai.base import ChatMessage
from chanswer.ai.chat.messages import normalize_messages


class ChatRequest(BaseModel):
    """One chat turn: the chat id, the visible history and the chosen model."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("id", "conversationId"),
        description="Chat UUID, generated by the client for new chats",
    )
    messages: list[ChatMessage] = Field(..., description="Conversation so far")
    model_id: str | None = Field(
        None,
        validation_alias=AliasChoices("modelId", "model_id"),
        description="Id of a configured model",
    )

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        try:
            uuid.UUID(value)
        except ValueError as e:
            raise ValueError("Chat id must be a UUID") from e
        return value

    @field_validator("messages", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return normalize_messages(value)


class ToolInvocationRequest(BaseModel):
    """Arguments for a direct tool call."""

    args: dict[str, Any] = Field(default_factory=dict)


class DeleteChatResponse(BaseModel):
    message: str = "Chat deleted"
