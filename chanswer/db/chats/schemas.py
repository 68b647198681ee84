"""Pydantic records for chats and messages as handed out by the store."""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from chanswer.ai.base import ChatMessage, ContentPart, MessageRole


def _now() -> datetime:
    return datetime.now(UTC)


class ChatRecord(BaseModel):
    """Stored chat."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Chat UUID")
    user_id: str = Field(..., description="Owning user ID")
    title: str = Field(..., description="Chat title")
    created_at: datetime = Field(default_factory=_now)


class MessageRecord(BaseModel):
    """Stored message."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Message UUID")
    chat_id: str = Field(..., description="Chat UUID")
    role: MessageRole
    content: str | list[ContentPart]
    created_at: datetime = Field(default_factory=_now)

    @classmethod
    def from_chat_message(cls, message: ChatMessage, chat_id: str, message_id: str) -> "MessageRecord":
        return cls(
            id=message_id,
            chat_id=chat_id,
            role=message.role,
            content=message.content,
        )

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(id=self.id, role=self.role, content=self.content)
