"""
Side-channel events of a chat turn and the channel that carries them.

Events are a tagged union on `type`. The client applies them in the order
they are received.
"""

import asyncio
import json
from typing import Annotated, AsyncIterator, Literal

from pydantic import BaseModel, ConfigDict, Field

from chanswer.ai.base import SSEEvent, ToolCallPart, ToolResultPart
from chanswer.db.documents.schemas import SuggestionRecord


class UserMessageIdEvent(BaseModel):
    type: Literal["user-message-id"] = "user-message-id"
    content: str


class TextEvent(BaseModel):
    """
    Assistant text delta from the outer model stream.

    message_id is the transient id of the assistant message being streamed;
    it goes out as the SSE id and is mapped to the stored id by a later
    message-annotation event.
    """

    type: Literal["text"] = "text"
    content: str
    message_id: str | None = None


class ToolCallEvent(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    content: ToolCallPart
    message_id: str | None = None


class ToolResultEvent(BaseModel):
    type: Literal["tool-result"] = "tool-result"
    content: ToolResultPart


class DocumentIdEvent(BaseModel):
    type: Literal["id"] = "id"
    content: str


class DocumentTitleEvent(BaseModel):
    type: Literal["title"] = "title"
    content: str


class ClearEvent(BaseModel):
    """Clears the document canvas; content is the title to show, if any."""

    type: Literal["clear"] = "clear"
    content: str = ""


class TextDeltaEvent(BaseModel):
    """Document draft delta from a nested model stream."""

    type: Literal["text-delta"] = "text-delta"
    content: str


class SuggestionEvent(BaseModel):
    type: Literal["suggestion"] = "suggestion"
    content: SuggestionRecord


class FinishEvent(BaseModel):
    """Ends a nested document stream."""

    type: Literal["finish"] = "finish"
    content: str = ""


class MessageAnnotation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message_id_from_server: str = Field(alias="messageIdFromServer")
    response_message_id: str | None = Field(None, alias="responseMessageId")


class MessageAnnotationEvent(BaseModel):
    """Maps a streamed assistant message to its persisted id."""

    type: Literal["message-annotation"] = "message-annotation"
    content: MessageAnnotation


class ErrorPayload(BaseModel):
    message: str


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    content: ErrorPayload


StreamEvent = Annotated[
    UserMessageIdEvent
    | TextEvent
    | ToolCallEvent
    | ToolResultEvent
    | DocumentIdEvent
    | DocumentTitleEvent
    | ClearEvent
    | TextDeltaEvent
    | SuggestionEvent
    | FinishEvent
    | MessageAnnotationEvent
    | ErrorEvent,
    Field(discriminator="type"),
]


def to_sse(event: StreamEvent) -> SSEEvent:
    """
    Format an event for the SSE response.

    Assistant text goes out as unnamed data with newlines escaped. Every
    other event is named after its type and carries its content as JSON.
    """
    if isinstance(event, TextEvent):
        return SSEEvent(data=event.content.replace("\n", "\\n"), id=event.message_id)
    content = event.model_dump(mode="json", by_alias=True)["content"]
    return SSEEvent(
        event=event.type,
        data=json.dumps(content),
        id=getattr(event, "message_id", None),
    )


class ChannelClosedError(Exception):
    """Raised when sending on a closed channel."""


_CLOSED = object()


class StreamChannel:
    """
    Bounded single-producer, single-consumer queue of stream events.

    `send` waits while the buffer is full. `close` is idempotent; after it
    the consumer drains what is buffered and then stops.
    """

    def __init__(self, max_size: int = 256):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: StreamEvent) -> None:
        if self._closed:
            raise ChannelClosedError(f"Cannot send {event.type} on a closed channel")
        await self._queue.put(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # The consumer stops once it has drained the full buffer
            pass

    async def receive(self) -> StreamEvent | None:
        """Next event, or None once the channel is closed and drained."""
        if self._closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    async def __aiter__(self) -> AsyncIterator[StreamEvent]:
        while (event := await self.receive()) is not None:
            yield event
