"""Base classes for AI provider abstraction."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, AsyncGenerator, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound=BaseModel)


class MessageRole(str, Enum):
    """Roles a message can carry in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class TextPart(BaseModel):
    """Plain text segment of a message."""

    type: Literal["text"] = "text"
    text: str


class ToolCallPart(BaseModel):
    """Tool invocation requested by the model, stored on assistant messages."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResultPart(BaseModel):
    """Result of a tool invocation, stored on tool messages."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str = Field(alias="toolCallId")
    tool_name: str = Field(alias="toolName")
    result: dict[str, Any] = Field(default_factory=dict)


ContentPart = Annotated[
    TextPart | ToolCallPart | ToolResultPart, Field(discriminator="type")
]


class ChatMessage(BaseModel):
    """Chat message in canonical form.

    Content is either plain text or an ordered list of parts. Assistant
    messages may hold text and tool-call parts, tool messages hold
    tool-result parts. The optional id is a transient reference used while a
    turn is in flight; persisted ids are assigned by the store.
    """

    id: str | None = None
    role: MessageRole
    content: str | list[ContentPart]

    def text(self) -> str:
        """Concatenate the text carried by this message."""
        if isinstance(self.content, str):
            return self.content
        return "".join(part.text for part in self.content if isinstance(part, TextPart))

    def parts(self) -> list[TextPart | ToolCallPart | ToolResultPart]:
        """Return content as a list of parts."""
        if isinstance(self.content, str):
            return [TextPart(text=self.content)] if self.content else []
        return list(self.content)

    def dump_content(self) -> str | list[dict[str, Any]]:
        """Serialize content to JSON-compatible data (camelCase part keys)."""
        if isinstance(self.content, str):
            return self.content
        return [part.model_dump(mode="json", by_alias=True) for part in self.content]


class ToolSpec(BaseModel):
    """Function tool definition exposed to a model."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )


class ToolCall(BaseModel):
    """Tool call emitted by a model while streaming."""

    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ContentGenerationResult(BaseModel):
    """Result from content generation."""

    text: str
    usage: dict[str, Any] | None = None
    finish_reason: str | None = None


class ChatStreamChunk(BaseModel):
    """Chunk from a streaming chat response.

    A chunk carries a text delta, tool calls the model has finished
    requesting, or both. The last chunk of a model step sets finish_reason:
    "stop" for a final answer, "tool-calls" when the step ended by requesting
    tools, "length" when the output budget ran out.
    """

    content: str = ""
    tool_calls: list[ToolCall] = []
    finish_reason: str | None = None


class SSEEvent(BaseModel):
    """Server-Sent Event wrapper for type-safe SSE formatting.

    Follows the W3C Server-Sent Events specification:
    https://html.spec.whatwg.org/multipage/server-sent-events.html
    """

    data: str
    event: str | None = None
    id: str | None = None
    retry: int | None = None

    def format(self) -> str:
        """Format as SSE protocol string.

        Returns:
            str: Properly formatted SSE event with trailing newlines
        """
        lines = []
        if self.event:
            lines.append(f"event: {self.event}")
        if self.id:
            lines.append(f"id: {self.id}")
        if self.retry is not None:
            lines.append(f"retry: {self.retry}")
        lines.append(f"data: {self.data}")
        lines.append("")  # Empty line as event delimiter
        return "\n".join(lines) + "\n"


class AIProvider(ABC):
    """Abstract base class for AI providers.

    Provides a common interface for different AI providers so the chat turn
    logic never depends on a vendor SDK.
    """

    @abstractmethod
    async def generate_content(
        self,
        prompt: str,
        instructions: str | None = None,
        **kwargs,
    ) -> ContentGenerationResult:
        """Generate text content.

        Args:
            prompt: Text prompt for generation
            instructions: Optional system prompt
            **kwargs: Provider-specific options (model, temperature, max_tokens, etc.)

        Returns:
            ContentGenerationResult: Generated content with metadata
        """
        pass

    @abstractmethod
    async def generate_structured_content(
        self,
        prompt: str,
        response_model: type[T],
        instructions: str | None = None,
        **kwargs,
    ) -> T:
        """Generate structured content using a Pydantic model.

        Args:
            prompt: Text prompt for generation
            response_model: Pydantic model class for structured output
            instructions: Optional system prompt
            **kwargs: Provider-specific options

        Returns:
            Instance of response_model with generated data
        """
        pass

    @abstractmethod
    def stream_chat(
        self,
        messages: list[ChatMessage],
        instructions: str | None = None,
        tools: list[ToolSpec] | None = None,
        **kwargs,
    ) -> AsyncGenerator[ChatStreamChunk, None]:
        """Stream one model step.

        The provider does not execute tools. Tool calls requested by the
        model are yielded on chunks and the step ends; the caller runs the
        tools and starts the next step with the results appended.

        Args:
            messages: Conversation so far, including system and tool messages
            instructions: Optional system prompt/instructions
            tools: Function tools the model may call, None or empty for none
            **kwargs: Provider-specific options (model, temperature, max_tokens, etc.)

        Yields:
            ChatStreamChunk: Stream chunks with text deltas and tool calls
        """
        pass
