"""Base classes for tools the model can call during a chat turn."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError

from chanswer.ai.base import AIProvider, ToolSpec
from chanswer.ai.chat.events import StreamChannel, StreamEvent
from chanswer.ai.models import ChatModel
from chanswer.db.store import ChatStore
from chanswer.utils.logger import logger


class ToolResult(BaseModel):
    """
    Outcome of a tool execution as seen by the model.

    Failures are data, not exceptions: the model reads the error and decides
    what to tell the user.
    """

    success: bool
    data: dict[str, Any] = {}
    error: str | None = None

    @classmethod
    def ok(cls, **data: Any) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, **data: Any) -> "ToolResult":
        return cls(success=False, error=error, data=data)

    def to_output(self) -> dict[str, Any]:
        """Flatten to the object stored in the tool-result part."""
        output: dict[str, Any] = {"success": self.success, **self.data}
        if self.error is not None:
            output["error"] = self.error
        return output


@dataclass
class ToolContext:
    """What a tool may touch while it runs."""

    user_id: str
    model: ChatModel
    provider: AIProvider
    store: ChatStore
    channel: StreamChannel | None = None

    async def emit(self, event: StreamEvent) -> None:
        """Forward an event to the client, if this run has a stream."""
        if self.channel is not None:
            await self.channel.send(event)


class ChatTool(ABC):
    """
    A named function with a pydantic argument model.

    Subclasses implement `run`; callers use `execute`, which never raises
    for bad arguments or operational failures.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    args_model: ClassVar[type[BaseModel]]
    failure_message: ClassVar[str] = "Tool execution failed"

    @property
    def spec(self) -> ToolSpec:
        return ToolSpec(
            name=self.name,
            description=self.description,
            parameters=self.args_model.model_json_schema(by_alias=True),
        )

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        try:
            parsed = self.args_model.model_validate(args)
        except ValidationError as e:
            logger.warning(
                "[TOOL] Invalid arguments",
                tool_name=self.name,
                errors=e.errors(include_url=False, include_context=False),
            )
            return ToolResult.fail(f"Invalid arguments for {self.name}: {e.error_count()} error(s)")

        try:
            return await self.run(parsed, context)
        except Exception as e:
            logger.exception(
                "[TOOL] Execution failed",
                tool_name=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return ToolResult.fail(self.failure_message)

    @abstractmethod
    async def run(self, args: Any, context: ToolContext) -> ToolResult:
        pass
