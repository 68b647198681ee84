"""Exceptions raised by the chat turn before or outside streaming."""


class ChatError(Exception):
    """Base exception for chat turn failures."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class UnauthorizedError(ChatError):
    """Raised when the caller is anonymous or does not own the chat."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ModelNotFoundError(ChatError):
    """Raised when the requested model id is not configured."""

    status_code = 404

    def __init__(self, model_id: str | None):
        self.model_id = model_id
        super().__init__("Model not found")


class NoUserMessageError(ChatError):
    """Raised when a turn carries no user message."""

    status_code = 400

    def __init__(self, message: str = "No user message found"):
        super().__init__(message)


class ChatNotFoundError(ChatError):
    """Raised when a chat id is missing or unknown."""

    status_code = 404

    def __init__(self, chat_id: str | None = None):
        self.chat_id = chat_id
        super().__init__("Not Found")


class ToolNotFoundError(ChatError):
    """Raised when a tool is unknown or cannot be invoked directly."""

    status_code = 404

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class TurnTimeoutError(ChatError):
    """Raised when a turn exceeds its wall-clock budget."""

    status_code = 504

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Chat turn timed out after {timeout_seconds:g} seconds")
