"""FastAPI dependencies for the chat turn service."""

from chanswer.ai.chat.service import ChatTurnService
from chanswer.ai.models import DEFAULT_MODELS
from chanswer.ai.providers.factory import get_ai_provider
from chanswer.ai.tools.registry import build_default_registry
from chanswer.utils.logger import logger

_chat_service: ChatTurnService | None = None


def get_chat_service() -> ChatTurnService:
    """
    Get or create the chat service singleton.

    Returns:
        ChatTurnService: The chat service instance
    """
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatTurnService(
            provider=get_ai_provider(),
            tools=build_default_registry(),
            models=DEFAULT_MODELS,
        )
        logger.info("Initialized ChatTurnService", tools=list(_chat_service.tools.active))
    return _chat_service


def set_chat_service(service: ChatTurnService | None) -> None:
    """Replace the chat service singleton. Useful for testing."""
    global _chat_service
    _chat_service = service
