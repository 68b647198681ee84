"""OpenAI module for AI operations."""

from chanswer.ai.openai.config import OpenAISettings, get_openai_settings
from chanswer.ai.openai.exceptions import (
    OpenAIAuthenticationError,
    OpenAIContentGenerationError,
    OpenAIError,
    OpenAIStreamError,
)

__all__ = [
    "OpenAISettings",
    "get_openai_settings",
    "OpenAIError",
    "OpenAIAuthenticationError",
    "OpenAIContentGenerationError",
    "OpenAIStreamError",
]
