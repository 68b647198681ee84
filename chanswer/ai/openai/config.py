"""OpenAI API configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpenAISettings(BaseSettings):
    """Settings for OpenAI API integration.

    Attributes:
        api_key: OpenAI API key for authentication
        model_name: Fallback model when a call does not name one
        temperature: Default temperature for non-reasoning models (0.0-2.0)
        max_tokens: Default max output tokens for generation
        reasoning_effort: Default reasoning effort for reasoning models
        request_timeout: HTTP request timeout in seconds
        enable_tracing: Wrap the client with Braintrust tracing

    Note:
        For reasoning models (gpt-5, o1, o3), temperature is not supported.
        Use reasoning_effort instead.
    """

    model_config = SettingsConfigDict(
        env_prefix="OPENAI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = Field(
        ...,
        description="OpenAI API key",
    )
    model_name: str = Field(
        default="gpt-4o-mini",
        description="Fallback OpenAI model when none is requested",
    )
    temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="Default temperature for non-reasoning models (not used with reasoning models)",
    )
    max_tokens: int = Field(
        default=4096,
        gt=0,
        description="Default max output tokens for generation",
    )
    reasoning_effort: str = Field(
        default="low",
        description="Default reasoning effort for reasoning models (minimal, low, medium, high)",
    )
    request_timeout: int = Field(
        default=60,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    enable_tracing: bool = Field(
        default=False,
        description="Send prompts and completions to Braintrust",
    )
    tracing_project_name: str = Field(
        default="chanswer",
        description="Braintrust project receiving traces",
    )


@lru_cache
def get_openai_settings() -> OpenAISettings:
    """Get cached OpenAI settings instance.

    Returns:
        OpenAISettings: Cached settings instance
    """
    return OpenAISettings()
