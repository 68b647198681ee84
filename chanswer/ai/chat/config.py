"""Chat turn configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChatSettings(BaseSettings):
    """Limits applied to every chat turn."""

    model_config = SettingsConfigDict(
        env_prefix="CHAT_", case_sensitive=False, extra="ignore"
    )

    max_steps: int = Field(default=5, ge=1, description="Model steps per turn")
    turn_timeout_seconds: float = Field(
        default=60.0, gt=0, description="Wall-clock budget for a whole turn"
    )
    heartbeat_interval_seconds: float = Field(
        default=20.0, gt=0, description="Idle time before a heartbeat event is sent"
    )
    channel_max_size: int = Field(
        default=256, ge=1, description="Events buffered before the producer waits"
    )
    title_max_length: int = Field(default=80, ge=1)


_chat_settings: ChatSettings | None = None


def get_chat_settings() -> ChatSettings:
    global _chat_settings
    if _chat_settings is None:
        _chat_settings = ChatSettings()
    return _chat_settings


def set_chat_settings(settings: ChatSettings | None) -> None:
    """Replace the global chat settings. Useful for testing."""
    global _chat_settings
    _chat_settings = settings
