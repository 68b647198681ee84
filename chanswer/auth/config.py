"""Authentication configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from chanswer.auth.constants import AuthProviderType


class AuthSettings(BaseSettings):
    """
    Authentication settings.

    AUTH_STATIC_TOKENS is a JSON object mapping bearer tokens to user ids,
    e.g. AUTH_STATIC_TOKENS='{"dev-token": "user-1"}'.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTH_", case_sensitive=False, extra="ignore"
    )

    auth_provider: AuthProviderType = Field(
        default=AuthProviderType.STATIC, description="Authentication backend"
    )
    static_tokens: dict[str, str] = Field(
        default_factory=dict, description="Bearer token to user id"
    )


_auth_settings: AuthSettings | None = None


def get_auth_settings() -> AuthSettings:
    global _auth_settings
    if _auth_settings is None:
        _auth_settings = AuthSettings()
    return _auth_settings


def set_auth_settings(settings: AuthSettings | None) -> None:
    """Replace the global auth settings. Useful for testing."""
    global _auth_settings
    _auth_settings = settings
