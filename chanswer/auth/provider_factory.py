"""
Auth provider factory.

Creates the auth provider named by AUTH_AUTH_PROVIDER and caches it.
"""

from chanswer.auth.config import get_auth_settings
from chanswer.auth.constants import AuthProviderType
from chanswer.auth.service import AuthProvider, StaticTokenAuthProvider

_auth_provider: AuthProvider | None = None


def create_auth_provider() -> AuthProvider:
    """
    Create an auth provider based on environment configuration.

    Raises:
        ValueError: If an unknown auth provider is specified.
    """
    settings = get_auth_settings()

    if settings.auth_provider == AuthProviderType.STATIC:
        return StaticTokenAuthProvider(settings.static_tokens)
    raise ValueError(f"Unknown auth provider: {settings.auth_provider}")


def get_auth_provider() -> AuthProvider:
    """Get a singleton instance of the auth provider."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = create_auth_provider()
    return _auth_provider


def set_auth_provider(provider: AuthProvider | None) -> None:
    """Replace the cached auth provider. Useful for testing."""
    global _auth_provider
    _auth_provider = provider
