from enum import Enum


class CookieNames(str, Enum):
    """Cookie names used in the authentication system."""

    SESSION_TOKEN = "session_token"


class AuthProviderType(str, Enum):
    """Configured authentication backends."""

    STATIC = "static"
