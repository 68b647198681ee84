"""Authentication providers."""

import secrets
from abc import ABC, abstractmethod

from chanswer.auth import schemas
from chanswer.utils.logger import logger


class AuthProvider(ABC):
    """Abstract interface for authentication providers."""

    @abstractmethod
    async def get_session(self, access_token: str) -> schemas.Session | None:
        """Get session information from access token."""
        pass


class StaticTokenAuthProvider(AuthProvider):
    """Resolves bearer tokens against a fixed token table."""

    def __init__(self, tokens: dict[str, str]):
        """
        Args:
            tokens: Mapping of access token to user id
        """
        self._tokens = dict(tokens)
        if not self._tokens:
            logger.warning("[AUTH] No static tokens configured; every request is anonymous")

    async def get_session(self, access_token: str) -> schemas.Session | None:
        # Compare against every token so lookup time does not depend on the match
        user_id = None
        for token, candidate in self._tokens.items():
            if secrets.compare_digest(token.encode(), access_token.encode()):
                user_id = candidate

        if user_id is None:
            logger.info("[AUTH] Rejected unknown token")
            return None
        return schemas.Session(
            user=schemas.User(id=user_id),
            access_token=access_token,
        )
