"""
Authentication dependencies.

Tokens are read from the session cookie first, then from an
Authorization: Bearer header.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from chanswer.auth import schemas
from chanswer.auth.constants import CookieNames
from chanswer.auth.provider_factory import get_auth_provider
from chanswer.auth.service import AuthProvider

security = HTTPBearer(auto_error=False)


async def get_auth_provider_dependency() -> AuthProvider:
    """Dependency to get the configured auth provider."""
    try:
        return get_auth_provider()
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to initialize auth provider: {str(e)}",
        ) from e


def _read_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    session_token = request.cookies.get(CookieNames.SESSION_TOKEN.value)
    if not session_token and credentials:
        session_token = credentials.credentials
    return session_token or None


async def get_current_session(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_provider: AuthProvider = Depends(get_auth_provider_dependency),
) -> schemas.Session:
    """
    Get the current user session.

    Raises:
        HTTPException: 401 if no token is given or it is not recognized
    """
    session_token = _read_token(request, credentials)
    if not session_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token provided",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = await auth_provider.get_session(session_token)
    if not session or not session.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


async def get_current_user(
    session: schemas.Session = Depends(get_current_session),
) -> schemas.User:
    """Get the authenticated user, or fail with 401."""
    return session.user


async def get_current_user_optional(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    auth_provider: AuthProvider = Depends(get_auth_provider_dependency),
) -> schemas.User | None:
    """
    Get the current user, or None if not authenticated.

    Used where the handler itself decides how to answer anonymous callers.
    """
    session_token = _read_token(request, credentials)
    if not session_token:
        return None

    session = await auth_provider.get_session(session_token)
    return session.user if session else None
