"""
Authentication Dependencies

FastAPI dependencies that resolve the signed-in user.

Dependency Hierarchy:
=====================
    get_session_token()   ← Session cookie, else Authorization: Bearer
           │
           ▼
    get_optional_user()   ← Decode JWT, load the User (None when signed out)
           │
           ▼
    get_current_user()    ← Same, but 401 when signed out

Type Aliases:
=============
    CurrentUser   - Signed-in User (401 otherwise)
    OptionalUser  - User or None

Usage:
======
    from cliqstr.api.dependencies import CurrentUser

    @router.get("/auth/status")
    async def status(current_user: CurrentUser):
        return {"email": current_user.email}
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from cliqstr.api.dependencies.database import DbSession
from cliqstr.config.settings import settings
from cliqstr.shared.core.exceptions import AuthenticationError
from cliqstr.shared.models.user import User
from cliqstr.shared.repositories import UserRepository
from cliqstr.shared.utils.security import SecurityUtils


# Bearer tokens are optional: browsers send the session cookie instead
security = HTTPBearer(auto_error=False)


async def get_session_token(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)] = None,
) -> Optional[str]:
    """Raw session token from the cookie or the Authorization header."""
    cookie = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if cookie:
        return cookie
    if credentials:
        return credentials.credentials
    return None


async def get_optional_user(
    db: DbSession,
    token: Annotated[Optional[str], Depends(get_session_token)],
) -> Optional[User]:
    """
    Resolve the session to a User.

    Returns:
        The user, or None when no session was presented

    Raises:
        AuthenticationError: Token present but invalid, expired, or for a deleted user
    """
    if not token:
        return None

    try:
        payload = SecurityUtils.decode_access_token(token, settings.SECRET_KEY, settings.JWT_ALGORITHM)
    except ValueError as e:
        raise AuthenticationError(str(e)) from e

    user_id = payload.get("user_id")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    try:
        user = await UserRepository(db).get(UUID(user_id))
    except ValueError as e:
        raise AuthenticationError("Invalid token payload") from e

    if user is None or user.is_deleted:
        raise AuthenticationError("Session is no longer valid")
    return user


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)],
) -> User:
    """
    Signed-in user for protected routes.

    Raises:
        AuthenticationError: No session
    """
    if user is None:
        raise AuthenticationError("Please sign in to continue")
    return user


# ═══════════════════════════════════════════════════════════════════════════════
# TYPE ALIASES
# ═══════════════════════════════════════════════════════════════════════════════

CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
