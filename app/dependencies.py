"""
TrackMyStartup - FastAPI Dependencies

Shared dependencies for authentication, database sessions, and startup
access control.
"""

import uuid
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.models.startup import Startup
from app.models.user import User
from app.services.startup_service import StartupService
from app.utils.security import verify_access_token


# HTTP Bearer token security
security = HTTPBearer(auto_error=False)


def extract_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """
    Token from the Authorization header, else the access_token cookie.
    """
    if credentials:
        return credentials.credentials

    token = request.cookies.get("access_token")
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token or None


async def _load_user(token: Optional[str], db: AsyncSession) -> Optional[User]:
    payload = verify_access_token(token) if token else None
    if not payload or not payload.get("sub"):
        return None
    try:
        user_uuid = uuid.UUID(payload["sub"])
    except ValueError:
        return None
    return await db.get(User, user_uuid)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> User:
    """
    Get the current authenticated user from JWT token.

    Token can be provided via:
    1. Authorization: Bearer <token> header
    2. access_token cookie

    Raises:
        HTTPException: If token is invalid or user not found
    """
    token = extract_access_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await _load_user(token, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Get current user and verify they are active."""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )
    return current_user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
) -> Optional[User]:
    """The signed-in user when a valid token is present, else None."""
    user = await _load_user(extract_access_token(request, credentials), db)
    if user is None or not user.is_active:
        return None
    return user


async def get_startup_for_user(
    startup_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_async_session),
) -> Startup:
    """Resolve the `startup_id` path parameter for a user allowed to see it."""
    return await StartupService(db).get_startup_for_user(startup_id, current_user)


async def require_editor(
    startup: Startup = Depends(get_startup_for_user),
    current_user: User = Depends(get_current_active_user),
) -> Startup:
    """Same as get_startup_for_user, for routes that change the startup's data."""
    if not current_user.can_edit:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your role has read-only access to this startup",
        )
    return startup
