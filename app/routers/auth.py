"""
TrackMyStartup - Authentication Router

API endpoints for sign-in, silent session restore and password recovery.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_async_session
from app.dependencies import (
    extract_access_token,
    get_current_active_user,
    get_optional_user,
    security,
)
from app.models.user import User
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshTokenRequest,
    RegisterResponse,
    ResetLinkRequest,
    ResetLinkResponse,
    ResetPasswordRequest,
    SessionRestoreRequest,
    TokenResponse,
    UserRegisterRequest,
    UserResponse,
)
from app.services.auth_service import AuthService, evaluate_login_destination
from app.services.password_reset import classify_reset_params, parse_reset_link


router = APIRouter()


def _set_auth_cookies(response: Response, tokens: dict) -> None:
    secure = settings.is_production
    response.set_cookie(
        "access_token",
        tokens["access_token"],
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=secure,
        samesite="lax",
    )
    response.set_cookie(
        "refresh_token",
        tokens["refresh_token"],
        max_age=settings.refresh_token_expire_days * 24 * 3600,
        httponly=True,
        secure=secure,
        samesite="lax",
    )


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
    description="Create an account. Founder accounts that give a startup name also get a startup record.",
)
async def register(
    request: UserRegisterRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
):
    auth_service = AuthService(db)
    user, startup = await auth_service.register_user(
        email=request.email,
        password=request.password,
        full_name=request.full_name,
        role=request.role,
        startup_name=request.startup_name,
        government_id=request.government_id,
        country=request.country,
        currency=request.currency,
    )
    tokens = auth_service.create_tokens(user)
    _set_auth_cookies(response, tokens)

    return RegisterResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**tokens),
        destination=evaluate_login_destination(user, startup),
        startup_id=startup.id if startup else None,
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login user",
    description="Authenticate with email and password. Unknown emails are told to register.",
)
async def login(
    request: LoginRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
):
    """Login with email and password."""
    auth_service = AuthService(db)
    user, tokens = await auth_service.login(request.email, request.password)
    _set_auth_cookies(response, tokens)

    return LoginResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**tokens),
        destination=await auth_service.get_login_destination(user),
    )


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh access token",
    description="Get a new access token using refresh token.",
)
async def refresh_token(
    request: RefreshTokenRequest,
    response: Response,
    db: AsyncSession = Depends(get_async_session),
):
    _, tokens = await AuthService(db).refresh_tokens(request.refresh_token)
    _set_auth_cookies(response, tokens)
    return TokenResponse(**tokens)


@router.post(
    "/session",
    response_model=LoginResponse,
    summary="Restore session",
    description="Restore a session on page load from the access token, else the refresh token (body or cookie).",
)
async def restore_session(
    http_request: Request,
    response: Response,
    request: Optional[SessionRestoreRequest] = None,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_session),
):
    refresh = (request.refresh_token if request else None) or http_request.cookies.get("refresh_token")

    auth_service = AuthService(db)
    user, tokens = await auth_service.restore_session(
        access_token=extract_access_token(http_request, credentials),
        refresh_token=refresh,
    )
    _set_auth_cookies(response, tokens)

    return LoginResponse(
        user=UserResponse.model_validate(user),
        tokens=TokenResponse(**tokens),
        destination=await auth_service.get_login_destination(user),
    )


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get current user",
)
async def get_me(current_user: User = Depends(get_current_active_user)):
    return current_user


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout user",
    description="Clear auth cookies. JWTs are stateless; clients discard their copies.",
)
async def logout(
    response: Response,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    AuthService(db).logout(current_user)
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return MessageResponse(message="Logged out successfully")


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request password reset",
    description="Send a password reset email to the user.",
)
async def forgot_password(
    request: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_async_session),
):
    """Always reports success so account existence is not revealed."""
    await AuthService(db).request_password_reset(request.email)
    return MessageResponse(
        message="If an account with that email exists, a password reset link has been sent.",
    )


@router.post(
    "/reset-password/verify",
    response_model=ResetLinkResponse,
    summary="Verify a reset link",
    description="Resolve the credentials carried by a reset link into a short-lived reset grant.",
)
async def verify_reset_link(
    request: ResetLinkRequest,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_async_session),
):
    params = parse_reset_link(request.url) if request.url else {}
    for field in ("access_token", "refresh_token", "token", "code", "type"):
        value = getattr(request, field)
        if value:
            params[field] = value

    credential = classify_reset_params(params)
    user, grant = await AuthService(db).resolve_reset_link(credential, current_user)

    return ResetLinkResponse(
        reset_grant=grant,
        email=user.email,
        token_kind=credential.kind,
        expires_in=settings.reset_grant_expire_minutes * 60,
    )


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password",
    description="Set a new password using a grant from /reset-password/verify.",
)
async def reset_password(
    request: ResetPasswordRequest,
    db: AsyncSession = Depends(get_async_session),
):
    await AuthService(db).reset_password(
        grant=request.reset_grant,
        new_password=request.new_password,
        confirm_password=request.confirm_password,
    )
    return MessageResponse(message="Password reset successfully")
