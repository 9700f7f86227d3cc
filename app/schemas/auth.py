"""
TrackMyStartup - Authentication Schemas

Pydantic schemas for authentication requests and responses.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.user import UserRole
from app.services.auth_service import LoginDestination
from app.services.password_reset import ResetTokenKind


# ===========================================
# REQUEST SCHEMAS
# ===========================================

class UserRegisterRequest(BaseModel):
    """Sign-up request. Founders may name their startup straight away."""
    email: EmailStr
    password: str = Field(..., max_length=100)
    full_name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.STARTUP
    startup_name: Optional[str] = Field(None, max_length=255)
    government_id: Optional[str] = Field(None, max_length=255)
    country: Optional[str] = Field(None, max_length=100)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class LoginRequest(BaseModel):
    """Schema for login request."""
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    """Schema for token refresh request."""
    refresh_token: str


class SessionRestoreRequest(BaseModel):
    """Body of a silent session restore; the refresh token may also come from a cookie."""
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    """Schema for forgot password request."""
    email: EmailStr


class ResetLinkRequest(BaseModel):
    """
    A reset link to verify.

    Either pass the full `url` the user landed on, or the individual
    parameters taken from its query string or fragment.
    """
    url: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token: Optional[str] = None
    code: Optional[str] = None
    type: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    """Schema for password reset with a verified reset grant."""
    reset_grant: str
    new_password: str = Field(..., max_length=100)
    confirm_password: str = Field(..., max_length=100)


# ===========================================
# RESPONSE SCHEMAS
# ===========================================

class UserResponse(BaseModel):
    """Schema for user response."""
    id: UUID
    email: str
    full_name: str
    role: UserRole
    startup_name: Optional[str] = None
    government_id: Optional[str] = None
    currency: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """Schema for token response."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(BaseModel):
    """Tokens, the user and where the client should go next."""
    user: UserResponse
    tokens: TokenResponse
    destination: LoginDestination


class RegisterResponse(LoginResponse):
    startup_id: Optional[UUID] = None


class ResetLinkResponse(BaseModel):
    """A verified reset link: the grant to submit with the new password."""
    reset_grant: str
    email: str
    token_kind: ResetTokenKind
    expires_in: int


class MessageResponse(BaseModel):
    """Generic message response."""
    message: str
    success: bool = True
