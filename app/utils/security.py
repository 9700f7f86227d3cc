"""
TrackMyStartup - Security Utilities

Password hashing, JWT token management, and password rules.
"""

from datetime import datetime, timedelta
from typing import List, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import settings


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Token "type" claims
ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"
PASSWORD_RESET_TOKEN = "password_reset"
RESET_GRANT_TOKEN = "reset_grant"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storing."""
    return pwd_context.hash(password)


def password_rule_violations(password: str) -> List[str]:
    """
    Check a new password against the sign-up rules.

    Returns:
        Human-readable messages, empty when the password is acceptable
    """
    problems = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters long")
    if not any(c.islower() for c in password):
        problems.append("Password must contain at least one lowercase letter")
    if not any(c.isupper() for c in password):
        problems.append("Password must contain at least one uppercase letter")
    if not any(c.isdigit() for c in password):
        problems.append("Password must contain at least one number")
    return problems


def _encode(data: dict, token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode.update({"exp": datetime.utcnow() + expires_delta, "type": token_type})
    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_access_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: Dictionary containing token payload
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    return _encode(
        data,
        ACCESS_TOKEN,
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT refresh token."""
    return _encode(
        data,
        REFRESH_TOKEN,
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def create_password_reset_token(
    data: dict,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create the recovery token embedded in reset links.

    Args:
        data: Payload, should carry sub and email
        expires_delta: Optional custom expiration time (default from settings)
    """
    return _encode(
        data,
        PASSWORD_RESET_TOKEN,
        expires_delta or timedelta(minutes=settings.password_reset_expire_minutes),
    )


def create_reset_grant(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create the short-lived grant issued once a reset link has been resolved."""
    return _encode(
        data,
        RESET_GRANT_TOKEN,
        expires_delta or timedelta(minutes=settings.reset_grant_expire_minutes),
    )


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and verify a JWT token.

    Returns:
        Token payload dict or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
        return payload
    except JWTError:
        return None


def _verify(token: str, token_type: str) -> Optional[dict]:
    payload = decode_token(token)
    if payload and payload.get("type") == token_type:
        return payload
    return None


def verify_access_token(token: str) -> Optional[dict]:
    """Verify an access token and return payload, or None if invalid."""
    return _verify(token, ACCESS_TOKEN)


def verify_refresh_token(token: str) -> Optional[dict]:
    """Verify a refresh token and return payload, or None if invalid."""
    return _verify(token, REFRESH_TOKEN)


def verify_password_reset_token(token: str) -> Optional[dict]:
    """Verify a recovery token and return payload, or None if invalid."""
    return _verify(token, PASSWORD_RESET_TOKEN)


def verify_reset_grant(token: str) -> Optional[dict]:
    """Verify a reset grant and return payload, or None if invalid."""
    return _verify(token, RESET_GRANT_TOKEN)
