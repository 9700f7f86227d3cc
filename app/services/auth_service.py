"""
TrackMyStartup - Authentication Service

Business logic for sign-in, session restoration, post-login routing and
password recovery.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.startup import Startup
from app.models.user import User, UserRole
from app.services.auth_events import AuthEvent, AuthEventBroker, auth_events
from app.services.email_service import EmailService, email_service
from app.services.password_reset import ResetCredential, ResetTokenKind
from app.utils.error_handling import (
    AccountNotFoundException,
    AuthenticationException,
    ConflictException,
    ErrorCode,
    InvalidResetLinkException,
    LoginTimeoutException,
    TokenInvalidException,
    ValidationException,
)
from app.utils.security import (
    create_access_token,
    create_password_reset_token,
    create_refresh_token,
    create_reset_grant,
    get_password_hash,
    password_rule_violations,
    verify_access_token,
    verify_password,
    verify_password_reset_token,
    verify_refresh_token,
    verify_reset_grant,
)

logger = logging.getLogger(__name__)


# Roles anyone may sign up for; admins are provisioned separately
SELF_SERVICE_ROLES = frozenset(role for role in UserRole if role != UserRole.ADMIN)


class LoginDestination(str, Enum):
    """Where a signed-in user is sent."""
    DASHBOARD = "dashboard"
    COMPLETE_REGISTRATION = "complete-registration"


def evaluate_login_destination(user: Optional[User], startup: Optional[Startup]) -> LoginDestination:
    """
    Decide whether the user's registration is complete.

    Every account needs a government ID on file. Founder accounts also need
    a startup with a name and country, unless a startup name was captured
    at sign-up (the profile is then finished from the dashboard).
    """
    if user is None or not user.government_id:
        return LoginDestination.COMPLETE_REGISTRATION

    if user.role == UserRole.STARTUP:
        if startup is None or not startup.name or not startup.country:
            if user.startup_name:
                return LoginDestination.DASHBOARD
            return LoginDestination.COMPLETE_REGISTRATION

    return LoginDestination.DASHBOARD


def ensure_password_rules(new_password: str, confirm_password: Optional[str] = None) -> None:
    """Raise ValidationException unless the new password is acceptable."""
    if confirm_password is not None and new_password != confirm_password:
        raise ValidationException("Passwords do not match", field="confirm_password")

    problems = password_rule_violations(new_password)
    if problems:
        raise ValidationException(
            problems[0],
            field="new_password",
            details={"errors": problems},
        )


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        db: AsyncSession,
        events: Optional[AuthEventBroker] = None,
        mailer: Optional[EmailService] = None,
    ):
        self.db = db
        self.events = events or auth_events
        self.mailer = mailer or email_service

    # ===========================================
    # USERS
    # ===========================================

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email address."""
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_user_startup(self, user: User) -> Optional[Startup]:
        """The founder's own startup, oldest first."""
        result = await self.db.execute(
            select(Startup)
            .where(Startup.user_id == user.id)
            .order_by(Startup.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def register_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role: UserRole = UserRole.STARTUP,
        startup_name: Optional[str] = None,
        government_id: Optional[str] = None,
        country: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> Tuple[User, Optional[Startup]]:
        """
        Create an account; founders also get a startup record.

        Returns:
            Tuple of (User, Startup or None)
        """
        if role not in SELF_SERVICE_ROLES:
            raise ValidationException(
                "Admin accounts cannot be created through sign-up", field="role",
            )
        if await self.get_user_by_email(email):
            raise ConflictException("Email already registered", resource_type="User")
        ensure_password_rules(password)

        user = User(
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=role,
            startup_name=startup_name,
            government_id=government_id,
            currency=currency,
            is_active=True,
        )
        self.db.add(user)
        await self.db.flush()

        startup = None
        if role == UserRole.STARTUP and startup_name:
            startup = Startup(
                user_id=user.id,
                name=startup_name,
                country=country,
                currency=currency,
            )
            self.db.add(startup)

        await self.db.commit()
        await self.db.refresh(user)
        if startup is not None:
            await self.db.refresh(startup)

        logger.info(f"Registered {role.value} account {user.email}")
        return user, startup

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User if authentication successful, None otherwise
        """
        user = await self.get_user_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            return None
        return user

    # ===========================================
    # SESSIONS
    # ===========================================

    def create_tokens(self, user: User) -> dict:
        """
        Create access and refresh tokens for user.

        Returns:
            Dictionary with access_token, refresh_token, token_type, expires_in
        """
        token_data = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
        }
        return {
            "access_token": create_access_token(token_data),
            "refresh_token": create_refresh_token(token_data),
            "token_type": "bearer",
            "expires_in": settings.access_token_expire_minutes * 60,
        }

    async def login(self, email: str, password: str) -> Tuple[User, dict]:
        """
        Sign in, bounded by the configured login timeout.

        Raises:
            AccountNotFoundException: no account for the email
            AuthenticationException: wrong password or disabled account
            LoginTimeoutException: sign-in did not finish in time
        """
        try:
            return await asyncio.wait_for(
                self._login(email, password),
                timeout=settings.login_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Login timed out for {email}")
            raise LoginTimeoutException(settings.login_timeout_seconds)

    async def _login(self, email: str, password: str) -> Tuple[User, dict]:
        user = await self.get_user_by_email(email)
        if user is None:
            raise AccountNotFoundException(email.strip().lower())

        if not verify_password(password, user.hashed_password):
            logger.info(f"Failed login for {user.email}")
            raise AuthenticationException("Invalid email or password")

        if not user.is_active:
            raise AuthenticationException("Account is disabled", code=ErrorCode.ACCOUNT_DISABLED)

        tokens = self.create_tokens(user)
        self.events.publish(AuthEvent.SIGNED_IN, {"user_id": str(user.id), "email": user.email})
        return user, tokens

    async def _user_from_payload(self, payload: Optional[dict]) -> Optional[User]:
        if not payload or not payload.get("sub"):
            return None
        try:
            user = await self.get_user_by_id(uuid.UUID(payload["sub"]))
        except (ValueError, TypeError):
            return None
        if user is None or not user.is_active:
            return None
        return user

    async def get_current_user_from_token(self, token: str) -> Optional[User]:
        """
        Get the current user from an access token.

        Returns:
            User object if token is valid and user exists, None otherwise
        """
        return await self._user_from_payload(verify_access_token(token))

    async def refresh_tokens(self, refresh_token: str) -> Tuple[User, dict]:
        user = await self._user_from_payload(verify_refresh_token(refresh_token))
        if user is None:
            raise TokenInvalidException("Invalid or expired refresh token")

        self.events.publish(AuthEvent.TOKEN_REFRESHED, {"user_id": str(user.id)})
        return user, self.create_tokens(user)

    async def restore_session(
        self,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
    ) -> Tuple[User, dict]:
        """
        Restore a session silently on page load.

        A valid access token restores the session as-is; otherwise the
        refresh token is exchanged. Fresh tokens are issued either way.
        """
        if access_token:
            user = await self.get_current_user_from_token(access_token)
            if user is not None:
                self.events.publish(AuthEvent.INITIAL_SESSION, {"user_id": str(user.id)})
                return user, self.create_tokens(user)

        if refresh_token:
            return await self.refresh_tokens(refresh_token)

        raise TokenInvalidException("No active session")

    def logout(self, user: User) -> None:
        self.events.publish(AuthEvent.SIGNED_OUT, {"user_id": str(user.id)})

    async def get_login_destination(self, user: User) -> LoginDestination:
        startup = await self.get_user_startup(user)
        return evaluate_login_destination(user, startup)

    # ===========================================
    # PASSWORD RECOVERY
    # ===========================================

    def create_password_reset_token(self, user: User) -> str:
        """Recovery token embedded in the reset link."""
        return create_password_reset_token({"sub": str(user.id), "email": user.email})

    def build_reset_url(self, token: str) -> str:
        return f"{settings.base_url.rstrip('/')}/reset-password?type=recovery&token={token}"

    async def request_password_reset(self, email: str) -> bool:
        """
        Email a reset link when the account exists.

        Returns:
            Whether a link was sent. Callers must not reveal this to the client.
        """
        user = await self.get_user_by_email(email)
        if user is None or not user.is_active:
            logger.info(f"Password reset requested for unknown email {email}")
            return False

        token = self.create_password_reset_token(user)
        return await self.mailer.send_password_reset(user.email, self.build_reset_url(token))

    async def _user_for_credential(
        self,
        credential: ResetCredential,
        current_user: Optional[User],
    ) -> Optional[User]:
        if credential.kind == ResetTokenKind.SESSION_PAIR:
            user = await self._user_from_payload(verify_access_token(credential.access_token))
            if user is None:
                user = await self._user_from_payload(verify_refresh_token(credential.refresh_token))
            return user

        if credential.kind == ResetTokenKind.RECOVERY_TOKEN:
            return await self._user_from_payload(verify_password_reset_token(credential.token))

        if credential.kind == ResetTokenKind.AUTH_CODE:
            return await self._user_from_payload(verify_password_reset_token(credential.code))

        return current_user

    async def resolve_reset_link(
        self,
        credential: ResetCredential,
        current_user: Optional[User] = None,
    ) -> Tuple[User, str]:
        """
        Verify a reset link and issue a short-lived reset grant.

        Raises:
            InvalidResetLinkException: the credential does not identify a user
        """
        user = await self._user_for_credential(credential, current_user)
        if user is None:
            logger.info(f"Reset link rejected ({credential.kind.value})")
            raise InvalidResetLinkException()

        grant = create_reset_grant({
            "sub": str(user.id),
            "email": user.email,
            "via": credential.kind.value,
        })
        self.events.publish(
            AuthEvent.PASSWORD_RECOVERY,
            {"user_id": str(user.id), "via": credential.kind.value},
        )
        return user, grant

    async def reset_password(
        self,
        grant: str,
        new_password: str,
        confirm_password: str,
    ) -> User:
        """Complete a reset with a grant from resolve_reset_link."""
        ensure_password_rules(new_password, confirm_password)

        user = await self._user_from_payload(verify_reset_grant(grant))
        if user is None:
            raise InvalidResetLinkException()

        user.hashed_password = get_password_hash(new_password)
        await self.db.commit()

        self.events.publish(AuthEvent.USER_UPDATED, {"user_id": str(user.id)})
        logger.info(f"Password reset completed for {user.email}")
        return user
