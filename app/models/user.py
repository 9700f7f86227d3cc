"""
TrackMyStartup - User Model

Accounts that sign in to the platform. Founders own a startup profile;
other roles (investors, advisors, compliance professionals) get read access
to the startups they are attached to.
"""

from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, String, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class UserRole(str, Enum):
    """Platform roles."""
    STARTUP = "startup"
    ADMIN = "admin"
    INVESTOR = "investor"
    INVESTMENT_ADVISOR = "investment_advisor"
    CA = "ca"
    CS = "cs"
    FACILITATOR = "facilitator"


# Roles allowed to change a startup's employee and financial registers
EDITOR_ROLES = {UserRole.STARTUP, UserRole.ADMIN}


class User(BaseModel):
    """User account model."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole),
        default=UserRole.STARTUP,
        nullable=False,
    )

    # Identity document reference; registration is incomplete without it
    government_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Company name captured at sign-up, before a startup profile exists
    startup_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Preferred display currency (ISO 4217)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    @property
    def can_edit(self) -> bool:
        return self.role in EDITOR_ROLES

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
