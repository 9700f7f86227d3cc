"""
TrackMyStartup - Startup Models

Startup profile and its foreign subsidiaries.
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import Date, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


PARENT_ENTITY = "Parent Company"


class Startup(BaseModel):
    """
    Startup profile owned by a founder account.

    `name` and `country` are required for a complete registration.
    `current_valuation` and `total_funding` are profile-level fallbacks used
    when no investment records exist.
    """

    __tablename__ = "startups"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    sector: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    registration_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    current_valuation: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )
    total_funding: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )
    price_per_share: Mapped[Decimal] = mapped_column(
        Numeric(18, 6), default=Decimal("0"), nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Startup(id={self.id}, name={self.name})>"


class Subsidiary(BaseModel):
    """A subsidiary registered in another country."""

    __tablename__ = "subsidiaries"

    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    @property
    def entity_label(self) -> str:
        return f"{self.country} Subsidiary"
