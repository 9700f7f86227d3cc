"""
TrackMyStartup - Cap Table Models

Share structure and investment rounds of a startup.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, Date, ForeignKey, Numeric, String, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


# ===========================================
# ENUMS
# ===========================================

class InvestorType(str, Enum):
    """Who invested."""
    ANGEL = "Angel"
    VC_FIRM = "VC Firm"
    CORPORATE = "Corporate"
    GOVERNMENT = "Government"


class InvestmentType(str, Enum):
    """Instrument of the round."""
    EQUITY = "Equity"
    DEBT = "Debt"
    GRANT = "Grant"


# ===========================================
# MODELS
# ===========================================

class StartupShares(BaseModel):
    """Share counts and price-per-share of a startup (one row per startup)."""

    __tablename__ = "startup_shares"

    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    total_shares: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    esop_reserved_shares: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    price_per_share: Mapped[Decimal] = mapped_column(
        Numeric(18, 6), default=Decimal("0"), nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<StartupShares(startup_id={self.startup_id}, total={self.total_shares}, "
            f"esop_reserved={self.esop_reserved_shares})>"
        )


class InvestmentRecord(BaseModel):
    """An investment round received by the startup."""

    __tablename__ = "investment_records"

    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    investment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    investor_type: Mapped[InvestorType] = mapped_column(
        SQLEnum(InvestorType), default=InvestorType.ANGEL, nullable=False,
    )
    investment_type: Mapped[InvestmentType] = mapped_column(
        SQLEnum(InvestmentType), default=InvestmentType.EQUITY, nullable=False,
    )
    investor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    investor_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    equity_allocated: Mapped[Decimal] = mapped_column(
        Numeric(7, 4), default=Decimal("0"), nullable=False,
        comment="Percent of equity issued in the round",
    )
    pre_money_valuation: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )
    post_money_valuation: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )
    shares: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    price_per_share: Mapped[Decimal] = mapped_column(
        Numeric(18, 6), default=Decimal("0"), nullable=False,
    )
    proof_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<InvestmentRecord(id={self.id}, investor={self.investor_name}, amount={self.amount})>"
