"""
TrackMyStartup - Financial Record Model

Expense and revenue line items of a startup.
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Date, ForeignKey, Numeric, String, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class FinancialRecordType(str, Enum):
    """Record discriminator."""
    EXPENSE = "expense"
    REVENUE = "revenue"


class FinancialRecord(BaseModel):
    """
    Expense or revenue record.

    Expenses carry a funding source; revenue carries COGS.
    """

    __tablename__ = "financial_records"

    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    record_type: Mapped[FinancialRecordType] = mapped_column(
        SQLEnum(FinancialRecordType), nullable=False, index=True,
    )
    record_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    entity: Mapped[str] = mapped_column(String(200), default="Parent Company", nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    vertical: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)

    # Expense only
    funding_source: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    # Revenue only
    cogs: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)

    attachment_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<FinancialRecord(id={self.id}, type={self.record_type}, "
            f"date={self.record_date}, amount={self.amount})>"
        )
