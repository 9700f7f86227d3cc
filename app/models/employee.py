"""
TrackMyStartup - Employee Models

Employee register with ESOP terms:
- Employee: terms at hire, soft-closed by termination_date
- SalaryIncrement: later terms; the latest by effective_date is current
- EmployeeLedgerEntry: monthly projection of the terms in force, regenerable
"""

import uuid
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import (
    BigInteger, Date, ForeignKey, Numeric, String, Uuid,
    Enum as SQLEnum, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


# ===========================================
# ENUMS
# ===========================================

class AllocationType(str, Enum):
    """How an ESOP allocation is granted over a year."""
    ONE_TIME = "one-time"
    ANNUALLY = "annually"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"


class EsopTermsMixin:
    """Salary and ESOP columns shared by employees and their increments."""

    salary: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
        comment="Annual salary",
    )
    esop_allocation: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
        comment="ESOP value granted for the year",
    )
    allocation_type: Mapped[AllocationType] = mapped_column(
        SQLEnum(AllocationType), default=AllocationType.ONE_TIME, nullable=False,
    )
    esop_per_allocation: Mapped[Decimal] = mapped_column(
        Numeric(18, 2), default=Decimal("0"), nullable=False,
    )
    price_per_share: Mapped[Decimal] = mapped_column(
        Numeric(18, 6), default=Decimal("0"), nullable=False,
    )
    number_of_shares: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


# ===========================================
# EMPLOYEE
# ===========================================

class Employee(BaseModel, EsopTermsMixin):
    """Employee as hired."""

    __tablename__ = "employees"

    startup_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("startups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    joining_date: Mapped[date] = mapped_column(Date, nullable=False)
    entity: Mapped[str] = mapped_column(String(200), default="Parent Company", nullable=False)
    department: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    contract_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    termination_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    @property
    def is_terminated(self) -> bool:
        return self.termination_date is not None

    def is_active_between(self, start: date, end: date) -> bool:
        """Employed at any point in [start, end]."""
        if self.joining_date > end:
            return False
        return self.termination_date is None or self.termination_date >= start

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name={self.name})>"


class SalaryIncrement(BaseModel, EsopTermsMixin):
    """Revised salary/ESOP terms effective from a date."""

    __tablename__ = "employees_increments"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<SalaryIncrement(employee_id={self.employee_id}, effective_date={self.effective_date})>"


class EmployeeLedgerEntry(BaseModel):
    """Terms in force and ESOP granted for one ledger period."""

    __tablename__ = "employee_ledger"

    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    ledger_date: Mapped[date] = mapped_column(Date, nullable=False)

    salary: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"), nullable=False)
    esop_allocated: Mapped[Decimal] = mapped_column(Numeric(18, 2), default=Decimal("0"), nullable=False)
    price_per_share: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=Decimal("0"), nullable=False)
    number_of_shares: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "ledger_date", name="uq_employee_ledger_employee_date"),
    )
