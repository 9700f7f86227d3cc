"""
TrackMyStartup - SQLAlchemy Models Package

This package contains all database models for the application.
"""

from app.models.base import BaseModel, TimestampMixin
from app.models.user import User, UserRole, EDITOR_ROLES
from app.models.startup import Startup, Subsidiary, PARENT_ENTITY
from app.models.cap_table import (
    StartupShares,
    InvestmentRecord,
    InvestorType,
    InvestmentType,
)
from app.models.employee import (
    Employee,
    SalaryIncrement,
    EmployeeLedgerEntry,
    AllocationType,
)
from app.models.financial_record import FinancialRecord, FinancialRecordType

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "User",
    "UserRole",
    "EDITOR_ROLES",
    "Startup",
    "Subsidiary",
    "PARENT_ENTITY",
    "StartupShares",
    "InvestmentRecord",
    "InvestorType",
    "InvestmentType",
    "Employee",
    "SalaryIncrement",
    "EmployeeLedgerEntry",
    "AllocationType",
    "FinancialRecord",
    "FinancialRecordType",
]
