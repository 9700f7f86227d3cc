"""
TrackMyStartup - Employee Schemas

Pydantic schemas for employee, increment and ledger requests and responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.employee import AllocationType


# ===========================================
# TERMS
# ===========================================

class EsopTermsInput(BaseModel):
    """Salary and ESOP inputs; price and per-period amount are derived when omitted."""
    salary: Optional[Decimal] = Field(None, ge=0)
    esop_allocation: Optional[Decimal] = Field(None, ge=0)
    allocation_type: Optional[AllocationType] = None
    esop_per_allocation: Optional[Decimal] = Field(None, ge=0)
    price_per_share: Optional[Decimal] = Field(None, ge=0)


class EsopTermsResponse(BaseModel):
    effective_date: date
    salary: Decimal
    esop_allocation: Decimal
    allocation_type: AllocationType
    esop_per_allocation: Decimal
    price_per_share: Decimal

    model_config = ConfigDict(from_attributes=True)


# ===========================================
# EMPLOYEE
# ===========================================

class EmployeeCreate(EsopTermsInput):
    """Hire request."""
    name: str = Field(..., min_length=1, max_length=200)
    joining_date: date
    entity: Optional[str] = Field(None, max_length=200)
    department: Optional[str] = Field(None, max_length=100)
    contract_url: Optional[str] = Field(None, max_length=1000)


class EmployeeUpdate(EsopTermsInput):
    """Edit request; only the fields sent are changed."""
    name: Optional[str] = Field(None, max_length=200)
    joining_date: Optional[date] = None
    entity: Optional[str] = Field(None, max_length=200)
    department: Optional[str] = Field(None, max_length=100)
    contract_url: Optional[str] = Field(None, max_length=1000)


class IncrementCreate(EsopTermsInput):
    effective_date: date
    salary: Decimal = Field(..., ge=0)


class TerminateRequest(BaseModel):
    termination_date: date


class EmployeeResponse(BaseModel):
    """Employee as hired."""
    id: UUID
    startup_id: UUID
    name: str
    joining_date: date
    entity: str
    department: str
    salary: Decimal
    esop_allocation: Decimal
    allocation_type: AllocationType
    esop_per_allocation: Decimal
    price_per_share: Decimal
    number_of_shares: int
    contract_url: Optional[str] = None
    termination_date: Optional[date] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EmployeeView(BaseModel):
    """Employee with the terms currently in force."""
    employee: EmployeeResponse
    current_terms: EsopTermsResponse
    increment_count: int = 0


class IncrementResponse(BaseModel):
    id: UUID
    employee_id: UUID
    effective_date: date
    salary: Decimal
    esop_allocation: Decimal
    allocation_type: AllocationType
    esop_per_allocation: Decimal
    price_per_share: Decimal
    number_of_shares: int

    model_config = ConfigDict(from_attributes=True)


class LedgerEntryResponse(BaseModel):
    ledger_date: date
    salary: Decimal
    esop_allocated: Decimal
    price_per_share: Decimal
    number_of_shares: int

    model_config = ConfigDict(from_attributes=True)


class LedgerGenerateResponse(BaseModel):
    entries_created: int


class ContractUrlResponse(BaseModel):
    url: Optional[str] = None


# ===========================================
# ANALYTICS
# ===========================================

class EmployeeSummary(BaseModel):
    total_employees: int
    total_salary_expense: Decimal
    total_esop_allocated: Decimal
    avg_salary: Decimal
    avg_esop_allocation: Decimal


class DepartmentBreakdown(BaseModel):
    department: str
    employee_count: int
    total_salary: Decimal
    total_esop: Decimal


class MonthlyCompensation(BaseModel):
    month: str
    salary: Decimal
    esop: Decimal
    cumulative_esop: Decimal


class EsopPositionResponse(BaseModel):
    """Reserved pool against shares granted through the ledger."""
    reserved_shares: int
    allocated_shares: int
    price_per_share: Decimal
    reserved_value: Decimal
    allocated_value: Decimal
    available_value: Decimal
    esop_percentage: str
    is_over_allocated: bool


class EmployeesOverview(BaseModel):
    employees: List[EmployeeView]
    summary: EmployeeSummary
    departments: List[DepartmentBreakdown]
    monthly_chart: List[MonthlyCompensation]
    monthly_salary_expense: Decimal
    esop: EsopPositionResponse
    price_per_share: Decimal
    available_years: List[int]
    entities: List[str]
    department_options: List[str]
    currency: str

