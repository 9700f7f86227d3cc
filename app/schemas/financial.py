"""
TrackMyStartup - Financial Schemas

Pydantic schemas for financial record requests and responses.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.financial_record import FinancialRecordType


class FinancialRecordBase(BaseModel):
    record_type: FinancialRecordType
    record_date: date
    entity: Optional[str] = Field(None, max_length=200)
    description: str = Field(..., min_length=1)
    vertical: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., gt=0)
    funding_source: Optional[str] = Field(None, max_length=255)
    cogs: Optional[Decimal] = Field(None, ge=0)
    attachment_url: Optional[str] = Field(None, max_length=1000)


class FinancialRecordCreate(FinancialRecordBase):
    """Create an expense or revenue record."""
    pass


class FinancialRecordUpdate(BaseModel):
    """Edit request; only the fields sent are changed."""
    record_type: Optional[FinancialRecordType] = None
    record_date: Optional[date] = None
    entity: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    vertical: Optional[str] = Field(None, max_length=100)
    amount: Optional[Decimal] = Field(None, gt=0)
    funding_source: Optional[str] = Field(None, max_length=255)
    cogs: Optional[Decimal] = Field(None, ge=0)


class FinancialRecordResponse(BaseModel):
    id: UUID
    startup_id: UUID
    record_type: FinancialRecordType
    record_date: date
    entity: str
    description: str
    vertical: str
    amount: Decimal
    funding_source: Optional[str] = None
    cogs: Optional[Decimal] = None
    attachment_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FinancialSummary(BaseModel):
    total_funding: Decimal
    total_revenue: Decimal
    total_expenses: Decimal
    available_funds: Decimal


class MonthlyFinancials(BaseModel):
    month: str
    revenue: Decimal
    expenses: Decimal


class VerticalTotal(BaseModel):
    name: str
    value: Decimal


class VerticalBreakdown(BaseModel):
    revenue: List[VerticalTotal]
    expenses: List[VerticalTotal]


class AttachmentUrlResponse(BaseModel):
    url: Optional[str] = None


class FinancialsOverview(BaseModel):
    records: List[FinancialRecordResponse]
    summary: FinancialSummary
    monthly: List[MonthlyFinancials]
    verticals: VerticalBreakdown
    entities: List[str]
    vertical_options: List[str]
    funding_sources: List[str]
    year_options: List[Union[int, str]]
    chart_year: int
    currency: str
