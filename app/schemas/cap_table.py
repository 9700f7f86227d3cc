"""
TrackMyStartup - Cap Table Schemas

Pydantic schemas for share structure, investments and the startup profile.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.cap_table import InvestmentType, InvestorType


# ===========================================
# SHARES
# ===========================================

class EsopReservedSharesUpdate(BaseModel):
    esop_reserved_shares: Decimal


class TotalSharesUpdate(BaseModel):
    total_shares: Decimal


class PricePerShareUpdate(BaseModel):
    price_per_share: Decimal


class SharesResponse(BaseModel):
    startup_id: UUID
    total_shares: int
    esop_reserved_shares: int
    price_per_share: Decimal

    model_config = ConfigDict(from_attributes=True)


class CapTableResponse(BaseModel):
    total_shares: int
    esop_reserved_shares: int
    price_per_share: Decimal
    total_funding: Decimal
    currency: str


# ===========================================
# INVESTMENTS
# ===========================================

class InvestmentCreate(BaseModel):
    investment_date: date
    investor_type: InvestorType = InvestorType.ANGEL
    investment_type: InvestmentType = InvestmentType.EQUITY
    investor_name: str = Field(..., min_length=1, max_length=255)
    investor_code: Optional[str] = Field(None, max_length=50)
    amount: Decimal = Field(..., gt=0)
    equity_allocated: Decimal = Field(Decimal("0"), ge=0, le=100)
    pre_money_valuation: Decimal = Field(Decimal("0"), ge=0)
    post_money_valuation: Decimal = Field(Decimal("0"), ge=0)
    shares: int = Field(0, ge=0)
    price_per_share: Decimal = Field(Decimal("0"), ge=0)
    proof_url: Optional[str] = Field(None, max_length=1000)


class InvestmentResponse(BaseModel):
    id: UUID
    startup_id: UUID
    investment_date: date
    investor_type: InvestorType
    investment_type: InvestmentType
    investor_name: str
    investor_code: Optional[str] = None
    amount: Decimal
    equity_allocated: Decimal
    pre_money_valuation: Decimal
    post_money_valuation: Decimal
    shares: int
    price_per_share: Decimal
    proof_url: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UploadResponse(BaseModel):
    file_id: str
    url: str
    filename: str
    content_type: str
    size: int


# ===========================================
# STARTUP PROFILE
# ===========================================

class StartupUpdate(BaseModel):
    """Profile edit; only the fields sent are changed."""
    name: Optional[str] = Field(None, max_length=255)
    country: Optional[str] = Field(None, max_length=100)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    sector: Optional[str] = Field(None, max_length=100)
    registration_date: Optional[date] = None
    current_valuation: Optional[Decimal] = Field(None, ge=0)
    total_funding: Optional[Decimal] = Field(None, ge=0)
    price_per_share: Optional[Decimal] = Field(None, ge=0)


class StartupResponse(BaseModel):
    id: UUID
    user_id: Optional[UUID] = None
    name: Optional[str] = None
    country: Optional[str] = None
    currency: Optional[str] = None
    sector: Optional[str] = None
    registration_date: Optional[date] = None
    current_valuation: Decimal
    total_funding: Decimal
    price_per_share: Decimal

    model_config = ConfigDict(from_attributes=True)


class StartupProfileResponse(BaseModel):
    startup: StartupResponse
    display_currency: str
    entities: List[str]


class SubsidiaryCreate(BaseModel):
    country: str = Field(..., min_length=1, max_length=100)
    name: Optional[str] = Field(None, max_length=255)


class SubsidiaryResponse(BaseModel):
    id: UUID
    country: str
    name: Optional[str] = None
    entity_label: str

    model_config = ConfigDict(from_attributes=True)
