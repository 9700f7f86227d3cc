"""
TrackMyStartup - Cap Table Router

API endpoints for share structure and investment records.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_startup_for_user, require_editor
from app.models.startup import Startup
from app.schemas.cap_table import (
    CapTableResponse,
    EsopReservedSharesUpdate,
    InvestmentCreate,
    InvestmentResponse,
    PricePerShareUpdate,
    SharesResponse,
    TotalSharesUpdate,
    UploadResponse,
)
from app.services.cap_table_service import CapTableService
from app.services.startup_service import StartupService


router = APIRouter()


# ===========================================
# SHARES
# ===========================================

@router.get(
    "/{startup_id}/cap-table",
    response_model=CapTableResponse,
    summary="Cap table",
    description="Share counts, price per share (derived from the latest valuation when unset) and total funding.",
)
async def get_cap_table(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    service = CapTableService(db)
    return CapTableResponse(
        total_shares=await service.get_total_shares(startup.id),
        esop_reserved_shares=await service.get_esop_reserved_shares(startup.id),
        price_per_share=await service.resolve_price_per_share(startup.id),
        total_funding=await service.get_total_funding(startup),
        currency=await StartupService(db).get_currency(startup),
    )


@router.put("/{startup_id}/cap-table/esop-reserved-shares", response_model=SharesResponse)
async def update_esop_reserved_shares(
    request: EsopReservedSharesUpdate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await CapTableService(db).upsert_esop_reserved_shares(startup.id, request.esop_reserved_shares)


@router.put("/{startup_id}/cap-table/total-shares", response_model=SharesResponse)
async def update_total_shares(
    request: TotalSharesUpdate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await CapTableService(db).upsert_total_shares(startup.id, request.total_shares)


@router.put("/{startup_id}/cap-table/price-per-share", response_model=SharesResponse)
async def update_price_per_share(
    request: PricePerShareUpdate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await CapTableService(db).upsert_price_per_share(startup.id, request.price_per_share)


# ===========================================
# INVESTMENTS
# ===========================================

@router.get("/{startup_id}/investments", response_model=List[InvestmentResponse])
async def list_investments(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await CapTableService(db).list_investments(startup.id)


@router.post(
    "/{startup_id}/investments",
    response_model=InvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record investment",
)
async def add_investment(
    request: InvestmentCreate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await CapTableService(db).add_investment(startup.id, request.model_dump())


@router.post(
    "/{startup_id}/investments/proof",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload investment proof",
    description="Store a term sheet or transfer receipt; pass the returned url as proof_url.",
)
async def upload_investment_proof(
    file: UploadFile = File(...),
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    content = await file.read()
    return await CapTableService(db).upload_proof(
        startup.id, content, file.filename or "proof", file.content_type,
    )


@router.delete("/{startup_id}/investments/{investment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_investment(
    investment_id: uuid.UUID,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    await CapTableService(db).delete_investment(startup.id, investment_id)
