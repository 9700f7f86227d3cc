"""
TrackMyStartup - Financials Router

API endpoints for expense/revenue records and their aggregations.
"""

import uuid
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_startup_for_user, require_editor
from app.models.financial_record import FinancialRecordType
from app.models.startup import Startup
from app.schemas.financial import (
    AttachmentUrlResponse,
    FinancialRecordCreate,
    FinancialRecordResponse,
    FinancialRecordUpdate,
    FinancialsOverview,
    FinancialSummary,
    MonthlyFinancials,
    VerticalBreakdown,
)
from app.services.financial_service import FinancialService


router = APIRouter()


YEAR_QUERY_DESCRIPTION = "Calendar year, or 'all'"


# ===========================================
# OVERVIEW / AGGREGATIONS
# ===========================================

@router.get(
    "/{startup_id}/financials/overview",
    response_model=FinancialsOverview,
    summary="Financials view",
    description="Records, summary, monthly chart, vertical split and filter options in one call.",
)
async def get_financials_overview(
    year: str = Query("all", description=YEAR_QUERY_DESCRIPTION),
    entity: Optional[str] = Query(None, description="Entity filter, 'all' for none"),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_overview(startup.id, year=year, entity=entity)


@router.get("/{startup_id}/financials/summary", response_model=FinancialSummary)
async def get_financial_summary(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Funding, revenue, expenses and available funds across all time."""
    return await FinancialService(db).get_summary(startup.id)


@router.get("/{startup_id}/financials/monthly", response_model=List[MonthlyFinancials])
async def get_monthly_financials(
    year: str = Query("all", description=YEAR_QUERY_DESCRIPTION),
    entity: Optional[str] = Query(None),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_monthly_data(startup.id, year, entity)


@router.get("/{startup_id}/financials/verticals", response_model=VerticalBreakdown)
async def get_vertical_breakdown(
    year: str = Query("all", description=YEAR_QUERY_DESCRIPTION),
    entity: Optional[str] = Query(None),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_verticals_breakdown(startup.id, year, entity)


@router.get("/{startup_id}/financials/entities", response_model=List[str])
async def get_entities(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_entities(startup.id)


@router.get("/{startup_id}/financials/vertical-options", response_model=List[str])
async def get_vertical_options(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_verticals(startup.id)


@router.get("/{startup_id}/financials/funding-sources", response_model=List[str])
async def get_funding_sources(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_funding_sources(startup.id)


@router.get("/{startup_id}/financials/years", response_model=List[Union[int, str]])
async def get_year_options(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_year_options(startup.id)


# ===========================================
# RECORDS
# ===========================================

@router.get(
    "/{startup_id}/financials",
    response_model=List[FinancialRecordResponse],
    summary="List financial records",
)
async def list_records(
    entity: Optional[str] = Query(None, description="Entity filter, 'all' for none"),
    year: str = Query("all", description=YEAR_QUERY_DESCRIPTION),
    record_type: Optional[FinancialRecordType] = Query(None, description="expense or revenue"),
    vertical: Optional[str] = Query(None),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).list_records(
        startup.id,
        entity=entity,
        year=year,
        record_type=record_type,
        vertical=vertical,
    )


@router.post(
    "/{startup_id}/financials",
    response_model=FinancialRecordResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add financial record",
)
async def create_record(
    request: FinancialRecordCreate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).create_record(startup.id, request.model_dump())


@router.get("/{startup_id}/financials/{record_id}", response_model=FinancialRecordResponse)
async def get_record(
    record_id: uuid.UUID,
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).get_record(startup.id, record_id)


@router.patch("/{startup_id}/financials/{record_id}", response_model=FinancialRecordResponse)
async def update_record(
    record_id: uuid.UUID,
    request: FinancialRecordUpdate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).update_record(
        startup.id, record_id, request.model_dump(exclude_unset=True),
    )


@router.delete("/{startup_id}/financials/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(
    record_id: uuid.UUID,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    await FinancialService(db).delete_record(startup.id, record_id)


# ===========================================
# ATTACHMENTS
# ===========================================

@router.post(
    "/{startup_id}/financials/{record_id}/attachment",
    response_model=FinancialRecordResponse,
    summary="Upload attachment",
    description="Attach an invoice or receipt. Replaces any existing attachment.",
)
async def upload_attachment(
    record_id: uuid.UUID,
    file: UploadFile = File(..., description="Invoice, receipt or statement"),
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    content = await file.read()
    return await FinancialService(db).attach_file(
        startup.id, record_id, content, file.filename or "attachment", file.content_type,
    )


@router.delete("/{startup_id}/financials/{record_id}/attachment", response_model=FinancialRecordResponse)
async def delete_attachment(
    record_id: uuid.UUID,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await FinancialService(db).delete_attachment(startup.id, record_id)


@router.get("/{startup_id}/financials/{record_id}/attachment", response_model=AttachmentUrlResponse)
async def get_attachment_url(
    record_id: uuid.UUID,
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    service = FinancialService(db)
    record = await service.get_record(startup.id, record_id)
    return AttachmentUrlResponse(url=service.get_attachment_download_url(record))
