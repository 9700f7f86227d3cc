"""
TrackMyStartup - Startups Router

API endpoints for the startup profile and its subsidiaries.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_startup_for_user, require_editor
from app.models.startup import Startup
from app.schemas.cap_table import (
    StartupProfileResponse,
    StartupResponse,
    StartupUpdate,
    SubsidiaryCreate,
    SubsidiaryResponse,
)
from app.services.startup_service import StartupService


router = APIRouter()


@router.get(
    "/{startup_id}",
    response_model=StartupProfileResponse,
    summary="Startup profile",
    description="Profile, display currency and the entity list used by the employee and financial filters.",
)
async def get_startup_profile(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    service = StartupService(db)
    return StartupProfileResponse(
        startup=StartupResponse.model_validate(startup),
        display_currency=await service.get_currency(startup),
        entities=await service.get_entities(startup.id),
    )


@router.patch("/{startup_id}", response_model=StartupResponse)
async def update_startup_profile(
    request: StartupUpdate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await StartupService(db).update_profile(startup.id, request.model_dump(exclude_unset=True))


@router.get("/{startup_id}/subsidiaries", response_model=List[SubsidiaryResponse])
async def list_subsidiaries(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await StartupService(db).list_subsidiaries(startup.id)


@router.post(
    "/{startup_id}/subsidiaries",
    response_model=SubsidiaryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_subsidiary(
    request: SubsidiaryCreate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await StartupService(db).add_subsidiary(startup.id, request.country, request.name)
