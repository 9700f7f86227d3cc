"""
TrackMyStartup - Employees Router

API endpoints for the employee register, ESOP position and ledger.
"""

import uuid
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_async_session
from app.dependencies import get_startup_for_user, require_editor
from app.models.startup import Startup
from app.schemas.employee import (
    ContractUrlResponse,
    DepartmentBreakdown,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeSummary,
    EmployeeUpdate,
    EmployeeView,
    EmployeesOverview,
    EsopPositionResponse,
    EsopTermsResponse,
    IncrementCreate,
    IncrementResponse,
    LedgerEntryResponse,
    LedgerGenerateResponse,
    MonthlyCompensation,
    TerminateRequest,
)
from app.services.employee_service import EmployeeService


router = APIRouter()


# ===========================================
# OVERVIEW / ANALYTICS
# ===========================================

@router.get(
    "/{startup_id}/employees/overview",
    response_model=EmployeesOverview,
    summary="Employees view",
    description="Employees, summary, department split, monthly chart and ESOP position in one call.",
)
async def get_employees_overview(
    year: Optional[int] = Query(None, description="Chart year, defaults to the current year"),
    entity: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_overview(startup.id, year=year, entity=entity, department=department)


@router.get("/{startup_id}/employees/summary", response_model=EmployeeSummary)
async def get_employee_summary(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_summary(startup.id)


@router.get("/{startup_id}/employees/departments", response_model=List[DepartmentBreakdown])
async def get_department_breakdown(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_department_breakdown(startup.id)


@router.get("/{startup_id}/employees/monthly", response_model=List[MonthlyCompensation])
async def get_monthly_compensation(
    year: Optional[int] = Query(None, description="Chart year, defaults to the current year"),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_yearly_chart(startup.id, year or date.today().year)


@router.get("/{startup_id}/employees/esop", response_model=EsopPositionResponse)
async def get_esop_position(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    position = await EmployeeService(db).get_esop_position(startup)
    return position.to_dict()


@router.get("/{startup_id}/employees/years", response_model=List[int])
async def get_available_years(
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_available_years(startup.id)


# ===========================================
# EMPLOYEES
# ===========================================

@router.get(
    "/{startup_id}/employees",
    response_model=List[EmployeeView],
    summary="List employees",
)
async def list_employees(
    entity: Optional[str] = Query(None, description="Entity filter, 'all' for none"),
    department: Optional[str] = Query(None, description="Department filter, 'all' for none"),
    year: Optional[int] = Query(None, description="Joining year"),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).list_employee_views(
        startup.id, entity=entity, department=department, year=year,
    )


@router.post(
    "/{startup_id}/employees",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add employee",
)
async def add_employee(
    request: EmployeeCreate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).add_employee(startup.id, request.model_dump())


@router.get("/{startup_id}/employees/{employee_id}", response_model=EmployeeView)
async def get_employee(
    employee_id: uuid.UUID,
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_employee_view(startup.id, employee_id)


@router.patch(
    "/{startup_id}/employees/{employee_id}",
    response_model=EmployeeResponse,
    summary="Edit employee",
    description="Salary/ESOP changes update the latest increment when one exists.",
)
async def update_employee(
    employee_id: uuid.UUID,
    request: EmployeeUpdate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).update_employee(
        startup.id, employee_id, request.model_dump(exclude_unset=True),
    )


@router.delete(
    "/{startup_id}/employees/{employee_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_employee(
    employee_id: uuid.UUID,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    await EmployeeService(db).delete_employee(startup.id, employee_id)


@router.post(
    "/{startup_id}/employees/{employee_id}/increments",
    response_model=IncrementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add salary increment",
)
async def add_increment(
    employee_id: uuid.UUID,
    request: IncrementCreate,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).add_increment(startup.id, employee_id, request.model_dump())


@router.get(
    "/{startup_id}/employees/{employee_id}/history",
    response_model=List[EsopTermsResponse],
    summary="Term history",
)
async def get_history(
    employee_id: uuid.UUID,
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_history(startup.id, employee_id)


@router.post(
    "/{startup_id}/employees/{employee_id}/terminate",
    response_model=EmployeeResponse,
)
async def terminate_employee(
    employee_id: uuid.UUID,
    request: TerminateRequest,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).terminate_employee(startup.id, employee_id, request.termination_date)


# ===========================================
# CONTRACTS
# ===========================================

@router.post(
    "/{startup_id}/employees/{employee_id}/contract",
    response_model=EmployeeResponse,
    summary="Upload contract",
)
async def upload_contract(
    employee_id: uuid.UUID,
    file: UploadFile = File(..., description="Employment contract"),
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    content = await file.read()
    return await EmployeeService(db).attach_contract(
        startup.id, employee_id, content, file.filename or "contract", file.content_type,
    )


@router.get(
    "/{startup_id}/employees/{employee_id}/contract",
    response_model=ContractUrlResponse,
)
async def get_contract_url(
    employee_id: uuid.UUID,
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    service = EmployeeService(db)
    employee = await service.get_employee(startup.id, employee_id)
    return ContractUrlResponse(url=service.get_contract_download_url(employee))


# ===========================================
# LEDGER
# ===========================================

@router.get(
    "/{startup_id}/employees/{employee_id}/ledger",
    response_model=List[LedgerEntryResponse],
    summary="Employee ledger",
    description="Monthly ledger; generated on first view.",
)
async def get_ledger(
    employee_id: uuid.UUID,
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    startup: Startup = Depends(get_startup_for_user),
    db: AsyncSession = Depends(get_async_session),
):
    return await EmployeeService(db).get_ledger(startup.id, employee_id, start, end)


@router.post(
    "/{startup_id}/employees/{employee_id}/ledger/regenerate",
    response_model=LedgerGenerateResponse,
)
async def regenerate_ledger(
    employee_id: uuid.UUID,
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    count = await EmployeeService(db).regenerate_ledger(startup.id, employee_id)
    return LedgerGenerateResponse(entries_created=count)


@router.post(
    "/{startup_id}/employees/ledger/generate",
    response_model=LedgerGenerateResponse,
    summary="Fill ledger gaps for every employee",
)
async def generate_startup_ledger(
    end: Optional[date] = Query(None),
    startup: Startup = Depends(require_editor),
    db: AsyncSession = Depends(get_async_session),
):
    count = await EmployeeService(db).generate_startup_ledger(startup.id, end)
    return LedgerGenerateResponse(entries_created=count)
