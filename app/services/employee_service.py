"""
TrackMyStartup - Employee Service

Employee register with ESOP terms.

Features:
- Hire, edit, increment and terminate with date rules and the ESOP allocation guard
- Term history (hire terms then increments) and the monthly ledger projected from it
- Summary, department and monthly compensation rollups for the employees view
"""

import logging
import uuid
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import (
    AllocationType,
    Employee,
    EmployeeLedgerEntry,
    SalaryIncrement,
)
from app.models.startup import PARENT_ENTITY, Startup
from app.services.cap_table_service import CapTableService
from app.services.esop_calculator import (
    CENTS,
    ZERO,
    EsopPosition,
    calculate_number_of_shares,
    check_allocation,
    monthly_recurring_esop,
    per_period_allocation,
    to_decimal,
)
from app.services.file_storage_service import FileCategory, FileStorageService, file_storage_service
from app.services.financial_aggregation import ALL, MONTH_LABELS
from app.services.ledger_builder import (
    EsopTerms,
    build_ledger,
    month_end,
    superseded_one_time_grants,
    terms_in_force,
)
from app.services.startup_service import StartupService
from app.utils.date_validation import (
    validate_increment_date,
    validate_joining_date,
    validate_termination_date,
)
from app.utils.error_handling import (
    EmployeeNotFoundException,
    InvalidDateException,
    ValidationException,
    validate_amount,
)

logger = logging.getLogger(__name__)


TERM_FIELDS = ("salary", "esop_allocation", "allocation_type", "esop_per_allocation", "price_per_share")


def employee_history(employee: Employee, increments: Iterable[SalaryIncrement]) -> List[EsopTerms]:
    """Hire terms followed by increments, in effective-date order."""
    history = [EsopTerms.from_record(employee, effective_date=employee.joining_date)]
    history.extend(EsopTerms.from_record(inc) for inc in increments)
    return sorted(history, key=lambda t: t.effective_date)


def current_terms(employee: Employee, increments: Sequence[SalaryIncrement]) -> EsopTerms:
    """Terms of the latest increment, else the hire terms."""
    return employee_history(employee, increments)[-1]


def monthly_esop_portion(terms: EsopTerms, year: int, month: int) -> Decimal:
    """ESOP shown for a month of the yearly compensation chart."""
    if terms.allocation_type == AllocationType.MONTHLY:
        return terms.esop_per_allocation
    if terms.allocation_type == AllocationType.QUARTERLY:
        return terms.esop_per_allocation / 3
    if terms.allocation_type == AllocationType.ANNUALLY:
        return terms.esop_per_allocation / 12
    effective = terms.effective_date
    if effective.year == year and effective.month == month:
        return terms.esop_allocation
    return ZERO


def yearly_compensation(
    employees: Iterable[Employee],
    increments_by_employee: Dict[uuid.UUID, List[SalaryIncrement]],
    year: int,
) -> List[Dict[str, Any]]:
    """
    Salary and ESOP per month of `year`.

    An employee counts in a month when they joined by its last day and were
    not terminated before its first day. ESOP is also returned as a running
    total over the year.
    """
    salary = [ZERO] * 12
    esop = [ZERO] * 12

    for employee in employees:
        history = employee_history(employee, increments_by_employee.get(employee.id, []))
        for idx in range(12):
            start = date(year, idx + 1, 1)
            end = month_end(start)
            if not employee.is_active_between(start, end):
                continue
            terms = terms_in_force(history, end)
            salary[idx] += terms.salary / 12
            esop[idx] += monthly_esop_portion(terms, year, idx + 1)
            esop[idx] += sum((t.esop_allocation for t in superseded_one_time_grants(history, start)), ZERO)

    chart = []
    cumulative = ZERO
    for idx, label in enumerate(MONTH_LABELS):
        cumulative += esop[idx]
        chart.append({
            "month": label,
            "salary": salary[idx].quantize(CENTS),
            "esop": esop[idx].quantize(CENTS),
            "cumulative_esop": cumulative.quantize(CENTS),
        })
    return chart


class EmployeeService:
    """Service for the employee register."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorageService] = None):
        self.db = db
        self.cap_table = CapTableService(db)
        self.startups = StartupService(db)
        self.storage = storage or file_storage_service

    # ===========================================
    # QUERIES
    # ===========================================

    async def get_employee(self, startup_id: uuid.UUID, employee_id: uuid.UUID) -> Employee:
        result = await self.db.execute(
            select(Employee).where(
                Employee.id == employee_id,
                Employee.startup_id == startup_id,
            )
        )
        employee = result.scalar_one_or_none()
        if not employee:
            raise EmployeeNotFoundException(employee_id)
        return employee

    async def list_employees(
        self,
        startup_id: uuid.UUID,
        entity: Optional[str] = None,
        department: Optional[str] = None,
        year: Optional[int] = None,
    ) -> List[Employee]:
        """Employees, latest joiners first. `all` (or None) disables a filter."""
        query = select(Employee).where(Employee.startup_id == startup_id)
        if entity and entity != ALL:
            query = query.where(Employee.entity == entity)
        if department and department != ALL:
            query = query.where(Employee.department == department)

        result = await self.db.execute(
            query.order_by(Employee.joining_date.desc(), Employee.created_at.desc())
        )
        employees = list(result.scalars().all())
        if year and str(year) != ALL:
            employees = [e for e in employees if e.joining_date.year == int(year)]
        return employees

    async def get_increments(self, employee_id: uuid.UUID) -> List[SalaryIncrement]:
        result = await self.db.execute(
            select(SalaryIncrement)
            .where(SalaryIncrement.employee_id == employee_id)
            .order_by(SalaryIncrement.effective_date, SalaryIncrement.created_at)
        )
        return list(result.scalars().all())

    async def get_increments_for(self, employee_ids: Sequence[uuid.UUID]) -> Dict[uuid.UUID, List[SalaryIncrement]]:
        grouped: Dict[uuid.UUID, List[SalaryIncrement]] = defaultdict(list)
        if not employee_ids:
            return grouped
        result = await self.db.execute(
            select(SalaryIncrement)
            .where(SalaryIncrement.employee_id.in_(employee_ids))
            .order_by(SalaryIncrement.effective_date, SalaryIncrement.created_at)
        )
        for increment in result.scalars().all():
            grouped[increment.employee_id].append(increment)
        return grouped

    async def get_history(self, startup_id: uuid.UUID, employee_id: uuid.UUID) -> List[EsopTerms]:
        employee = await self.get_employee(startup_id, employee_id)
        return employee_history(employee, await self.get_increments(employee.id))

    async def get_current_terms(self, employee: Employee) -> EsopTerms:
        return current_terms(employee, await self.get_increments(employee.id))

    async def list_employee_views(self, startup_id: uuid.UUID, **filters) -> List[Dict[str, Any]]:
        """Employees with the terms currently in force attached."""
        employees = await self.list_employees(startup_id, **filters)
        increments = await self.get_increments_for([e.id for e in employees])
        return [
            self._view(employee, increments.get(employee.id, []))
            for employee in employees
        ]

    async def get_employee_view(self, startup_id: uuid.UUID, employee_id: uuid.UUID) -> Dict[str, Any]:
        employee = await self.get_employee(startup_id, employee_id)
        return self._view(employee, await self.get_increments(employee.id))

    @staticmethod
    def _view(employee: Employee, increments: Sequence[SalaryIncrement]) -> Dict[str, Any]:
        terms = current_terms(employee, increments)
        return {
            "employee": employee,
            "current_terms": terms,
            "increment_count": len(increments),
        }

    # ===========================================
    # ALLOCATION GUARD
    # ===========================================

    async def current_allocated_total(
        self,
        startup_id: uuid.UUID,
        exclude_employee_id: Optional[uuid.UUID] = None,
    ) -> Decimal:
        """Sum of every employee's current ESOP allocation."""
        employees = await self.list_employees(startup_id)
        increments = await self.get_increments_for([e.id for e in employees])
        total = ZERO
        for employee in employees:
            if employee.id == exclude_employee_id:
                continue
            total += current_terms(employee, increments.get(employee.id, [])).esop_allocation
        return total

    async def _guard_allocation(
        self,
        startup: Startup,
        proposed: Decimal,
        exclude_employee_id: Optional[uuid.UUID] = None,
    ) -> None:
        reserved = await self.cap_table.get_esop_reserved_shares(startup.id)
        price = await self.cap_table.get_valuation_price(startup)
        current = await self.current_allocated_total(startup.id, exclude_employee_id)
        check_allocation(current, proposed, reserved, price)

    async def get_esop_position(self, startup: Startup) -> EsopPosition:
        return EsopPosition(
            reserved_shares=await self.cap_table.get_esop_reserved_shares(startup.id),
            allocated_shares=await self.total_ledger_shares(startup.id),
            price_per_share=await self.cap_table.get_valuation_price(startup),
        )

    # ===========================================
    # TERMS
    # ===========================================

    async def _parse_terms(self, startup_id: uuid.UUID, data: Dict[str, Any], base: Optional[EsopTerms] = None) -> Dict[str, Any]:
        """
        Validate salary/ESOP inputs and derive the dependent columns.

        Values missing from `data` are taken from `base` when given.
        """
        def pick(field: str, default: Any) -> Any:
            value = data.get(field)
            if value is None and base is not None:
                return getattr(base, field)
            return default if value is None else value

        salary = validate_amount(pick("salary", ZERO), "salary")
        esop_allocation = validate_amount(pick("esop_allocation", ZERO), "esop_allocation")
        allocation_type = AllocationType(pick("allocation_type", AllocationType.ONE_TIME))

        if data.get("price_per_share") is not None:
            price_per_share = validate_amount(data["price_per_share"], "price_per_share")
        elif base is not None:
            price_per_share = base.price_per_share
        else:
            price_per_share = await self.cap_table.resolve_price_per_share(startup_id)

        per_allocation = data.get("esop_per_allocation")
        if per_allocation is None or to_decimal(per_allocation) <= 0:
            per_allocation = per_period_allocation(esop_allocation, allocation_type)
        else:
            per_allocation = validate_amount(per_allocation, "esop_per_allocation")

        return {
            "salary": salary,
            "esop_allocation": esop_allocation,
            "allocation_type": allocation_type,
            "esop_per_allocation": per_allocation,
            "price_per_share": price_per_share,
            "number_of_shares": calculate_number_of_shares(esop_allocation, price_per_share),
        }

    # ===========================================
    # MUTATIONS
    # ===========================================

    async def add_employee(self, startup_id: uuid.UUID, data: Dict[str, Any]) -> Employee:
        """
        Hire an employee.

        Raises:
            InvalidDateException: joining date outside the allowed range
            InvalidAmountException: negative salary or allocation
            EsopAllocationException / EsopNotReservedException: pool cannot cover the allocation
        """
        startup = await self.startups.get_startup(startup_id)

        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationException("Employee name is required", field="name")
        joining_date = validate_joining_date(data.get("joining_date"), startup.registration_date)

        terms = await self._parse_terms(startup_id, data)
        await self._guard_allocation(startup, terms["esop_allocation"])

        employee = Employee(
            startup_id=startup_id,
            name=name,
            joining_date=joining_date,
            entity=data.get("entity") or PARENT_ENTITY,
            department=(data.get("department") or "").strip(),
            contract_url=data.get("contract_url"),
            **terms,
        )
        self.db.add(employee)
        await self.db.flush()

        await self._write_ledger(employee, [])
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Added employee {employee.id} to startup {startup_id}")
        return employee

    async def update_employee(
        self,
        startup_id: uuid.UUID,
        employee_id: uuid.UUID,
        data: Dict[str, Any],
    ) -> Employee:
        """
        Edit an employee.

        Profile fields go to the employee row. Salary/ESOP fields go to the
        latest increment when one exists, else to the employee row.
        """
        startup = await self.startups.get_startup(startup_id)
        employee = await self.get_employee(startup_id, employee_id)
        increments = await self.get_increments(employee.id)

        if "name" in data and not (data["name"] or "").strip():
            raise ValidationException("Employee name is required", field="name")

        joining_date = employee.joining_date
        if data.get("joining_date") is not None:
            joining_date = validate_joining_date(data["joining_date"], startup.registration_date)
            if increments and joining_date > increments[0].effective_date:
                raise InvalidDateException(
                    "Joining date cannot be after the employee's first increment "
                    f"({increments[0].effective_date.isoformat()})",
                    field="joining_date",
                )

        target = increments[-1] if increments else employee
        terms_changed = any(data.get(field) is not None for field in TERM_FIELDS)
        terms = None
        if terms_changed:
            base = current_terms(employee, increments)
            terms = await self._parse_terms(startup_id, data, base=base)
            await self._guard_allocation(startup, terms["esop_allocation"], exclude_employee_id=employee.id)

        for field in ("name", "entity", "department", "contract_url"):
            if field in data and data[field] is not None:
                setattr(employee, field, data[field].strip() if field == "name" else data[field])
        employee.joining_date = joining_date
        if terms:
            for field, value in terms.items():
                setattr(target, field, value)

        await self._write_ledger(employee, increments, replace=True)
        await self.db.commit()
        await self.db.refresh(employee)
        return employee

    async def add_increment(
        self,
        startup_id: uuid.UUID,
        employee_id: uuid.UUID,
        data: Dict[str, Any],
    ) -> SalaryIncrement:
        """Record new terms from an effective date; the employee row is unchanged."""
        startup = await self.startups.get_startup(startup_id)
        employee = await self.get_employee(startup_id, employee_id)

        effective_date = validate_increment_date(data.get("effective_date"), employee.joining_date)
        if employee.termination_date and effective_date > employee.termination_date:
            raise InvalidDateException(
                "Increment date cannot be after the employee's termination date",
                field="effective_date",
            )

        terms = await self._parse_terms(startup_id, data)
        await self._guard_allocation(startup, terms["esop_allocation"], exclude_employee_id=employee.id)

        increment = SalaryIncrement(employee_id=employee.id, effective_date=effective_date, **terms)
        self.db.add(increment)
        await self.db.flush()

        await self._write_ledger(employee, await self.get_increments(employee.id), replace=True)
        await self.db.commit()
        await self.db.refresh(increment)

        logger.info(f"Added increment for employee {employee.id} effective {effective_date}")
        return increment

    async def terminate_employee(
        self,
        startup_id: uuid.UUID,
        employee_id: uuid.UUID,
        termination_date: Optional[date],
    ) -> Employee:
        employee = await self.get_employee(startup_id, employee_id)
        employee.termination_date = validate_termination_date(termination_date, employee.joining_date)

        await self._write_ledger(employee, await self.get_increments(employee.id), replace=True)
        await self.db.commit()
        await self.db.refresh(employee)

        logger.info(f"Terminated employee {employee.id} on {employee.termination_date}")
        return employee

    async def delete_employee(self, startup_id: uuid.UUID, employee_id: uuid.UUID) -> None:
        """Delete an employee with its increments, ledger and stored contract."""
        employee = await self.get_employee(startup_id, employee_id)
        contract_url = employee.contract_url

        await self.db.execute(delete(EmployeeLedgerEntry).where(EmployeeLedgerEntry.employee_id == employee.id))
        await self.db.execute(delete(SalaryIncrement).where(SalaryIncrement.employee_id == employee.id))
        await self.db.delete(employee)
        await self.db.commit()

        await self.storage.delete_file(contract_url)
        logger.info(f"Deleted employee {employee_id}")

    async def attach_contract(
        self,
        startup_id: uuid.UUID,
        employee_id: uuid.UUID,
        file_content: bytes,
        filename: str,
        content_type: Optional[str],
    ) -> Employee:
        employee = await self.get_employee(startup_id, employee_id)
        stored = await self.storage.upload_file(
            startup_id, file_content, filename, content_type, FileCategory.CONTRACT,
        )

        previous = employee.contract_url
        employee.contract_url = stored["url"]
        await self.db.commit()
        await self.db.refresh(employee)

        if previous and previous != employee.contract_url:
            await self.storage.delete_file(previous)
        return employee

    def get_contract_download_url(self, employee: Employee) -> Optional[str]:
        return self.storage.resolve_download_url(employee.contract_url)

    # ===========================================
    # LEDGER
    # ===========================================

    async def _write_ledger(
        self,
        employee: Employee,
        increments: Sequence[SalaryIncrement],
        end: Optional[date] = None,
        replace: bool = False,
    ) -> int:
        """Insert missing ledger months up to `end`; with replace, rebuild from scratch."""
        if replace:
            await self.db.execute(
                delete(EmployeeLedgerEntry).where(EmployeeLedgerEntry.employee_id == employee.id)
            )
            existing = set()
        else:
            result = await self.db.execute(
                select(EmployeeLedgerEntry.ledger_date).where(EmployeeLedgerEntry.employee_id == employee.id)
            )
            existing = set(result.scalars().all())

        rows = build_ledger(
            employee_history(employee, increments),
            end or date.today(),
            employee.termination_date,
        )
        missing = [row for row in rows if row.ledger_date not in existing]
        self.db.add_all([
            EmployeeLedgerEntry(
                employee_id=employee.id,
                ledger_date=row.ledger_date,
                salary=row.salary,
                esop_allocated=row.esop_allocated,
                price_per_share=row.price_per_share,
                number_of_shares=row.number_of_shares,
            )
            for row in missing
        ])
        await self.db.flush()

        if missing:
            logger.info(f"Wrote {len(missing)} ledger entries for employee {employee.id}")
        return len(missing)

    async def generate_ledger(self, employee: Employee, end: Optional[date] = None) -> int:
        """Fill ledger gaps up to `end` (default today). Safe to repeat."""
        count = await self._write_ledger(employee, await self.get_increments(employee.id), end=end)
        await self.db.commit()
        return count

    async def regenerate_ledger(self, startup_id: uuid.UUID, employee_id: uuid.UUID) -> int:
        employee = await self.get_employee(startup_id, employee_id)
        count = await self._write_ledger(employee, await self.get_increments(employee.id), replace=True)
        await self.db.commit()
        return count

    async def generate_startup_ledger(self, startup_id: uuid.UUID, end: Optional[date] = None) -> int:
        total = 0
        for employee in await self.list_employees(startup_id):
            total += await self._write_ledger(employee, await self.get_increments(employee.id), end=end)
        await self.db.commit()
        return total

    async def get_ledger(
        self,
        startup_id: uuid.UUID,
        employee_id: uuid.UUID,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[EmployeeLedgerEntry]:
        """Ledger entries in date order, generated first when the employee has none."""
        employee = await self.get_employee(startup_id, employee_id)

        count = await self.db.scalar(
            select(func.count(EmployeeLedgerEntry.id)).where(EmployeeLedgerEntry.employee_id == employee.id)
        )
        if not count:
            await self.generate_ledger(employee)

        query = select(EmployeeLedgerEntry).where(EmployeeLedgerEntry.employee_id == employee.id)
        if start:
            query = query.where(EmployeeLedgerEntry.ledger_date >= start)
        if end:
            query = query.where(EmployeeLedgerEntry.ledger_date <= end)
        result = await self.db.execute(query.order_by(EmployeeLedgerEntry.ledger_date))
        return list(result.scalars().all())

    async def total_ledger_shares(self, startup_id: uuid.UUID) -> int:
        total = await self.db.scalar(
            select(func.coalesce(func.sum(EmployeeLedgerEntry.number_of_shares), 0))
            .join(Employee, Employee.id == EmployeeLedgerEntry.employee_id)
            .where(Employee.startup_id == startup_id)
        )
        return int(total or 0)

    # ===========================================
    # ANALYTICS
    # ===========================================

    async def get_summary(self, startup_id: uuid.UUID) -> Dict[str, Any]:
        employees = await self.list_employees(startup_id)
        increments = await self.get_increments_for([e.id for e in employees])
        terms = [current_terms(e, increments.get(e.id, [])) for e in employees]

        count = len(terms)
        total_salary = sum((t.salary for t in terms), ZERO)
        total_esop = sum((t.esop_allocation for t in terms), ZERO)
        return {
            "total_employees": count,
            "total_salary_expense": total_salary,
            "total_esop_allocated": total_esop,
            "avg_salary": (total_salary / count).quantize(CENTS) if count else ZERO,
            "avg_esop_allocation": (total_esop / count).quantize(CENTS) if count else ZERO,
        }

    async def get_department_breakdown(self, startup_id: uuid.UUID) -> List[Dict[str, Any]]:
        employees = await self.list_employees(startup_id)
        increments = await self.get_increments_for([e.id for e in employees])

        departments: Dict[str, Dict[str, Any]] = {}
        for employee in employees:
            terms = current_terms(employee, increments.get(employee.id, []))
            bucket = departments.setdefault(
                employee.department,
                {"department": employee.department, "employee_count": 0, "total_salary": ZERO, "total_esop": ZERO},
            )
            bucket["employee_count"] += 1
            bucket["total_salary"] += terms.salary
            bucket["total_esop"] += terms.esop_allocation

        return sorted(departments.values(), key=lambda d: d["employee_count"], reverse=True)

    async def monthly_salary_expense(self, startup_id: uuid.UUID, on: Optional[date] = None) -> Decimal:
        """Salary plus recurring ESOP cost of the employees active on a date."""
        on = on or date.today()
        employees = await self.list_employees(startup_id)
        increments = await self.get_increments_for([e.id for e in employees])

        total = ZERO
        for employee in employees:
            if not employee.is_active_between(on, on):
                continue
            terms = terms_in_force(employee_history(employee, increments.get(employee.id, [])), on)
            total += terms.salary / 12
            total += monthly_recurring_esop(terms.esop_allocation, terms.allocation_type, on.month)
        return total.quantize(CENTS)

    async def get_yearly_chart(self, startup_id: uuid.UUID, year: int) -> List[Dict[str, Any]]:
        employees = await self.list_employees(startup_id)
        increments = await self.get_increments_for([e.id for e in employees])
        return yearly_compensation(employees, increments, year)

    async def get_available_years(self, startup_id: uuid.UUID) -> List[int]:
        """Joining years, newest first; the current year when there are no employees."""
        result = await self.db.execute(
            select(Employee.joining_date).where(Employee.startup_id == startup_id)
        )
        years = sorted({d.year for d in result.scalars().all()}, reverse=True)
        return years or [date.today().year]

    async def get_departments(self, startup_id: uuid.UUID) -> List[str]:
        result = await self.db.execute(
            select(Employee.department)
            .where(Employee.startup_id == startup_id)
            .distinct()
            .order_by(Employee.department)
        )
        return [d for d in result.scalars().all() if d]

    async def get_entities(self, startup_id: uuid.UUID) -> List[str]:
        return await self.startups.get_entities(startup_id)

    async def get_overview(
        self,
        startup_id: uuid.UUID,
        year: Optional[int] = None,
        entity: Optional[str] = None,
        department: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Everything the employees view loads, in one call."""
        startup = await self.startups.get_startup(startup_id)
        chart_year = year or date.today().year
        position = await self.get_esop_position(startup)

        return {
            "employees": await self.list_employee_views(startup_id, entity=entity, department=department),
            "summary": await self.get_summary(startup_id),
            "departments": await self.get_department_breakdown(startup_id),
            "monthly_chart": await self.get_yearly_chart(startup_id, chart_year),
            "monthly_salary_expense": await self.monthly_salary_expense(startup_id),
            "esop": position.to_dict(),
            "price_per_share": await self.cap_table.resolve_price_per_share(startup_id),
            "available_years": await self.get_available_years(startup_id),
            "entities": await self.get_entities(startup_id),
            "department_options": await self.get_departments(startup_id),
            "currency": await self.startups.get_currency(startup),
        }
