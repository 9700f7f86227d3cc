"""
TrackMyStartup - Employee Service Tests

Tests for the employee register: hiring under the ESOP pool guard,
increments, termination, the monthly ledger and the rollups.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from app.models.employee import AllocationType
from app.services.employee_service import EmployeeService
from app.utils.error_handling import (
    EmployeeNotFoundException,
    EsopAllocationException,
    EsopNotReservedException,
    InvalidDateException,
    ValidationException,
)


def hire(name="Asha", **overrides):
    data = {
        "name": name,
        "joining_date": date(2024, 1, 1),
        "department": "Engineering",
        "salary": Decimal("120000"),
        "esop_allocation": Decimal("0"),
        "allocation_type": AllocationType.ONE_TIME,
    }
    data.update(overrides)
    return data


class TestHiring:

    @pytest.mark.asyncio
    async def test_add_employee_derives_shares(self, db_session, test_startup, test_shares):
        """Shares come from the allocation over the cap table price."""
        service = EmployeeService(db_session)

        employee = await service.add_employee(
            test_startup.id, hire(esop_allocation=Decimal("5000")),
        )

        assert employee.entity == "Parent Company"
        assert employee.price_per_share == Decimal("10")
        assert employee.number_of_shares == 500
        assert employee.esop_per_allocation == Decimal("5000")

    @pytest.mark.asyncio
    async def test_add_employee_writes_ledger(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire(esop_allocation=Decimal("5000")))

        ledger = await service.get_ledger(test_startup.id, employee.id)

        assert ledger[0].ledger_date == date(2024, 1, 1)
        assert ledger[0].number_of_shares == 500
        assert all(entry.number_of_shares == 0 for entry in ledger[1:])
        assert await service.total_ledger_shares(test_startup.id) == 500

    @pytest.mark.asyncio
    async def test_name_required(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)

        with pytest.raises(ValidationException):
            await service.add_employee(test_startup.id, hire(name="  "))

    @pytest.mark.asyncio
    async def test_joining_before_registration_rejected(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)

        with pytest.raises(InvalidDateException):
            await service.add_employee(test_startup.id, hire(joining_date=date(2019, 6, 1)))


class TestAllocationGuard:
    """Reserved pool: 10,000 shares at 10.00, a value of 100,000."""

    @pytest.mark.asyncio
    async def test_over_allocation_rejected(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire("A", esop_allocation=Decimal("60000")))

        with pytest.raises(EsopAllocationException):
            await service.add_employee(test_startup.id, hire("B", esop_allocation=Decimal("50000")))

        assert len(await service.list_employees(test_startup.id)) == 1

    @pytest.mark.asyncio
    async def test_allocation_up_to_reserved_value(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire("A", esop_allocation=Decimal("60000")))
        await service.add_employee(test_startup.id, hire("B", esop_allocation=Decimal("40000")))

        assert await service.current_allocated_total(test_startup.id) == Decimal("100000")

    @pytest.mark.asyncio
    async def test_no_pool_rejects_allocation(self, db_session, test_startup):
        service = EmployeeService(db_session)

        with pytest.raises(EsopNotReservedException):
            await service.add_employee(test_startup.id, hire(esop_allocation=Decimal("1000")))

    @pytest.mark.asyncio
    async def test_no_pool_allows_zero_allocation(self, db_session, test_startup):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())
        assert employee.esop_allocation == Decimal("0")

    @pytest.mark.asyncio
    async def test_update_excludes_own_allocation(self, db_session, test_startup, test_shares):
        """Raising an employee's own allocation counts only the other employees."""
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire(esop_allocation=Decimal("60000")))

        updated = await service.update_employee(
            test_startup.id, employee.id, {"esop_allocation": Decimal("90000")},
        )

        assert updated.esop_allocation == Decimal("90000")
        assert updated.number_of_shares == 9000

    @pytest.mark.asyncio
    async def test_position(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire(esop_allocation=Decimal("5000")))

        position = await service.get_esop_position(test_startup)

        assert position.reserved_value == Decimal("100000")
        assert position.allocated_value == Decimal("5000")
        assert position.esop_percentage == "5.0"


class TestIncrementsAndTermination:

    @pytest.mark.asyncio
    async def test_increment_becomes_current_terms(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire(salary=Decimal("60000")))

        increment = await service.add_increment(test_startup.id, employee.id, {
            "effective_date": date(2024, 6, 1),
            "salary": Decimal("90000"),
            "esop_allocation": Decimal("0"),
        })

        assert increment.effective_date == date(2024, 6, 1)
        history = await service.get_history(test_startup.id, employee.id)
        assert [t.salary for t in history] == [Decimal("60000"), Decimal("90000")]
        assert (await service.get_current_terms(employee)).salary == Decimal("90000")

        ledger = await service.get_ledger(
            test_startup.id, employee.id, start=date(2024, 5, 1), end=date(2024, 6, 30),
        )
        assert [entry.salary for entry in ledger] == [Decimal("60000"), Decimal("90000")]

    @pytest.mark.asyncio
    async def test_same_month_increment_keeps_hire_grant(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire(
            joining_date=date(2024, 1, 5),
            esop_allocation=Decimal("5000"),
        ))

        await service.add_increment(test_startup.id, employee.id, {
            "effective_date": date(2024, 1, 20),
            "salary": Decimal("150000"),
            "esop_allocation": Decimal("0"),
        })

        ledger = await service.get_ledger(test_startup.id, employee.id, end=date(2024, 1, 31))
        assert ledger[0].number_of_shares == 500
        assert await service.total_ledger_shares(test_startup.id) == 500

        chart = await service.get_yearly_chart(test_startup.id, 2024)
        assert chart[0]["esop"] == Decimal("5000.00")

    @pytest.mark.asyncio
    async def test_increment_before_joining_rejected(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())

        with pytest.raises(InvalidDateException):
            await service.add_increment(test_startup.id, employee.id, {
                "effective_date": date(2023, 12, 1),
                "salary": Decimal("90000"),
            })

    @pytest.mark.asyncio
    async def test_update_terms_goes_to_latest_increment(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire(salary=Decimal("60000")))
        await service.add_increment(test_startup.id, employee.id, {
            "effective_date": date(2024, 6, 1),
            "salary": Decimal("90000"),
        })

        updated = await service.update_employee(test_startup.id, employee.id, {
            "name": "Asha Rao",
            "salary": Decimal("95000"),
        })

        assert updated.name == "Asha Rao"
        assert updated.salary == Decimal("60000")
        increments = await service.get_increments(employee.id)
        assert increments[-1].salary == Decimal("95000")

    @pytest.mark.asyncio
    async def test_joining_date_cannot_pass_first_increment(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())
        await service.add_increment(test_startup.id, employee.id, {
            "effective_date": date(2024, 3, 1),
            "salary": Decimal("90000"),
        })

        with pytest.raises(InvalidDateException):
            await service.update_employee(test_startup.id, employee.id, {"joining_date": date(2024, 4, 1)})

    @pytest.mark.asyncio
    async def test_terminate_truncates_ledger(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())

        terminated = await service.terminate_employee(test_startup.id, employee.id, date(2024, 3, 15))

        assert terminated.is_terminated
        ledger = await service.get_ledger(test_startup.id, employee.id)
        assert [entry.ledger_date for entry in ledger] == [
            date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1),
        ]

    @pytest.mark.asyncio
    async def test_terminate_before_joining_rejected(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())

        with pytest.raises(InvalidDateException):
            await service.terminate_employee(test_startup.id, employee.id, date(2023, 1, 1))


class TestLedger:

    @pytest.mark.asyncio
    async def test_monthly_allocation_every_month(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire(
            esop_allocation=Decimal("12000"),
            allocation_type=AllocationType.MONTHLY,
        ))

        ledger = await service.get_ledger(test_startup.id, employee.id, end=date(2024, 3, 31))

        assert len(ledger) == 3
        assert all(entry.esop_allocated == Decimal("1000") for entry in ledger)
        assert all(entry.number_of_shares == 100 for entry in ledger)

    @pytest.mark.asyncio
    async def test_generate_is_idempotent(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())
        before = len(await service.get_ledger(test_startup.id, employee.id))

        assert await service.generate_startup_ledger(test_startup.id) == 0
        assert len(await service.get_ledger(test_startup.id, employee.id)) == before

    @pytest.mark.asyncio
    async def test_regenerate_rebuilds(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())
        before = len(await service.get_ledger(test_startup.id, employee.id))

        assert await service.regenerate_ledger(test_startup.id, employee.id) == before


class TestRegister:

    @pytest.mark.asyncio
    async def test_delete_removes_contract(self, db_session, test_startup, test_shares, storage):
        service = EmployeeService(db_session, storage=storage)
        employee = await service.add_employee(test_startup.id, hire())
        employee = await service.attach_contract(
            test_startup.id, employee.id, b"%PDF-1.4 contract", "offer letter.pdf", "application/pdf",
        )

        assert employee.contract_url.startswith("/uploads/")
        assert "offer_letter.pdf" in employee.contract_url
        path = storage._path_for(employee.contract_url)
        assert path.exists()

        await service.delete_employee(test_startup.id, employee.id)

        assert not path.exists()
        with pytest.raises(EmployeeNotFoundException):
            await service.get_employee(test_startup.id, employee.id)

    @pytest.mark.asyncio
    async def test_contract_download_url(self, db_session, test_startup, test_shares, storage):
        service = EmployeeService(db_session, storage=storage)
        employee = await service.add_employee(test_startup.id, hire(contract_url="https://files.example.com/c.pdf"))

        assert service.get_contract_download_url(employee) == "https://files.example.com/c.pdf"

    @pytest.mark.asyncio
    async def test_filters(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire("A", joining_date=date(2023, 5, 1)))
        await service.add_employee(test_startup.id, hire("B", department="Sales"))

        assert [e.name for e in await service.list_employees(test_startup.id)] == ["B", "A"]
        assert [e.name for e in await service.list_employees(test_startup.id, department="Sales")] == ["B"]
        assert [e.name for e in await service.list_employees(test_startup.id, year=2023)] == ["A"]
        assert len(await service.list_employees(test_startup.id, entity="all")) == 2

    @pytest.mark.asyncio
    async def test_wrong_startup_not_found(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        employee = await service.add_employee(test_startup.id, hire())

        with pytest.raises(EmployeeNotFoundException):
            await service.get_employee(uuid4(), employee.id)


class TestAnalytics:

    @pytest.mark.asyncio
    async def test_summary_and_departments(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire("A", salary=Decimal("120000"), esop_allocation=Decimal("1000")))
        await service.add_employee(test_startup.id, hire("B", salary=Decimal("90000")))
        await service.add_employee(test_startup.id, hire("C", salary=Decimal("60000"), department="Sales"))

        summary = await service.get_summary(test_startup.id)
        assert summary["total_employees"] == 3
        assert summary["total_salary_expense"] == Decimal("270000")
        assert summary["avg_salary"] == Decimal("90000.00")
        assert summary["total_esop_allocated"] == Decimal("1000")

        departments = await service.get_department_breakdown(test_startup.id)
        assert departments[0]["department"] == "Engineering"
        assert departments[0]["employee_count"] == 2
        assert departments[0]["total_salary"] == Decimal("210000")

    @pytest.mark.asyncio
    async def test_yearly_chart(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire(
            joining_date=date(2024, 3, 1),
            salary=Decimal("120000"),
            esop_allocation=Decimal("1200"),
        ))

        chart = await service.get_yearly_chart(test_startup.id, 2024)

        assert chart[1]["salary"] == Decimal("0.00")
        assert chart[2]["month"] == "Mar"
        assert chart[2]["salary"] == Decimal("10000.00")
        assert chart[2]["esop"] == Decimal("1200.00")
        assert chart[11]["cumulative_esop"] == Decimal("1200.00")

    @pytest.mark.asyncio
    async def test_years_and_departments(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire("A", joining_date=date(2022, 5, 1)))
        await service.add_employee(test_startup.id, hire("B", department="Sales"))

        assert await service.get_available_years(test_startup.id) == [2024, 2022]
        assert await service.get_departments(test_startup.id) == ["Engineering", "Sales"]

    @pytest.mark.asyncio
    async def test_overview(self, db_session, test_startup, test_shares):
        service = EmployeeService(db_session)
        await service.add_employee(test_startup.id, hire(esop_allocation=Decimal("5000")))

        overview = await service.get_overview(test_startup.id, year=2024)

        assert len(overview["employees"]) == 1
        assert overview["summary"]["total_employees"] == 1
        assert overview["esop"]["esop_percentage"] == "5.0"
        assert overview["currency"] == "INR"
        assert overview["entities"] == ["Parent Company"]
        assert len(overview["monthly_chart"]) == 12
