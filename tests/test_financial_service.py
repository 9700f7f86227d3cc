"""
TrackMyStartup - Financial Service Tests
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from app.models.financial_record import FinancialRecordType
from app.services.cap_table_service import CapTableService
from app.services.financial_service import FinancialService
from app.utils.error_handling import (
    FinancialRecordNotFoundException,
    InvalidAmountException,
    InvalidDateException,
    ValidationException,
)


def expense(**overrides):
    data = {
        "record_type": FinancialRecordType.EXPENSE,
        "record_date": date(2024, 1, 15),
        "description": "Cloud hosting",
        "vertical": "Infrastructure",
        "amount": Decimal("500"),
    }
    data.update(overrides)
    return data


def revenue(**overrides):
    data = expense(
        record_type=FinancialRecordType.REVENUE,
        description="Subscription",
        vertical="Sales",
        amount=Decimal("3000"),
    )
    data.update(overrides)
    return data


class TestRecords:

    @pytest.mark.asyncio
    async def test_create_expense(self, db_session, test_startup):
        service = FinancialService(db_session)

        record = await service.create_record(
            test_startup.id, expense(funding_source="Revenue", cogs=Decimal("10")),
        )

        assert record.entity == "Parent Company"
        assert record.funding_source == "Revenue"
        assert record.cogs is None

    @pytest.mark.asyncio
    async def test_create_revenue_drops_funding_source(self, db_session, test_startup):
        service = FinancialService(db_session)

        record = await service.create_record(
            test_startup.id, revenue(funding_source="Seed Fund", cogs=Decimal("1200")),
        )

        assert record.funding_source is None
        assert record.cogs == Decimal("1200")

    @pytest.mark.asyncio
    async def test_amount_must_be_positive(self, db_session, test_startup):
        service = FinancialService(db_session)

        with pytest.raises(InvalidAmountException):
            await service.create_record(test_startup.id, expense(amount=Decimal("0")))

    @pytest.mark.asyncio
    async def test_description_required(self, db_session, test_startup):
        service = FinancialService(db_session)

        with pytest.raises(ValidationException) as exc_info:
            await service.create_record(test_startup.id, expense(description=""))
        assert exc_info.value.field == "description"

    @pytest.mark.asyncio
    async def test_future_date_rejected(self, db_session, test_startup):
        service = FinancialService(db_session)

        with pytest.raises(InvalidDateException):
            await service.create_record(test_startup.id, expense(record_date=date(2100, 1, 1)))

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, test_startup):
        service = FinancialService(db_session)
        record = await service.create_record(test_startup.id, expense())

        updated = await service.update_record(test_startup.id, record.id, {"amount": Decimal("750")})

        assert updated.amount == Decimal("750")
        assert updated.description == "Cloud hosting"

    @pytest.mark.asyncio
    async def test_record_scoped_to_startup(self, db_session, test_startup):
        service = FinancialService(db_session)
        record = await service.create_record(test_startup.id, expense())

        with pytest.raises(FinancialRecordNotFoundException):
            await service.get_record(uuid4(), record.id)

    @pytest.mark.asyncio
    async def test_delete_removes_attachment(self, db_session, test_startup, storage):
        service = FinancialService(db_session, storage=storage)
        record = await service.create_record(test_startup.id, expense())
        record = await service.attach_file(
            test_startup.id, record.id, b"invoice", "invoice.pdf", "application/pdf",
        )
        path = storage._path_for(record.attachment_url)
        assert path.exists()

        await service.delete_record(test_startup.id, record.id)

        assert not path.exists()
        with pytest.raises(FinancialRecordNotFoundException):
            await service.get_record(test_startup.id, record.id)

    @pytest.mark.asyncio
    async def test_replacing_attachment_deletes_previous(self, db_session, test_startup, storage):
        service = FinancialService(db_session, storage=storage)
        record = await service.create_record(test_startup.id, expense())
        first = await service.attach_file(test_startup.id, record.id, b"v1", "a.pdf", "application/pdf")
        first_path = storage._path_for(first.attachment_url)

        await service.attach_file(test_startup.id, record.id, b"v2", "b.pdf", "application/pdf")
        assert not first_path.exists()

        cleared = await service.delete_attachment(test_startup.id, record.id)
        assert cleared.attachment_url is None
        assert service.get_attachment_download_url(cleared) is None

    @pytest.mark.asyncio
    async def test_list_filters(self, db_session, test_startup):
        service = FinancialService(db_session)
        await service.create_record(test_startup.id, expense())
        await service.create_record(test_startup.id, expense(record_date=date(2023, 6, 1), entity="India Subsidiary"))
        await service.create_record(test_startup.id, revenue())

        assert len(await service.list_records(test_startup.id)) == 3
        assert len(await service.list_records(test_startup.id, year=2023)) == 1
        assert len(await service.list_records(test_startup.id, year="all")) == 3
        assert len(await service.list_records(test_startup.id, entity="India Subsidiary")) == 1
        assert len(await service.list_records(test_startup.id, record_type=FinancialRecordType.REVENUE)) == 1
        assert len(await service.list_records(test_startup.id, vertical="Infrastructure")) == 2


class TestAggregations:

    @pytest.mark.asyncio
    async def test_summary_uses_investments(self, db_session, test_startup):
        service = FinancialService(db_session)
        await CapTableService(db_session).add_investment(test_startup.id, {
            "investment_date": date(2023, 1, 1),
            "investor_name": "Seed Fund",
            "amount": Decimal("50000"),
        })
        await service.create_record(test_startup.id, expense(amount=Decimal("1500")))
        await service.create_record(test_startup.id, revenue())

        summary = await service.get_summary(test_startup.id)

        assert summary["total_funding"] == Decimal("50000")
        assert summary["total_revenue"] == Decimal("3000")
        assert summary["total_expenses"] == Decimal("1500")
        assert summary["available_funds"] == Decimal("48500")

    @pytest.mark.asyncio
    async def test_summary_falls_back_to_profile_funding(self, db_session, test_startup):
        test_startup.total_funding = Decimal("20000")
        await db_session.commit()
        service = FinancialService(db_session)

        summary = await service.get_summary(test_startup.id)

        assert summary["total_funding"] == Decimal("20000")
        assert summary["available_funds"] == Decimal("20000")

    @pytest.mark.asyncio
    async def test_monthly_and_verticals(self, db_session, test_startup):
        service = FinancialService(db_session)
        await service.create_record(test_startup.id, expense())
        await service.create_record(test_startup.id, expense(record_date=date(2024, 2, 3), vertical="Marketing", amount=Decimal("900")))
        await service.create_record(test_startup.id, revenue())

        monthly = await service.get_monthly_data(test_startup.id, 2024)
        assert monthly[0] == {"month": "Jan", "revenue": Decimal("3000"), "expenses": Decimal("500")}
        assert monthly[1]["expenses"] == Decimal("900")

        verticals = await service.get_verticals_breakdown(test_startup.id, "2024")
        assert [v["name"] for v in verticals["expenses"]] == ["Marketing", "Infrastructure"]
        assert verticals["revenue"] == [{"name": "Sales", "value": Decimal("3000")}]

    @pytest.mark.asyncio
    async def test_options(self, db_session, test_startup):
        service = FinancialService(db_session)
        await CapTableService(db_session).add_investment(test_startup.id, {
            "investment_date": date(2023, 1, 1),
            "investor_name": "Seed Fund",
            "amount": Decimal("50000"),
        })
        await service.create_record(test_startup.id, expense())

        assert await service.get_funding_sources(test_startup.id) == ["Revenue", "Seed Fund"]
        assert await service.get_verticals(test_startup.id) == ["Infrastructure"]
        assert await service.get_entities(test_startup.id) == ["Parent Company"]

        years = await service.get_year_options(test_startup.id)
        assert years[0] == "all"
        assert years[-1] == 2020
        assert years[1] == date.today().year

    @pytest.mark.asyncio
    async def test_overview(self, db_session, test_startup):
        service = FinancialService(db_session)
        await service.create_record(test_startup.id, expense())

        overview = await service.get_overview(test_startup.id, year="2024")

        assert len(overview["records"]) == 1
        assert overview["chart_year"] == 2024
        assert overview["currency"] == "INR"
        assert overview["summary"]["total_expenses"] == Decimal("500")
