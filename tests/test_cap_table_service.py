"""
TrackMyStartup - Cap Table Service Tests
"""

from datetime import date
from decimal import Decimal

import pytest

from app.services.cap_table_service import DEFAULT_TOTAL_SHARES, CapTableService
from app.utils.error_handling import (
    InvalidAmountException,
    InvestmentNotFoundException,
    ReservedSharesExceededException,
    ValidationException,
)


class TestShares:

    @pytest.mark.asyncio
    async def test_reserved_shares_within_total(self, db_session, test_startup, test_shares):
        service = CapTableService(db_session)

        shares = await service.upsert_esop_reserved_shares(test_startup.id, 20_000)
        assert shares.esop_reserved_shares == 20_000

        with pytest.raises(ReservedSharesExceededException):
            await service.upsert_esop_reserved_shares(test_startup.id, 100_001)

    @pytest.mark.asyncio
    async def test_total_cannot_drop_below_reserved(self, db_session, test_startup, test_shares):
        service = CapTableService(db_session)

        with pytest.raises(ReservedSharesExceededException):
            await service.upsert_total_shares(test_startup.id, 5_000)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [-1, "1.5", "abc", None])
    async def test_invalid_share_counts(self, db_session, test_startup, value):
        service = CapTableService(db_session)

        with pytest.raises(InvalidAmountException):
            await service.upsert_esop_reserved_shares(test_startup.id, value)

    @pytest.mark.asyncio
    async def test_reserved_shares_create_row(self, db_session, test_startup):
        service = CapTableService(db_session)

        shares = await service.upsert_esop_reserved_shares(test_startup.id, "500")

        assert shares.total_shares == 0
        assert shares.esop_reserved_shares == 500
        assert await service.get_esop_reserved_shares(test_startup.id) == 500

    @pytest.mark.asyncio
    async def test_price_creates_row_with_default_share_count(self, db_session, test_startup):
        service = CapTableService(db_session)

        shares = await service.upsert_price_per_share(test_startup.id, "12.5")

        assert shares.total_shares == DEFAULT_TOTAL_SHARES
        assert shares.price_per_share == Decimal("12.5")

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, db_session, test_startup):
        service = CapTableService(db_session)

        with pytest.raises(InvalidAmountException):
            await service.upsert_price_per_share(test_startup.id, -1)


class TestPricePerShare:

    @pytest.mark.asyncio
    async def test_stored_price(self, db_session, test_startup, test_shares):
        service = CapTableService(db_session)
        assert await service.resolve_price_per_share(test_startup.id) == Decimal("10")

    @pytest.mark.asyncio
    async def test_derived_from_profile_valuation(self, db_session, test_startup):
        """1,000,000 valuation over 100,000 shares."""
        service = CapTableService(db_session)
        await service.upsert_total_shares(test_startup.id, 100_000)

        assert await service.resolve_price_per_share(test_startup.id) == Decimal("10")
        shares = await service.get_shares(test_startup.id)
        assert shares.price_per_share == Decimal("10")

    @pytest.mark.asyncio
    async def test_derived_from_latest_round(self, db_session, test_startup):
        service = CapTableService(db_session)
        await service.upsert_total_shares(test_startup.id, 100_000)
        await service.add_investment(test_startup.id, {
            "investment_date": date(2023, 1, 1),
            "investor_name": "Seed Fund",
            "amount": Decimal("500000"),
            "pre_money_valuation": Decimal("1500000"),
        })

        assert await service.resolve_price_per_share(test_startup.id) == Decimal("20")

    @pytest.mark.asyncio
    async def test_zero_without_shares(self, db_session, test_startup):
        service = CapTableService(db_session)
        assert await service.resolve_price_per_share(test_startup.id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_valuation_price_falls_back_to_profile(self, db_session, test_startup):
        test_startup.price_per_share = Decimal("4")
        await db_session.commit()
        service = CapTableService(db_session)

        assert await service.get_valuation_price(test_startup) == Decimal("4")


class TestInvestments:

    @pytest.mark.asyncio
    async def test_add_investment_derives_values(self, db_session, test_startup):
        service = CapTableService(db_session)

        record = await service.add_investment(test_startup.id, {
            "investment_date": date(2023, 1, 1),
            "investor_name": " Seed Fund ",
            "amount": Decimal("100000"),
            "shares": 4000,
            "pre_money_valuation": Decimal("900000"),
        })

        assert record.investor_name == "Seed Fund"
        assert record.price_per_share == Decimal("25")
        assert record.post_money_valuation == Decimal("1000000")

    @pytest.mark.asyncio
    async def test_investor_name_required(self, db_session, test_startup):
        service = CapTableService(db_session)

        with pytest.raises(ValidationException):
            await service.add_investment(test_startup.id, {
                "investment_date": date(2023, 1, 1),
                "investor_name": "",
                "amount": Decimal("100"),
            })

    @pytest.mark.asyncio
    async def test_total_funding_and_ordering(self, db_session, test_startup):
        service = CapTableService(db_session)
        for day, amount in ((date(2022, 1, 1), "1000"), (date(2023, 1, 1), "2500")):
            await service.add_investment(test_startup.id, {
                "investment_date": day,
                "investor_name": "Angel",
                "amount": Decimal(amount),
            })

        investments = await service.list_investments(test_startup.id)
        assert [i.investment_date for i in investments] == [date(2023, 1, 1), date(2022, 1, 1)]
        assert await service.get_total_funding(test_startup) == Decimal("3500")
        assert await service.get_investor_names(test_startup.id) == ["Angel"]

    @pytest.mark.asyncio
    async def test_proof_upload_and_delete(self, db_session, test_startup, storage):
        service = CapTableService(db_session, storage=storage)
        stored = await service.upload_proof(test_startup.id, b"wire receipt", "receipt.png", "image/png")

        assert "/investment_proof/" in stored["url"]
        record = await service.add_investment(test_startup.id, {
            "investment_date": date(2023, 1, 1),
            "investor_name": "Angel",
            "amount": Decimal("100"),
            "proof_url": stored["url"],
        })
        path = storage._path_for(stored["url"])
        assert path.exists()

        await service.delete_investment(test_startup.id, record.id)

        assert not path.exists()
        with pytest.raises(InvestmentNotFoundException):
            await service.delete_investment(test_startup.id, record.id)
