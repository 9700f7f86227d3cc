"""
TrackMyStartup - Cap Table Service

Share structure, price-per-share and investment rounds of a startup.
"""

import logging
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.cap_table import InvestmentRecord, InvestmentType, InvestorType, StartupShares
from app.models.startup import Startup
from app.services.esop_calculator import ZERO, to_decimal
from app.services.file_storage_service import FileCategory, FileStorageService, file_storage_service
from app.services.financial_aggregation import reconcile_total_funding
from app.utils.date_validation import validate_investment_date
from app.utils.error_handling import (
    InvalidAmountException,
    InvestmentNotFoundException,
    ReservedSharesExceededException,
    StartupNotFoundException,
    ValidationException,
    validate_amount,
)

logger = logging.getLogger(__name__)


# Share count assumed when a price is set before the share structure is known
DEFAULT_TOTAL_SHARES = 1_000_000

PRICE_PRECISION = Decimal("0.000001")


class CapTableService:
    """Service for share structure and investment records."""

    def __init__(self, db: AsyncSession, storage: Optional[FileStorageService] = None):
        self.db = db
        self.storage = storage or file_storage_service

    # ===========================================
    # STARTUP
    # ===========================================

    async def get_startup(self, startup_id: uuid.UUID) -> Startup:
        startup = await self.db.get(Startup, startup_id)
        if not startup:
            raise StartupNotFoundException(startup_id)
        return startup

    # ===========================================
    # SHARES
    # ===========================================

    async def get_shares(self, startup_id: uuid.UUID) -> Optional[StartupShares]:
        result = await self.db.execute(
            select(StartupShares).where(StartupShares.startup_id == startup_id)
        )
        return result.scalar_one_or_none()

    async def get_total_shares(self, startup_id: uuid.UUID) -> int:
        shares = await self.get_shares(startup_id)
        return shares.total_shares if shares else 0

    async def get_esop_reserved_shares(self, startup_id: uuid.UUID) -> int:
        shares = await self.get_shares(startup_id)
        return shares.esop_reserved_shares if shares else 0

    async def _get_or_create_shares(self, startup_id: uuid.UUID, **defaults) -> StartupShares:
        shares = await self.get_shares(startup_id)
        if shares is None:
            await self.get_startup(startup_id)
            shares = StartupShares(
                startup_id=startup_id,
                total_shares=defaults.get("total_shares", 0),
                esop_reserved_shares=0,
                price_per_share=ZERO,
            )
            self.db.add(shares)
        return shares

    async def upsert_esop_reserved_shares(self, startup_id: uuid.UUID, reserved_shares: Any) -> StartupShares:
        """
        Set the ESOP pool size.

        Raises:
            InvalidAmountException: negative or non-numeric value
            ReservedSharesExceededException: pool larger than the share count
        """
        reserved = self._parse_share_count(reserved_shares, "esop_reserved_shares", "ESOP reserved shares")

        shares = await self._get_or_create_shares(startup_id)
        if shares.total_shares > 0 and reserved > shares.total_shares:
            raise ReservedSharesExceededException(reserved, shares.total_shares)

        shares.esop_reserved_shares = reserved
        await self.db.commit()
        await self.db.refresh(shares)

        logger.info(f"ESOP reserved shares for startup {startup_id} set to {reserved}")
        return shares

    async def upsert_total_shares(self, startup_id: uuid.UUID, total_shares: Any) -> StartupShares:
        total = self._parse_share_count(total_shares, "total_shares", "Total shares")

        shares = await self._get_or_create_shares(startup_id)
        if total > 0 and shares.esop_reserved_shares > total:
            raise ReservedSharesExceededException(shares.esop_reserved_shares, total)

        shares.total_shares = total
        await self.db.commit()
        await self.db.refresh(shares)
        return shares

    async def upsert_price_per_share(self, startup_id: uuid.UUID, price_per_share: Any) -> StartupShares:
        """Set the price-per-share; a new share row starts at the default share count."""
        try:
            price = Decimal(str(price_per_share))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidAmountException(
                price_per_share, "price_per_share",
                message="Price per share must be a non-negative number",
            )
        if not price.is_finite() or price < 0:
            raise InvalidAmountException(
                price_per_share, "price_per_share",
                message="Price per share must be a non-negative number",
            )

        shares = await self._get_or_create_shares(startup_id, total_shares=DEFAULT_TOTAL_SHARES)
        shares.price_per_share = price.quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)
        await self.db.commit()
        await self.db.refresh(shares)
        return shares

    @staticmethod
    def _parse_share_count(value: Any, field: str, label: str) -> int:
        message = f"{label} must be a non-negative number"
        try:
            count = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidAmountException(value, field, message=message)
        if not count.is_finite() or count < 0 or count != count.to_integral_value():
            raise InvalidAmountException(value, field, message=message)
        return int(count)

    # ===========================================
    # PRICE PER SHARE
    # ===========================================

    async def resolve_price_per_share(self, startup_id: uuid.UUID) -> Decimal:
        """
        Current price-per-share.

        Uses the stored price when positive. Otherwise derives it from the
        latest round's post-money valuation (or the profile valuation) over
        the share count, and stores the result.
        """
        shares = await self.get_shares(startup_id)
        if shares and to_decimal(shares.price_per_share) > 0:
            return to_decimal(shares.price_per_share)

        total_shares = shares.total_shares if shares else 0
        if total_shares <= 0:
            return ZERO

        latest = await self.get_latest_investment(startup_id)
        valuation = to_decimal(latest.post_money_valuation) if latest else ZERO
        if valuation <= 0:
            startup = await self.get_startup(startup_id)
            valuation = to_decimal(startup.current_valuation)
        if valuation <= 0:
            return ZERO

        price = (valuation / Decimal(total_shares)).quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)
        shares.price_per_share = price
        await self.db.commit()
        logger.info(f"Derived price per share {price} for startup {startup_id}")
        return price

    async def get_valuation_price(self, startup: Startup) -> Decimal:
        """Price used to value the ESOP pool: cap table, then profile, else 0."""
        shares = await self.get_shares(startup.id)
        if shares and to_decimal(shares.price_per_share) > 0:
            return to_decimal(shares.price_per_share)
        return to_decimal(startup.price_per_share)

    # ===========================================
    # INVESTMENTS
    # ===========================================

    async def list_investments(self, startup_id: uuid.UUID) -> List[InvestmentRecord]:
        """Investment records, newest first."""
        result = await self.db.execute(
            select(InvestmentRecord)
            .where(InvestmentRecord.startup_id == startup_id)
            .order_by(InvestmentRecord.investment_date.desc(), InvestmentRecord.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_latest_investment(self, startup_id: uuid.UUID) -> Optional[InvestmentRecord]:
        investments = await self.list_investments(startup_id)
        return investments[0] if investments else None

    async def add_investment(self, startup_id: uuid.UUID, data: Dict[str, Any]) -> InvestmentRecord:
        """
        Record an investment round.

        Price-per-share is derived from amount/shares and post-money from
        pre-money + amount when they are not supplied.
        """
        await self.get_startup(startup_id)

        investment_date = validate_investment_date(data.get("investment_date"))
        investor_name = (data.get("investor_name") or "").strip()
        if not investor_name:
            raise ValidationException("Investor name is required", field="investor_name")
        amount = validate_amount(data.get("amount"), "amount", allow_zero=False)

        shares = int(data.get("shares") or 0)
        if shares < 0:
            raise InvalidAmountException(shares, "shares")
        price_per_share = validate_amount(data.get("price_per_share") or 0, "price_per_share")
        if price_per_share == 0 and shares > 0:
            price_per_share = (amount / shares).quantize(PRICE_PRECISION, rounding=ROUND_HALF_UP)

        pre_money = validate_amount(data.get("pre_money_valuation") or 0, "pre_money_valuation")
        post_money = validate_amount(data.get("post_money_valuation") or 0, "post_money_valuation")
        if post_money == 0 and pre_money > 0:
            post_money = pre_money + amount

        record = InvestmentRecord(
            startup_id=startup_id,
            investment_date=investment_date,
            investor_type=InvestorType(data.get("investor_type") or InvestorType.ANGEL),
            investment_type=InvestmentType(data.get("investment_type") or InvestmentType.EQUITY),
            investor_name=investor_name,
            investor_code=data.get("investor_code"),
            amount=amount,
            equity_allocated=validate_amount(data.get("equity_allocated") or 0, "equity_allocated"),
            pre_money_valuation=pre_money,
            post_money_valuation=post_money,
            shares=shares,
            price_per_share=price_per_share,
            proof_url=data.get("proof_url"),
        )
        self.db.add(record)
        await self.db.commit()
        await self.db.refresh(record)

        logger.info(f"Investment of {amount} from {investor_name} recorded for startup {startup_id}")
        return record

    async def delete_investment(self, startup_id: uuid.UUID, investment_id: uuid.UUID) -> InvestmentRecord:
        result = await self.db.execute(
            select(InvestmentRecord).where(
                InvestmentRecord.id == investment_id,
                InvestmentRecord.startup_id == startup_id,
            )
        )
        record = result.scalar_one_or_none()
        if not record:
            raise InvestmentNotFoundException(investment_id)
        proof_url = record.proof_url

        await self.db.delete(record)
        await self.db.commit()

        await self.storage.delete_file(proof_url)
        return record

    async def upload_proof(
        self,
        startup_id: uuid.UUID,
        file_content: bytes,
        filename: str,
        content_type: Optional[str],
    ) -> Dict[str, Any]:
        """Store a proof document; the returned url goes into the investment's proof_url."""
        await self.get_startup(startup_id)
        return await self.storage.upload_file(
            startup_id, file_content, filename, content_type, FileCategory.INVESTMENT_PROOF,
        )

    async def get_total_funding(self, startup: Startup) -> Decimal:
        """Sum of investment rounds, falling back to the profile's stored total."""
        investments = await self.list_investments(startup.id)
        return reconcile_total_funding(
            (i.amount for i in investments),
            startup.total_funding,
        )

    async def get_investor_names(self, startup_id: uuid.UUID) -> List[str]:
        names = []
        for investment in await self.list_investments(startup_id):
            if investment.investor_name not in names:
                names.append(investment.investor_name)
        return names
