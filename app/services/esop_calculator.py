"""
TrackMyStartup - ESOP Calculator

Business rules for the employee stock option pool:
- Share derivation: floor(allocation / price per share)
- Allocation periods: monthly 12, quarterly 4, annually 1, one-time 1
- Pool valuation: reserved value vs allocated value
- Allocation guard: current + proposed must stay within the reserved value
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP
from typing import Any, List

from app.models.employee import AllocationType
from app.utils.error_handling import EsopAllocationException, EsopNotReservedException

logger = logging.getLogger(__name__)


# ===========================================
# CONSTANTS
# ===========================================

ZERO = Decimal("0")
CENTS = Decimal("0.01")

ALLOCATION_PERIODS = {
    AllocationType.MONTHLY: 12,
    AllocationType.QUARTERLY: 4,
    AllocationType.ANNUALLY: 1,
    AllocationType.ONE_TIME: 1,
}

# Months in which a quarterly grant vests for expense purposes
QUARTER_START_MONTHS = (1, 4, 7, 10)


def to_decimal(value: Any) -> Decimal:
    """Coerce numbers (including None) to Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def calculate_number_of_shares(allocation: Any, price_per_share: Any) -> int:
    """Whole shares an allocation buys; 0 unless both inputs are positive."""
    allocation = to_decimal(allocation)
    price_per_share = to_decimal(price_per_share)
    if allocation <= 0 or price_per_share <= 0:
        return 0
    return int((allocation / price_per_share).to_integral_value(rounding=ROUND_FLOOR))


def allocation_periods(allocation_type: AllocationType) -> int:
    return ALLOCATION_PERIODS[AllocationType(allocation_type)]


def per_period_allocation(allocation: Any, allocation_type: AllocationType) -> Decimal:
    """Allocation granted per period, rounded to cents."""
    periods = allocation_periods(allocation_type)
    return (to_decimal(allocation) / periods).quantize(CENTS, rounding=ROUND_HALF_UP)


def split_allocation(allocation: Any, allocation_type: AllocationType) -> List[Decimal]:
    """
    Split an allocation into its periods.

    Every period gets the cent-rounded per-period amount except the last,
    which absorbs the rounding so the parts always sum to the allocation.
    """
    allocation = to_decimal(allocation)
    periods = allocation_periods(allocation_type)
    part = per_period_allocation(allocation, allocation_type)
    parts = [part] * (periods - 1)
    parts.append(allocation - part * (periods - 1))
    return parts


def monthly_recurring_esop(allocation: Any, allocation_type: AllocationType, month: int) -> Decimal:
    """
    ESOP expense recognised in a calendar month.

    Monthly grants spread over twelve months, quarterly grants land in the
    first month of each quarter, annual grants land in January. One-time
    grants are not a recurring expense.
    """
    allocation = to_decimal(allocation)
    allocation_type = AllocationType(allocation_type)

    if allocation_type == AllocationType.MONTHLY:
        return allocation / 12
    if allocation_type == AllocationType.QUARTERLY:
        return allocation / 4 if month in QUARTER_START_MONTHS else ZERO
    if allocation_type == AllocationType.ANNUALLY:
        return allocation if month == 1 else ZERO
    return ZERO


# ===========================================
# POOL VALUATION
# ===========================================

@dataclass
class EsopPosition:
    """Reserved pool versus shares already granted, valued at one price."""
    reserved_shares: int
    allocated_shares: int
    price_per_share: Decimal

    @property
    def reserved_value(self) -> Decimal:
        return Decimal(self.reserved_shares) * to_decimal(self.price_per_share)

    @property
    def allocated_value(self) -> Decimal:
        return Decimal(self.allocated_shares) * to_decimal(self.price_per_share)

    @property
    def available_value(self) -> Decimal:
        return max(self.reserved_value - self.allocated_value, ZERO)

    @property
    def is_over_allocated(self) -> bool:
        if to_decimal(self.price_per_share) <= 0:
            return False
        return self.allocated_value > self.reserved_value

    @property
    def esop_percentage(self) -> str:
        """
        Share of the pool used, formatted for display.

        "N/A" means shares were granted without any reserved pool.
        """
        reserved = self.reserved_shares
        allocated = self.allocated_shares

        if reserved > 0 and allocated > 0:
            if to_decimal(self.price_per_share) > 0:
                ratio = self.allocated_value / self.reserved_value * 100
                return str(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
            return "100.0"
        if reserved == 0 and allocated > 0:
            return "N/A"
        return "0"

    def to_dict(self) -> dict:
        return {
            "reserved_shares": self.reserved_shares,
            "allocated_shares": self.allocated_shares,
            "price_per_share": to_decimal(self.price_per_share),
            "reserved_value": self.reserved_value,
            "allocated_value": self.allocated_value,
            "available_value": self.available_value,
            "esop_percentage": self.esop_percentage,
            "is_over_allocated": self.is_over_allocated,
        }


# ===========================================
# ALLOCATION GUARD
# ===========================================

def check_allocation(
    current_allocated: Any,
    proposed: Any,
    reserved_shares: int,
    price_per_share: Any,
) -> None:
    """
    Reject an allocation the pool cannot cover.

    Raises:
        EsopNotReservedException: a positive allocation with no reserved shares
        EsopAllocationException: current + proposed exceeds reserved value
    """
    current_allocated = to_decimal(current_allocated)
    proposed = to_decimal(proposed)
    price_per_share = to_decimal(price_per_share)
    reserved_value = Decimal(reserved_shares) * price_per_share

    if proposed > 0 and reserved_shares == 0:
        logger.info("Rejected ESOP allocation of %s: no reserved pool", proposed)
        raise EsopNotReservedException(proposed)

    if price_per_share > 0 and reserved_value > 0 and current_allocated + proposed > reserved_value:
        logger.info(
            "Rejected ESOP allocation of %s: current %s, reserved value %s",
            proposed, current_allocated, reserved_value,
        )
        raise EsopAllocationException(current_allocated, proposed, reserved_value)
