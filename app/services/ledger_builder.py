"""
TrackMyStartup - Employee Ledger Builder

Replays an employee's term history (hire terms, then increments in
effective-date order) into one ledger row per calendar month.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterator, List, Optional, Sequence

from app.models.employee import AllocationType
from app.services.esop_calculator import (
    ZERO,
    calculate_number_of_shares,
    per_period_allocation,
    to_decimal,
)


@dataclass(frozen=True)
class EsopTerms:
    """Salary and ESOP terms in force from `effective_date`."""
    effective_date: date
    salary: Decimal
    esop_allocation: Decimal
    allocation_type: AllocationType
    esop_per_allocation: Decimal
    price_per_share: Decimal

    @classmethod
    def from_record(cls, record, effective_date: Optional[date] = None) -> "EsopTerms":
        """Build from an Employee (pass its joining date) or a SalaryIncrement."""
        return cls(
            effective_date=effective_date or record.effective_date,
            salary=to_decimal(record.salary),
            esop_allocation=to_decimal(record.esop_allocation),
            allocation_type=AllocationType(record.allocation_type),
            esop_per_allocation=to_decimal(record.esop_per_allocation),
            price_per_share=to_decimal(record.price_per_share),
        )

    @property
    def period_amount(self) -> Decimal:
        if self.esop_per_allocation > 0:
            return self.esop_per_allocation
        return per_period_allocation(self.esop_allocation, self.allocation_type)


@dataclass(frozen=True)
class LedgerRow:
    ledger_date: date
    salary: Decimal
    esop_allocated: Decimal
    price_per_share: Decimal
    number_of_shares: int


def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=monthrange(day.year, day.month)[1])


def iter_month_starts(start: date, end: date) -> Iterator[date]:
    """First day of every month from start's month through end's month."""
    current = month_start(start)
    while current <= end:
        yield current
        if current.month == 12:
            current = date(current.year + 1, 1, 1)
        else:
            current = date(current.year, current.month + 1, 1)


def months_between(earlier: date, later: date) -> int:
    return (later.year - earlier.year) * 12 + later.month - earlier.month


def terms_in_force(history: Sequence[EsopTerms], on: date) -> Optional[EsopTerms]:
    """Latest terms effective on or before `on`; history must be sorted."""
    current = None
    for terms in history:
        if terms.effective_date > on:
            break
        current = terms
    return current


def esop_granted(terms: EsopTerms, period_start: date) -> Decimal:
    """ESOP granted in the month starting `period_start` under `terms`."""
    elapsed = months_between(terms.effective_date, period_start)
    if elapsed < 0:
        return ZERO

    allocation_type = terms.allocation_type
    if allocation_type == AllocationType.MONTHLY:
        return terms.period_amount
    if allocation_type == AllocationType.QUARTERLY:
        return terms.period_amount if elapsed % 3 == 0 else ZERO
    if allocation_type == AllocationType.ANNUALLY:
        return terms.period_amount if elapsed % 12 == 0 else ZERO
    return terms.esop_allocation if elapsed == 0 else ZERO


def superseded_one_time_grants(history: Sequence[EsopTerms], period_start: date) -> List[EsopTerms]:
    """
    One-time terms that took effect in the month but were replaced before
    its end. Their grants still land in that month.
    """
    end = month_end(period_start)
    current = terms_in_force(history, end)
    return [
        terms for terms in history
        if terms is not current
        and period_start <= terms.effective_date <= end
        and terms.allocation_type == AllocationType.ONE_TIME
    ]


def build_ledger(
    history: Sequence[EsopTerms],
    end: date,
    termination_date: Optional[date] = None,
) -> List[LedgerRow]:
    """
    Monthly ledger from the first terms' month to `end`.

    Rows stop at the termination month. Each row carries the salary and
    price in force by the end of its month and the ESOP granted in that
    month, including one-time grants from terms replaced mid-month. Shares
    are counted at each grant's own price.
    """
    if not history:
        return []

    history = sorted(history, key=lambda t: t.effective_date)
    if termination_date and termination_date < end:
        end = termination_date

    rows = []
    for period_start in iter_month_starts(history[0].effective_date, end):
        terms = terms_in_force(history, month_end(period_start))
        grants = [(t.esop_allocation, t.price_per_share) for t in superseded_one_time_grants(history, period_start)]
        grants.append((esop_granted(terms, period_start), terms.price_per_share))

        rows.append(LedgerRow(
            ledger_date=period_start,
            salary=terms.salary,
            esop_allocated=sum((amount for amount, _ in grants), ZERO),
            price_per_share=terms.price_per_share,
            number_of_shares=sum(calculate_number_of_shares(amount, price) for amount, price in grants),
        ))
    return rows
