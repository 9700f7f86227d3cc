"""
TrackMyStartup - Financial Aggregation

Chart and summary arithmetic over financial records:
- Fixed Jan-Dec monthly buckets split into revenue and expenses
- Vertical (category) rollups sorted by value
- Funding reconciliation against investment records
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Union

from app.models.financial_record import FinancialRecordType
from app.services.esop_calculator import ZERO, to_decimal


MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]

ALL = "all"


def resolve_chart_year(year: Union[str, int, None], today: Optional[date] = None) -> int:
    """Charts need a concrete year; "all" (or nothing) means the current one."""
    if year is None or str(year).lower() == ALL:
        return (today or date.today()).year
    return int(year)


def monthly_buckets(records: Iterable[Any], year: int) -> List[Dict[str, Any]]:
    """
    Twelve buckets for `year`, each with revenue and expenses totals.

    Records from other years are ignored.
    """
    buckets = [
        {"month": label, "revenue": ZERO, "expenses": ZERO}
        for label in MONTH_LABELS
    ]
    for record in records:
        if record.record_date.year != year:
            continue
        bucket = buckets[record.record_date.month - 1]
        key = "revenue" if record.record_type == FinancialRecordType.REVENUE else "expenses"
        bucket[key] += to_decimal(record.amount)
    return buckets


def vertical_totals(
    records: Iterable[Any],
    record_type: FinancialRecordType,
) -> List[Dict[str, Any]]:
    """Totals per vertical for one record type, largest first."""
    totals: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for record in records:
        if record.record_type == record_type:
            totals[record.vertical] += to_decimal(record.amount)
    return [
        {"name": vertical, "value": value}
        for vertical, value in sorted(totals.items(), key=lambda item: item[1], reverse=True)
    ]


def sum_by_type(records: Iterable[Any], record_type: FinancialRecordType) -> Decimal:
    return sum(
        (to_decimal(r.amount) for r in records if r.record_type == record_type),
        ZERO,
    )


def reconcile_total_funding(investment_amounts: Iterable[Any], stored_total: Any) -> Decimal:
    """Sum of investment rounds, or the profile's stored total when there are none."""
    total = sum((to_decimal(a) for a in investment_amounts), ZERO)
    if total > 0:
        return total
    return to_decimal(stored_total)


def available_funds(total_funding: Any, total_expenses: Any) -> Decimal:
    return to_decimal(total_funding) - to_decimal(total_expenses)


def year_options(
    registration_date: Optional[date],
    record_years: Iterable[int] = (),
    today: Optional[date] = None,
) -> List[Union[str, int]]:
    """
    Selector values: "all" then years, newest first.

    With a registration date the years run from the current year down to
    the registration year; otherwise the years present in the records.
    """
    current_year = (today or date.today()).year
    if registration_date:
        years = list(range(current_year, registration_date.year - 1, -1))
    else:
        years = sorted(set(record_years), reverse=True)
    return [ALL] + years
