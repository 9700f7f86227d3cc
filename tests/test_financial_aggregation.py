"""
TrackMyStartup - Financial Aggregation Tests

Unit tests for chart buckets, vertical rollups and funding reconciliation.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from app.models.financial_record import FinancialRecordType
from app.services.financial_aggregation import (
    MONTH_LABELS,
    available_funds,
    monthly_buckets,
    reconcile_total_funding,
    resolve_chart_year,
    sum_by_type,
    vertical_totals,
    year_options,
)


def record(record_type, record_date, amount, vertical="General"):
    return SimpleNamespace(
        record_type=record_type,
        record_date=record_date,
        amount=Decimal(amount),
        vertical=vertical,
    )


REVENUE = FinancialRecordType.REVENUE
EXPENSE = FinancialRecordType.EXPENSE


class TestMonthlyBuckets:

    def test_twelve_fixed_buckets(self):
        buckets = monthly_buckets([], 2024)

        assert [b["month"] for b in buckets] == MONTH_LABELS
        assert all(b["revenue"] == 0 and b["expenses"] == 0 for b in buckets)

    def test_splits_revenue_and_expenses(self):
        records = [
            record(REVENUE, date(2024, 1, 5), "100"),
            record(EXPENSE, date(2024, 1, 20), "40"),
            record(EXPENSE, date(2024, 3, 1), "60"),
            record(REVENUE, date(2023, 1, 1), "999"),
        ]
        buckets = monthly_buckets(records, 2024)

        assert buckets[0]["revenue"] == Decimal("100")
        assert buckets[0]["expenses"] == Decimal("40")
        assert buckets[2]["expenses"] == Decimal("60")
        assert sum(b["revenue"] for b in buckets) == Decimal("100")


class TestVerticalTotals:

    def test_groups_and_sorts_descending(self):
        records = [
            record(EXPENSE, date(2024, 1, 1), "50", "Marketing"),
            record(EXPENSE, date(2024, 1, 2), "200", "Operations"),
            record(EXPENSE, date(2024, 1, 3), "100", "Marketing"),
            record(REVENUE, date(2024, 1, 4), "1000", "Sales"),
        ]

        assert vertical_totals(records, EXPENSE) == [
            {"name": "Operations", "value": Decimal("200")},
            {"name": "Marketing", "value": Decimal("150")},
        ]
        assert vertical_totals(records, REVENUE) == [{"name": "Sales", "value": Decimal("1000")}]

    def test_sum_by_type(self):
        records = [
            record(EXPENSE, date(2024, 1, 1), "50"),
            record(EXPENSE, date(2024, 2, 1), "25.50"),
            record(REVENUE, date(2024, 3, 1), "500"),
        ]

        assert sum_by_type(records, EXPENSE) == Decimal("75.50")
        assert sum_by_type([], REVENUE) == Decimal("0")


class TestFunding:

    def test_investments_take_precedence(self):
        assert reconcile_total_funding([Decimal("100"), Decimal("200")], Decimal("5000")) == Decimal("300")

    def test_falls_back_to_stored_total(self):
        assert reconcile_total_funding([], Decimal("5000")) == Decimal("5000")

    def test_available_funds_can_go_negative(self):
        assert available_funds(Decimal("1000"), Decimal("1500")) == Decimal("-500")


class TestYears:

    def test_all_resolves_to_current_year(self):
        assert resolve_chart_year("all", today=date(2025, 6, 1)) == 2025
        assert resolve_chart_year(None, today=date(2025, 6, 1)) == 2025

    def test_explicit_year(self):
        assert resolve_chart_year("2023") == 2023
        assert resolve_chart_year(2022) == 2022

    def test_options_from_registration_date(self):
        options = year_options(date(2022, 5, 1), today=date(2024, 1, 1))
        assert options == ["all", 2024, 2023, 2022]

    def test_options_from_records_without_registration(self):
        assert year_options(None, [2021, 2023, 2021]) == ["all", 2023, 2021]
