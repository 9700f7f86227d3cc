"""
TrackMyStartup - Ledger Builder Tests

Unit tests for replaying term history into monthly ledger rows.
"""

from datetime import date
from decimal import Decimal

from app.models.employee import AllocationType
from app.services.ledger_builder import (
    EsopTerms,
    build_ledger,
    iter_month_starts,
    month_end,
    months_between,
    terms_in_force,
)


def make_terms(
    effective_date,
    salary="120000",
    allocation="1200",
    allocation_type=AllocationType.MONTHLY,
    per_allocation="0",
    price="10",
):
    return EsopTerms(
        effective_date=effective_date,
        salary=Decimal(salary),
        esop_allocation=Decimal(allocation),
        allocation_type=allocation_type,
        esop_per_allocation=Decimal(per_allocation),
        price_per_share=Decimal(price),
    )


class TestCalendarHelpers:

    def test_month_end_handles_leap_year(self):
        assert month_end(date(2024, 2, 10)) == date(2024, 2, 29)

    def test_iter_month_starts_crosses_year(self):
        months = list(iter_month_starts(date(2023, 11, 15), date(2024, 2, 1)))
        assert months == [date(2023, 11, 1), date(2023, 12, 1), date(2024, 1, 1), date(2024, 2, 1)]

    def test_months_between(self):
        assert months_between(date(2023, 11, 30), date(2024, 2, 1)) == 3

    def test_terms_in_force_picks_latest_effective(self):
        history = [make_terms(date(2024, 1, 1)), make_terms(date(2024, 6, 1), salary="150000")]

        assert terms_in_force(history, date(2024, 5, 31)).salary == Decimal("120000")
        assert terms_in_force(history, date(2024, 6, 1)).salary == Decimal("150000")
        assert terms_in_force(history, date(2023, 12, 31)) is None


class TestBuildLedger:
    """One row per month from the first terms to the end date."""

    def test_empty_history(self):
        assert build_ledger([], date(2024, 12, 31)) == []

    def test_monthly_grant_every_month(self):
        rows = build_ledger([make_terms(date(2024, 1, 15))], date(2024, 3, 31))

        assert [r.ledger_date for r in rows] == [date(2024, 1, 1), date(2024, 2, 1), date(2024, 3, 1)]
        assert all(r.esop_allocated == Decimal("100.00") for r in rows)
        assert all(r.number_of_shares == 10 for r in rows)

    def test_quarterly_grant_every_third_month(self):
        terms = make_terms(date(2024, 1, 10), allocation_type=AllocationType.QUARTERLY)
        rows = build_ledger([terms], date(2024, 6, 30))

        granted = [r.esop_allocated for r in rows]
        assert granted == [
            Decimal("300.00"), Decimal("0"), Decimal("0"),
            Decimal("300.00"), Decimal("0"), Decimal("0"),
        ]

    def test_one_time_grant_in_first_month_only(self):
        terms = make_terms(date(2024, 1, 1), allocation="500", allocation_type=AllocationType.ONE_TIME)
        rows = build_ledger([terms], date(2024, 4, 30))

        assert rows[0].esop_allocated == Decimal("500")
        assert rows[0].number_of_shares == 50
        assert all(r.esop_allocated == Decimal("0") for r in rows[1:])

    def test_explicit_per_allocation_wins(self):
        terms = make_terms(date(2024, 1, 1), per_allocation="150")
        rows = build_ledger([terms], date(2024, 1, 31))

        assert rows[0].esop_allocated == Decimal("150")

    def test_increment_applies_from_its_month(self):
        history = [
            make_terms(date(2024, 1, 1), salary="60000"),
            make_terms(date(2024, 3, 20), salary="90000", price="20"),
        ]
        rows = build_ledger(history, date(2024, 4, 30))

        assert [r.salary for r in rows] == [
            Decimal("60000"), Decimal("60000"), Decimal("90000"), Decimal("90000"),
        ]
        assert rows[2].price_per_share == Decimal("20")
        assert rows[2].number_of_shares == 5

    def test_history_order_does_not_matter(self):
        history = [
            make_terms(date(2024, 3, 1), salary="90000"),
            make_terms(date(2024, 1, 1), salary="60000"),
        ]
        rows = build_ledger(history, date(2024, 3, 31))

        assert rows[0].ledger_date == date(2024, 1, 1)
        assert rows[-1].salary == Decimal("90000")

    def test_stops_at_termination_month(self):
        rows = build_ledger(
            [make_terms(date(2024, 1, 1))],
            date(2024, 6, 30),
            termination_date=date(2024, 2, 10),
        )

        assert [r.ledger_date for r in rows] == [date(2024, 1, 1), date(2024, 2, 1)]

    def test_one_time_grant_survives_same_month_increment(self):
        history = [
            make_terms(date(2024, 1, 5), allocation="5000", allocation_type=AllocationType.ONE_TIME),
            make_terms(date(2024, 1, 20), salary="150000", allocation="0", allocation_type=AllocationType.ONE_TIME),
        ]
        rows = build_ledger(history, date(2024, 2, 29))

        assert rows[0].salary == Decimal("150000")
        assert rows[0].esop_allocated == Decimal("5000")
        assert rows[0].number_of_shares == 500
        assert rows[1].esop_allocated == Decimal("0")

    def test_superseded_grant_uses_its_own_price(self):
        history = [
            make_terms(date(2024, 1, 5), allocation="1000", allocation_type=AllocationType.ONE_TIME, price="10"),
            make_terms(date(2024, 1, 20), allocation="1000", allocation_type=AllocationType.ONE_TIME, price="20"),
        ]
        row = build_ledger(history, date(2024, 1, 31))[0]

        assert row.esop_allocated == Decimal("2000")
        assert row.number_of_shares == 100 + 50
        assert row.price_per_share == Decimal("20")

    def test_recurring_terms_replaced_mid_month_grant_once(self):
        history = [
            make_terms(date(2024, 1, 1), allocation="1200"),
            make_terms(date(2024, 2, 15), allocation="2400"),
        ]
        rows = build_ledger(history, date(2024, 2, 29))

        assert [r.esop_allocated for r in rows] == [Decimal("100"), Decimal("200")]
