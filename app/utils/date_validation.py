"""
TrackMyStartup - Date Validation

Date rules applied before any record is persisted. Each validator raises
InvalidDateException with a user-facing message.
"""

from datetime import date
from typing import Optional

from app.utils.error_handling import InvalidDateException


def years_before(day: date, years: int) -> date:
    """Same calendar day `years` earlier (Feb 29 falls back to Feb 28)."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def _validate_past_date(
    value: Optional[date],
    label: str,
    field: str,
    max_years: int = 50,
    today: Optional[date] = None,
) -> date:
    if value is None:
        raise InvalidDateException(f"{label} is required", field=field)

    today = today or date.today()
    if value > today:
        raise InvalidDateException(f"{label} cannot be in the future", field=field)
    if value < years_before(today, max_years):
        raise InvalidDateException(
            f"{label} cannot be more than {max_years} years in the past",
            field=field,
        )
    return value


def validate_joining_date(
    joining_date: Optional[date],
    registration_date: Optional[date] = None,
    today: Optional[date] = None,
) -> date:
    """Joining date must be in the last 50 years and on or after company registration."""
    _validate_past_date(joining_date, "Joining date", "joining_date", today=today)
    if registration_date and joining_date < registration_date:
        raise InvalidDateException(
            "Employee joining date cannot be before the company registration date "
            f"({registration_date.isoformat()}). Please select a date on or after "
            "the registration date.",
            field="joining_date",
        )
    return joining_date


def validate_increment_date(
    increment_date: Optional[date],
    joining_date: Optional[date],
    today: Optional[date] = None,
) -> date:
    """Increment must fall within [joining date, today]."""
    if increment_date is None:
        raise InvalidDateException("Increment date is required", field="effective_date")
    if joining_date is None:
        raise InvalidDateException(
            "Employee joining date is required for validation",
            field="joining_date",
        )

    today = today or date.today()
    if increment_date > today:
        raise InvalidDateException("Increment date cannot be in the future", field="effective_date")
    if increment_date < joining_date:
        raise InvalidDateException(
            "Increment date cannot be before the employee's joining date "
            f"({joining_date.isoformat()}). Please select a date on or after the joining date.",
            field="effective_date",
        )
    return increment_date


def validate_termination_date(
    termination_date: Optional[date],
    joining_date: date,
    today: Optional[date] = None,
) -> date:
    if termination_date is None:
        raise InvalidDateException("Termination date is required", field="termination_date")

    today = today or date.today()
    if termination_date > today:
        raise InvalidDateException("Termination date cannot be in the future", field="termination_date")
    if termination_date < joining_date:
        raise InvalidDateException(
            "Termination date cannot be before the employee's joining date "
            f"({joining_date.isoformat()})",
            field="termination_date",
        )
    return termination_date


def validate_financial_record_date(record_date: Optional[date], today: Optional[date] = None) -> date:
    return _validate_past_date(record_date, "Financial record date", "date", today=today)


def validate_investment_date(investment_date: Optional[date], today: Optional[date] = None) -> date:
    return _validate_past_date(investment_date, "Investment date", "date", today=today)


def validate_registration_date(registration_date: Optional[date], today: Optional[date] = None) -> date:
    return _validate_past_date(
        registration_date,
        "Registration date",
        "registration_date",
        max_years=100,
        today=today,
    )
