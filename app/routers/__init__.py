"""
TrackMyStartup - Routers Package

FastAPI route handlers.

Routers:
- auth: Sign-in, session restore, password recovery
- startups: Startup profile and subsidiaries
- employees: Employee register, increments, ledger, ESOP position
- financials: Expense and revenue register with charts
- cap_table: Share structure and investment records
"""

from app.routers import (
    auth,
    startups,
    employees,
    financials,
    cap_table,
)

__all__ = [
    "auth",
    "startups",
    "employees",
    "financials",
    "cap_table",
]
