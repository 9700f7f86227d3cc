"""
TrackMyStartup - Background Tasks Package

Celery background tasks.
"""

from app.tasks.celery_tasks import refresh_employee_ledgers

__all__ = [
    "refresh_employee_ledgers",
]
