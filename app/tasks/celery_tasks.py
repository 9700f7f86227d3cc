"""
TrackMyStartup - Celery Tasks

Background tasks for scheduled operations.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Dict, Optional

from celery import shared_task
from sqlalchemy import select

from app.database import async_session_maker

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper to run async functions in Celery tasks."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


# ===========================================
# LEDGER TASKS
# ===========================================

@shared_task(name='app.tasks.celery_tasks.refresh_employee_ledgers')
def refresh_employee_ledgers(end: Optional[str] = None) -> Dict[str, Any]:
    """Fill ledger gaps for every employee of every startup."""
    return run_async(_refresh_employee_ledgers(
        end=date.fromisoformat(end) if end else None,
    ))


async def _refresh_employee_ledgers(
    end: Optional[date] = None,
    session_factory: Callable = async_session_maker,
) -> Dict[str, Any]:
    """Async implementation of the ledger refresh."""
    from app.models.startup import Startup
    from app.services.employee_service import EmployeeService

    async with session_factory() as db:
        result = await db.execute(select(Startup.id))
        startup_ids = list(result.scalars().all())

        entries_created = 0
        for startup_id in startup_ids:
            entries_created += await EmployeeService(db).generate_startup_ledger(startup_id, end)

    logger.info(f"Ledger refresh: {entries_created} entries across {len(startup_ids)} startups")
    return {
        "startups_processed": len(startup_ids),
        "entries_created": entries_created,
    }
