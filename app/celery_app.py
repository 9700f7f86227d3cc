"""
TrackMyStartup - Celery Configuration

Celery configuration for background task processing.
Uses Redis as the message broker and result backend.
"""

from celery import Celery
from celery.schedules import crontab

from app.config import settings


# Create Celery app
celery_app = Celery(
    'trackmystartup',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['app.tasks.celery_tasks'],
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',

    timezone='UTC',
    enable_utc=True,

    # Task execution settings
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=600,  # 10 minutes
    task_soft_time_limit=540,

    # Worker settings
    worker_prefetch_multiplier=1,

    # Result backend settings
    result_expires=86400,  # 24 hours

    # Beat schedule for periodic tasks
    beat_schedule={
        # Add the new month's ledger rows shortly after midnight on the 1st
        'refresh-employee-ledgers': {
            'task': 'app.tasks.celery_tasks.refresh_employee_ledgers',
            'schedule': crontab(day_of_month=1, hour=0, minute=30),
        },
    },
)
