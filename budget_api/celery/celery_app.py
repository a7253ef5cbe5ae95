"""
Celery application configuration for background bank syncs.
"""
from celery import Celery
from celery.schedules import crontab

from budget_api.config import settings

celery_app = Celery(
    'budget_api',
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=['budget_api.celery.celery_tasks']
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,
    task_track_started=True,
    task_time_limit=3600,
    task_soft_time_limit=3300,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=50,
    broker_connection_retry_on_startup=True,
    result_expires=3600,
)

celery_app.conf.beat_schedule = {
    'plaid-transaction-sync': {
        'task': 'budget_api.celery.celery_tasks.sync_plaid_transactions',
        'schedule': crontab(minute=0, hour='*/6'),
    },
}

celery_app.conf.task_routes = {
    'budget_api.celery.celery_tasks.sync_plaid_transactions': {'queue': 'bank_sync'},
}
