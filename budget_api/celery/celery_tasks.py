import asyncio

from celery.utils.log import get_task_logger

from budget_api.celery.celery_app import celery_app
from budget_api.db import AsyncSessionLocal
from budget_api.services.plaid_service import sync_all_items


@celery_app.task(bind=True, max_retries=3)
def sync_plaid_transactions(self):
    """
    Pull recent transactions for every active Plaid item.

    Per-item failures are recorded on the item and do not fail the task;
    anything else (database down, broker hiccup) is retried.
    """
    logger = get_task_logger(__name__)

    async def inner():
        async with AsyncSessionLocal() as db:
            return await sync_all_items(db)

    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

    try:
        summary = loop.run_until_complete(inner())
    except Exception as e:
        logger.error(f"Plaid sync run failed: {e}")
        raise self.retry(exc=e, countdown=300)

    logger.info(
        f"Plaid sync finished: {summary['synced']} of {summary['items']} items synced, {summary['failed']} failed"
    )
    return summary
