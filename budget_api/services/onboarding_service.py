"""
First-run setup: pick a default budget account, optionally add a paycheck,
and mark the user as onboarded.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.logging_config import get_logger
from budget_api.models import User
from budget_api.services import account_service, income_service
from budget_api.services.access_service import require_member

logger = get_logger(__name__)


async def update_user_default_account(db: AsyncSession, user: User, account_id: str) -> dict:
    await require_member(db, account_id, user.id)
    user.default_budget_account_id = account_id
    await db.commit()
    return {"success": True}


async def complete_onboarding(db: AsyncSession, user: User) -> dict:
    user.onboarding_completed = True
    await db.commit()
    logger.info(f"User {user.id} completed onboarding")
    return {"success": True}


async def quick_complete_onboarding(
    db: AsyncSession,
    user: User,
    account_name: Optional[str] = None,
    account_description: Optional[str] = None,
    income_source: Optional[dict] = None,
) -> dict:
    """Run the whole onboarding flow in one call; every step is optional."""
    budget_account_id = None
    if account_name:
        budget_account_id = await account_service.create_account(db, user, account_name, account_description or "")
        await update_user_default_account(db, user, budget_account_id)

    if income_source:
        await income_service.create_income_source(db, user, income_source)

    await complete_onboarding(db, user)
    return {"success": True, "budget_account_id": budget_account_id}
