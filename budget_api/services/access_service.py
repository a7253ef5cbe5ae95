"""
Membership and role checks shared by the account-scoped services.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.exceptions import BadRequestError, ForbiddenError, NotFoundError
from budget_api.models import BudgetAccount, BudgetAccountMember, MemberRole, User


async def get_membership(
    db: AsyncSession, budget_account_id: str, user_id: str
) -> Optional[BudgetAccountMember]:
    result = await db.execute(
        select(BudgetAccountMember).where(
            BudgetAccountMember.budget_account_id == budget_account_id,
            BudgetAccountMember.user_id == user_id,
        )
    )
    return result.scalars().first()


async def require_member(
    db: AsyncSession,
    budget_account_id: str,
    user_id: str,
    message: str = "Not authorized",
) -> BudgetAccountMember:
    """Return the caller's membership or raise 403 with ``message``."""
    membership = await get_membership(db, budget_account_id, user_id)
    if membership is None:
        raise ForbiddenError(message)
    return membership


async def require_owner(db: AsyncSession, budget_account_id: str, user_id: str) -> BudgetAccountMember:
    membership = await get_membership(db, budget_account_id, user_id)
    if membership is None or membership.role != MemberRole.OWNER:
        raise ForbiddenError("Not authorized")
    return membership


async def get_account_or_404(db: AsyncSession, budget_account_id: str) -> BudgetAccount:
    account = await db.get(BudgetAccount, budget_account_id)
    if account is None:
        raise NotFoundError("Budget account not found")
    return account


def require_default_account_id(user: User) -> str:
    """The caller's default budget account id, or 400 when none is set."""
    if not user.default_budget_account_id:
        raise BadRequestError("No default budget account found")
    return user.default_budget_account_id


async def resolve_account_id(
    db: AsyncSession, user: User, budget_account_id: Optional[str] = None
) -> str:
    """
    Pick the account an action runs against.

    An explicit id must belong to an account the caller is a member of;
    otherwise the caller's default account is used.
    """
    if budget_account_id:
        await require_member(db, budget_account_id, user.id)
        return budget_account_id

    account_id = user.default_budget_account_id
    if not account_id:
        raise NotFoundError("Budget account not found")
    await require_member(db, account_id, user.id)
    return account_id
