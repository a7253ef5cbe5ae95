"""
Monthly budgets and their per-category allocations.
"""
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from budget_api.exceptions import NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import Budget, BudgetCategory, Category, User
from budget_api.services.access_service import require_member
from budget_api.utils.date_utils import month_label

logger = get_logger(__name__)

DEFAULT_CATEGORY_COLOR = "#64748B"


def serialize_budget_category(budget_category: BudgetCategory, category: Category) -> dict:
    return {
        "id": budget_category.id,
        "name": category.name,
        "amount": float(budget_category.amount),
        "color": category.color or DEFAULT_CATEGORY_COLOR,
    }


async def _get_budget_for_member(db: AsyncSession, user: User, budget_id: str) -> Budget:
    budget = await db.get(Budget, budget_id)
    if budget is None:
        raise NotFoundError("Budget not found")
    await require_member(db, budget.budget_account_id, user.id)
    return budget


async def _get_budget_category_for_member(db: AsyncSession, user: User, budget_category_id: str) -> BudgetCategory:
    result = await db.execute(
        select(BudgetCategory)
        .where(BudgetCategory.id == budget_category_id)
        .options(selectinload(BudgetCategory.category), selectinload(BudgetCategory.budget))
    )
    budget_category = result.scalar_one_or_none()
    if budget_category is None:
        raise NotFoundError("Budget category not found")
    await require_member(db, budget_category.budget.budget_account_id, user.id)
    return budget_category


async def get_budget(db: AsyncSession, user: User, account_id: str, year: int, month: int) -> Optional[Budget]:
    await require_member(db, account_id, user.id)
    result = await db.execute(
        select(Budget).where(
            Budget.budget_account_id == account_id,
            Budget.year == year,
            Budget.month == month,
        )
    )
    return result.scalar_one_or_none()


async def create_budget(
    db: AsyncSession,
    user: User,
    account_id: str,
    year: int,
    month: int,
    total_budget: Optional[float] = None,
) -> Budget:
    """Return the budget for the month, creating it on first use."""
    existing = await get_budget(db, user, account_id, year, month)
    if existing is not None:
        return existing

    budget = Budget(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        name=f"{month_label(year, month)} Budget",
        year=year,
        month=month,
        total_budget=total_budget,
    )
    db.add(budget)
    await db.commit()
    await db.refresh(budget)
    logger.info(f"Created budget {budget.id} for account {account_id} {year}-{month:02d}")
    return budget


async def update_budget(db: AsyncSession, user: User, budget_id: str, total_budget: float) -> Budget:
    budget = await _get_budget_for_member(db, user, budget_id)
    budget.total_budget = total_budget
    await db.commit()
    await db.refresh(budget)
    return budget


async def get_budget_categories(db: AsyncSession, user: User, budget_id: str) -> List[dict]:
    await _get_budget_for_member(db, user, budget_id)
    result = await db.execute(
        select(BudgetCategory, Category)
        .join(Category, BudgetCategory.category_id == Category.id)
        .where(BudgetCategory.budget_id == budget_id)
        .order_by(Category.name)
    )
    return [serialize_budget_category(bc, category) for bc, category in result.all()]


async def create_budget_category(db: AsyncSession, user: User, budget_id: str, name: str, amount: float) -> dict:
    """Allocate an amount to a category, creating the category by name if needed."""
    budget = await _get_budget_for_member(db, user, budget_id)

    result = await db.execute(
        select(Category).where(
            Category.budget_account_id == budget.budget_account_id,
            Category.name == name,
        )
    )
    category = result.scalars().first()
    if category is None:
        category = Category(id=str(uuid.uuid4()), budget_account_id=budget.budget_account_id, name=name)
        db.add(category)
        await db.flush()

    budget_category = BudgetCategory(
        id=str(uuid.uuid4()),
        budget_id=budget_id,
        category_id=category.id,
        amount=amount,
    )
    db.add(budget_category)
    await db.commit()
    return serialize_budget_category(budget_category, category)


async def update_budget_category(db: AsyncSession, user: User, budget_category_id: str, amount: float) -> dict:
    budget_category = await _get_budget_category_for_member(db, user, budget_category_id)
    budget_category.amount = amount
    await db.commit()
    return serialize_budget_category(budget_category, budget_category.category)


async def delete_budget_category(db: AsyncSession, user: User, budget_category_id: str) -> None:
    budget_category = await _get_budget_category_for_member(db, user, budget_category_id)
    await db.delete(budget_category)
    await db.commit()
