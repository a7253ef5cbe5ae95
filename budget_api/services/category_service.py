import uuid
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.exceptions import BadRequestError, ConflictError, NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import Category, Transaction, User
from budget_api.services.access_service import require_default_account_id, require_member

logger = get_logger(__name__)


def serialize_category(category: Category, transaction_count: int = 0) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "color": category.color,
        "icon": category.icon,
        "transaction_count": transaction_count,
    }


async def get_categories(db: AsyncSession, user: User, account_id: str) -> List[dict]:
    """Categories of an account with the number of transactions in each."""
    await require_member(db, account_id, user.id)
    result = await db.execute(
        select(Category, func.count(Transaction.id))
        .outerjoin(Transaction, Transaction.category_id == Category.id)
        .where(Category.budget_account_id == account_id)
        .group_by(Category.id)
        .order_by(Category.name)
    )
    return [serialize_category(category, count) for category, count in result.all()]


async def create_category(
    db: AsyncSession,
    user: User,
    account_id: Optional[str],
    name: str,
    description: Optional[str] = None,
    color: Optional[str] = None,
    icon: Optional[str] = None,
) -> dict:
    if not account_id:
        raise BadRequestError("No budget account id provided")
    await require_member(db, account_id, user.id)

    duplicate = await db.execute(
        select(Category).where(Category.budget_account_id == account_id, Category.name == name)
    )
    if duplicate.scalars().first():
        raise ConflictError("Category with this name already exists for this budget account.")

    category = Category(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        name=name,
        description=description,
        color=color,
        icon=icon,
    )
    db.add(category)
    await db.commit()
    logger.info(f"Created category {category.id} in account {account_id}")
    return serialize_category(category)


async def _get_default_account_category(db: AsyncSession, user: User, category_id: str) -> Category:
    account_id = require_default_account_id(user)
    result = await db.execute(
        select(Category).where(Category.id == category_id, Category.budget_account_id == account_id)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def update_category(db: AsyncSession, user: User, category_id: str, data: dict) -> dict:
    category = await _get_default_account_category(db, user, category_id)
    for field, value in data.items():
        setattr(category, field, value)
    await db.commit()
    return serialize_category(category)


async def delete_category(
    db: AsyncSession, user: User, category_id: str, reassign_to_category_id: Optional[str] = None
) -> None:
    """Delete a category, optionally moving its transactions to another category first."""
    category = await _get_default_account_category(db, user, category_id)

    if reassign_to_category_id:
        target = await _get_default_account_category(db, user, reassign_to_category_id)
        await db.execute(
            update(Transaction)
            .where(
                Transaction.category_id == category.id,
                Transaction.budget_account_id == category.budget_account_id,
            )
            .values(category_id=target.id)
        )
        logger.info(f"Reassigned transactions from category {category.id} to {target.id}")

    await db.delete(category)
    await db.commit()
