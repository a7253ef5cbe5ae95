"""
Transaction service layer for business logic.
"""
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from budget_api.exceptions import NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import (
    BudgetAccount,
    Category,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from budget_api.services.access_service import resolve_account_id
from budget_api.utils.date_utils import parse_transaction_date

logger = get_logger(__name__)


def serialize_transaction(transaction: Transaction) -> dict:
    return {
        "id": transaction.id,
        "budget_account_id": transaction.budget_account_id,
        "category_id": transaction.category_id,
        "category_name": transaction.category.name if transaction.category else None,
        "debt_id": transaction.debt_id,
        "amount": float(transaction.amount),
        "description": transaction.description,
        "date": transaction.date,
        "type": transaction.type,
        "status": transaction.status,
        "merchant_name": transaction.merchant_name,
        "plaid_transaction_id": transaction.plaid_transaction_id,
        "pending": transaction.pending,
        "created_at": transaction.created_at,
    }


class TransactionQueryBuilder:
    """Builder class for constructing transaction queries."""

    def __init__(self, session: AsyncSession, budget_account_id: str):
        self.session = session
        self.budget_account_id = budget_account_id
        self.conditions = [Transaction.budget_account_id == budget_account_id]

    def with_date_range(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None
    ) -> 'TransactionQueryBuilder':
        """Add date range filter."""
        if date_from:
            self.conditions.append(Transaction.date >= date_from)
        if date_to:
            self.conditions.append(Transaction.date <= date_to)
        return self

    def with_description_contains(self, description: Optional[str] = None) -> 'TransactionQueryBuilder':
        """Add description substring filter."""
        if description:
            self.conditions.append(Transaction.description.ilike(f"%{description}%"))
        return self

    def with_amount_range(
        self,
        amount_min: Optional[float] = None,
        amount_max: Optional[float] = None
    ) -> 'TransactionQueryBuilder':
        """Add amount range filter."""
        if amount_min is not None:
            self.conditions.append(Transaction.amount >= amount_min)
        if amount_max is not None:
            self.conditions.append(Transaction.amount <= amount_max)
        return self

    def with_type(self, transaction_type: Optional[str] = None) -> 'TransactionQueryBuilder':
        """Add transaction type filter."""
        if transaction_type:
            self.conditions.append(Transaction.type == TransactionType(transaction_type))
        return self

    def with_category(self, category_id: Optional[str] = None) -> 'TransactionQueryBuilder':
        """Add category filter."""
        if category_id:
            self.conditions.append(Transaction.category_id == category_id)
        return self

    async def count(self) -> int:
        """Get count of transactions matching filters."""
        stmt = select(func.count(Transaction.id)).where(and_(*self.conditions))
        return (await self.session.execute(stmt)).scalar_one()

    async def fetch(self, limit: int = 50, offset: int = 0) -> List[Transaction]:
        """Fetch transactions newest first."""
        stmt = (
            select(Transaction)
            .where(and_(*self.conditions))
            .options(joinedload(Transaction.category))
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()


async def _get_category(db: AsyncSession, account_id: str, category_id: str) -> Category:
    result = await db.execute(
        select(Category).where(Category.id == category_id, Category.budget_account_id == account_id)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def _get_transaction(db: AsyncSession, account_id: str, transaction_id: str) -> Transaction:
    result = await db.execute(
        select(Transaction)
        .where(Transaction.id == transaction_id, Transaction.budget_account_id == account_id)
        .options(joinedload(Transaction.category))
        .execution_options(populate_existing=True)
    )
    transaction = result.scalar_one_or_none()
    if transaction is None:
        raise NotFoundError("Transaction not found")
    return transaction


async def get_transaction_categories(db: AsyncSession, user: User, account_id: Optional[str] = None) -> List[dict]:
    account_id = await resolve_account_id(db, user, account_id)
    result = await db.execute(
        select(Category).where(Category.budget_account_id == account_id).order_by(Category.name)
    )
    return [
        {"id": category.id, "name": category.name, "color": category.color, "icon": category.icon}
        for category in result.scalars().all()
    ]


async def create_transaction(db: AsyncSession, user: User, data: dict) -> dict:
    """
    Record a manual transaction in the caller's account.

    ``data`` carries amount, type, optional description, category_id and date
    (``YYYY-MM-DD`` or ISO string, today when missing).
    """
    account_id = await resolve_account_id(db, user, data.get("budget_account_id"))
    if await db.get(BudgetAccount, account_id) is None:
        raise NotFoundError("Budget account not found")

    category_id = data.get("category_id")
    if category_id:
        await _get_category(db, account_id, category_id)

    transaction = Transaction(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        category_id=category_id,
        created_by_user_id=user.id,
        amount=data["amount"],
        description=data.get("description"),
        date=parse_transaction_date(data.get("date")),
        type=TransactionType(data["type"]),
        status=TransactionStatus.COMPLETED,
        merchant_name=data.get("merchant_name"),
    )
    db.add(transaction)
    await db.commit()

    logger.info(f"Created transaction {transaction.id} in account {account_id}")
    return serialize_transaction(await _get_transaction(db, account_id, transaction.id))


async def update_transaction(db: AsyncSession, user: User, transaction_id: str, data: dict) -> dict:
    """Apply a partial update; only keys present in ``data`` change."""
    account_id = await resolve_account_id(db, user)
    transaction = await _get_transaction(db, account_id, transaction_id)

    if "category_id" in data and data["category_id"]:
        await _get_category(db, account_id, data["category_id"])
    if "date" in data:
        data["date"] = parse_transaction_date(data["date"])
    if "type" in data and data["type"] is not None:
        data["type"] = TransactionType(data["type"])

    for field, value in data.items():
        setattr(transaction, field, value)

    await db.commit()
    return serialize_transaction(await _get_transaction(db, account_id, transaction_id))


async def update_transaction_category(
    db: AsyncSession, user: User, transaction_id: str, category_id: Optional[str]
) -> dict:
    return await update_transaction(db, user, transaction_id, {"category_id": category_id})


async def delete_transaction(db: AsyncSession, user: User, transaction_id: str) -> None:
    account_id = await resolve_account_id(db, user)
    transaction = await _get_transaction(db, account_id, transaction_id)
    await db.delete(transaction)
    await db.commit()
    logger.info(f"Deleted transaction {transaction_id}")


async def list_transactions(
    db: AsyncSession,
    user: User,
    account_id: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    description_contains: Optional[str] = None,
    amount_min: Optional[float] = None,
    amount_max: Optional[float] = None,
    transaction_type: Optional[str] = None,
    category_id: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> dict:
    """
    Transactions of an account (the caller's default when omitted), newest first.

    ``count`` is the number of matching rows, not just the returned page.
    """
    account_id = await resolve_account_id(db, user, account_id)
    query = (
        TransactionQueryBuilder(db, account_id)
        .with_date_range(date_from, date_to)
        .with_description_contains(description_contains)
        .with_amount_range(amount_min, amount_max)
        .with_type(transaction_type)
        .with_category(category_id)
    )
    total = await query.count()
    transactions = await query.fetch(limit=limit, offset=offset)
    return {
        "count": total,
        "items": [serialize_transaction(t) for t in transactions],
    }
