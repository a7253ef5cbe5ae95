"""
Recurring debts and ad-hoc debt payments.
"""
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from budget_api.exceptions import BadRequestError, NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import (
    BudgetAccount,
    Category,
    Debt,
    DebtAllocation,
    MonthlyDebtPlanning,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from budget_api.services.access_service import resolve_account_id
from budget_api.utils.date_utils import add_months, parse_transaction_date

logger = get_logger(__name__)

DEBTS_CATEGORY_NAME = "Debts"
DEBTS_CATEGORY_DESCRIPTION = "Debt payments and related expenses"
DEBTS_CATEGORY_COLOR = "#ef4444"


def serialize_payment(allocation: DebtAllocation, debt_id: str) -> dict:
    return {
        "id": allocation.id,
        "debt_id": debt_id,
        "monthly_debt_planning_id": allocation.monthly_debt_planning_id,
        "amount": float(allocation.payment_amount or 0),
        "date": allocation.payment_date,
        "note": allocation.note,
        "is_paid": allocation.is_paid,
        "created_at": allocation.created_at,
    }


def serialize_debt(debt: Debt, payments: List[DebtAllocation]) -> dict:
    return {
        "id": debt.id,
        "budget_account_id": debt.budget_account_id,
        "created_by_user_id": debt.created_by_user_id,
        "category_id": debt.category_id,
        "category": (
            {"id": debt.category.id, "name": debt.category.name, "color": debt.category.color}
            if debt.category else None
        ),
        "name": debt.name,
        "payment_amount": float(debt.payment_amount),
        "interest_rate": float(debt.interest_rate),
        "due_date": debt.due_date,
        "has_balance": debt.has_balance,
        "last_payment_month": debt.last_payment_month,
        "created_at": debt.created_at,
        "updated_at": debt.updated_at,
        "payments": [serialize_payment(payment, debt.id) for payment in payments],
    }


async def _check_category(db: AsyncSession, account_id: str, category_id: Optional[str]) -> None:
    if not category_id:
        return
    result = await db.execute(
        select(Category.id).where(Category.id == category_id, Category.budget_account_id == account_id)
    )
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Category not found")


async def _get_debt(db: AsyncSession, account_id: str, debt_id: str) -> Debt:
    result = await db.execute(
        select(Debt)
        .where(Debt.id == debt_id, Debt.budget_account_id == account_id)
        .options(selectinload(Debt.category))
    )
    debt = result.scalar_one_or_none()
    if debt is None:
        raise NotFoundError("Debt not found")
    return debt


async def get_debts(db: AsyncSession, user: User, account_id: Optional[str] = None) -> List[dict]:
    """Debts of the account, newest first, each with its recorded payments."""
    account_id = await resolve_account_id(db, user, account_id)

    result = await db.execute(
        select(Debt)
        .where(Debt.budget_account_id == account_id)
        .options(selectinload(Debt.category))
        .order_by(Debt.created_at.desc())
    )
    debts = result.scalars().all()
    if not debts:
        return []

    payments_result = await db.execute(
        select(DebtAllocation, MonthlyDebtPlanning.debt_id)
        .join(MonthlyDebtPlanning, DebtAllocation.monthly_debt_planning_id == MonthlyDebtPlanning.id)
        .where(MonthlyDebtPlanning.debt_id.in_([debt.id for debt in debts]))
        .order_by(DebtAllocation.created_at.desc())
    )
    payments_by_debt = {}
    for allocation, debt_id in payments_result.all():
        payments_by_debt.setdefault(debt_id, []).append(allocation)

    return [serialize_debt(debt, payments_by_debt.get(debt.id, [])) for debt in debts]


async def create_debt(db: AsyncSession, user: User, data: dict, account_id: Optional[str] = None) -> dict:
    account_id = await resolve_account_id(db, user, account_id)
    if await db.get(BudgetAccount, account_id) is None:
        raise NotFoundError("Budget account not found")
    await _check_category(db, account_id, data.get("category_id"))

    debt = Debt(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        created_by_user_id=user.id,
        category_id=data.get("category_id") or None,
        name=data["name"],
        payment_amount=data["payment_amount"],
        interest_rate=data.get("interest_rate") or 0,
        due_date=data["due_date"],
        has_balance=data.get("has_balance", False),
    )
    db.add(debt)
    await db.commit()
    logger.info(f"Created debt {debt.id} in account {account_id}")
    return {"id": debt.id}


async def update_debt(db: AsyncSession, user: User, debt_id: str, data: dict, account_id: Optional[str] = None) -> dict:
    account_id = await resolve_account_id(db, user, account_id)
    debt = await _get_debt(db, account_id, debt_id)
    if "category_id" in data:
        await _check_category(db, account_id, data["category_id"])
        data["category_id"] = data["category_id"] or None

    for field, value in data.items():
        setattr(debt, field, value)
    await db.commit()
    return {"id": debt.id}


async def delete_debt(db: AsyncSession, user: User, debt_id: str, account_id: Optional[str] = None) -> dict:
    account_id = await resolve_account_id(db, user, account_id)
    debt = await _get_debt(db, account_id, debt_id)
    await db.delete(debt)
    await db.commit()
    logger.info(f"Deleted debt {debt_id}")
    return {"id": debt_id}


async def _get_or_create_debts_category(db: AsyncSession, account_id: str) -> Category:
    result = await db.execute(
        select(Category).where(Category.budget_account_id == account_id, Category.name == DEBTS_CATEGORY_NAME)
    )
    category = result.scalars().first()
    if category is None:
        category = Category(
            id=str(uuid.uuid4()),
            budget_account_id=account_id,
            name=DEBTS_CATEGORY_NAME,
            description=DEBTS_CATEGORY_DESCRIPTION,
            color=DEBTS_CATEGORY_COLOR,
        )
        db.add(category)
        await db.flush()
    return category


async def create_debt_payment(
    db: AsyncSession,
    user: User,
    debt_id: str,
    amount: float,
    payment_date: str,
    note: Optional[str] = None,
    account_id: Optional[str] = None,
) -> dict:
    """
    Record a payment against a debt.

    Writes an expense transaction in the "Debts" category, ensures a monthly
    planning row exists for the payment month and stores a paid allocation
    against it. Paying before the due date rolls the debt's due date forward
    one month.

    Raises:
        NotFoundError: Debt is not in the account
        BadRequestError: Amount exceeds the balance of a balance-tracked debt
    """
    account_id = await resolve_account_id(db, user, account_id)
    debt = await _get_debt(db, account_id, debt_id)

    if debt.has_balance and amount > float(debt.payment_amount):
        raise BadRequestError("Payment amount cannot exceed current balance")

    paid_on = parse_transaction_date(payment_date)
    category = await _get_or_create_debts_category(db, account_id)

    db.add(Transaction(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        category_id=category.id,
        created_by_user_id=user.id,
        amount=amount,
        description=f"Payment for {debt.name}",
        date=paid_on,
        type=TransactionType.EXPENSE,
        status=TransactionStatus.COMPLETED,
        debt_id=debt.id,
    ))

    result = await db.execute(
        select(MonthlyDebtPlanning).where(
            MonthlyDebtPlanning.budget_account_id == account_id,
            MonthlyDebtPlanning.debt_id == debt.id,
            MonthlyDebtPlanning.year == paid_on.year,
            MonthlyDebtPlanning.month == paid_on.month,
        )
    )
    planning = result.scalar_one_or_none()
    if planning is None:
        planning = MonthlyDebtPlanning(
            id=str(uuid.uuid4()),
            budget_account_id=account_id,
            debt_id=debt.id,
            year=paid_on.year,
            month=paid_on.month,
            due_date=paid_on,
        )
        db.add(planning)
        await db.flush()

    allocation = DebtAllocation(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        monthly_debt_planning_id=planning.id,
        paycheck_id=str(uuid.uuid4()),
        payment_amount=amount,
        payment_date=paid_on,
        is_paid=True,
        paid_at=datetime.now(timezone.utc),
        note=note or None,
        user_id=user.id,
    )
    db.add(allocation)

    if paid_on < debt.due_date:
        debt.due_date = add_months(debt.due_date, 1)
        debt.last_payment_month = date(paid_on.year, paid_on.month, 1)
        logger.info(f"Advanced due date of debt {debt.id} to {debt.due_date}")

    await db.commit()
    return {"id": allocation.id}
