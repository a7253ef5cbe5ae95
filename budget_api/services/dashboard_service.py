"""
Dashboard aggregates: balance, this month's cash flow, a 12-month spending
series and budget-vs-actual per category.
"""
from calendar import month_abbr
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy import case, extract, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.models import Budget, BudgetCategory, Category, Transaction, TransactionType, User
from budget_api.services.access_service import resolve_account_id
from budget_api.utils.date_utils import add_months, month_bounds

CATEGORY_PALETTE = [
    "rgb(78, 0, 142)",
    "rgb(153, 51, 255)",
    "rgb(179, 102, 255)",
    "rgb(209, 153, 255)",
    "rgb(230, 204, 255)",
]

SPENDING_MONTHS = 12


def spending_series(monthly_expenses: Dict[Tuple[int, int], float], today: date) -> List[dict]:
    """Zero-filled ``[{month: "Jan", amount}]`` for the last 12 months, oldest first."""
    series = []
    for offset in range(SPENDING_MONTHS - 1, -1, -1):
        month_start = add_months(date(today.year, today.month, 1), -offset)
        series.append({
            "month": month_abbr[month_start.month],
            "amount": round(monthly_expenses.get((month_start.year, month_start.month), 0.0), 2),
        })
    return series


async def get_account_balance(db: AsyncSession, user: User, account_id: Optional[str] = None) -> float:
    """All-time income minus expenses."""
    account_id = await resolve_account_id(db, user, account_id)
    result = await db.execute(
        select(
            func.coalesce(func.sum(case((Transaction.type == TransactionType.INCOME, Transaction.amount), else_=0)), 0),
            func.coalesce(func.sum(case((Transaction.type == TransactionType.EXPENSE, Transaction.amount), else_=0)), 0),
        ).where(Transaction.budget_account_id == account_id)
    )
    income, expenses = result.one()
    return round(float(income) - float(expenses), 2)


async def _month_total(db: AsyncSession, account_id: str, transaction_type: TransactionType) -> float:
    today = date.today()
    start, end = month_bounds(today.year, today.month)
    result = await db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.budget_account_id == account_id,
            Transaction.type == transaction_type,
            Transaction.date >= start,
            Transaction.date <= end,
        )
    )
    return round(float(result.scalar_one()), 2)


async def get_monthly_income(db: AsyncSession, user: User, account_id: Optional[str] = None) -> float:
    account_id = await resolve_account_id(db, user, account_id)
    return await _month_total(db, account_id, TransactionType.INCOME)


async def get_monthly_expenses(db: AsyncSession, user: User, account_id: Optional[str] = None) -> float:
    account_id = await resolve_account_id(db, user, account_id)
    return await _month_total(db, account_id, TransactionType.EXPENSE)


async def get_monthly_spending_data(db: AsyncSession, user: User, account_id: Optional[str] = None) -> List[dict]:
    account_id = await resolve_account_id(db, user, account_id)
    today = date.today()
    since = add_months(date(today.year, today.month, 1), -(SPENDING_MONTHS - 1))

    year_col = extract("year", Transaction.date)
    month_col = extract("month", Transaction.date)
    result = await db.execute(
        select(year_col, month_col, func.sum(Transaction.amount))
        .where(
            Transaction.budget_account_id == account_id,
            Transaction.type == TransactionType.EXPENSE,
            Transaction.date >= since,
        )
        .group_by(year_col, month_col)
    )
    totals = {(int(year), int(month)): float(amount) for year, month, amount in result.all()}
    return spending_series(totals, today)


async def get_budget_categories_with_spending(
    db: AsyncSession, user: User, account_id: Optional[str] = None
) -> List[dict]:
    """Current month's budget lines with what has been spent against each."""
    account_id = await resolve_account_id(db, user, account_id)
    today = date.today()
    start, end = month_bounds(today.year, today.month)

    budget = (await db.execute(
        select(Budget).where(
            Budget.budget_account_id == account_id,
            Budget.year == today.year,
            Budget.month == today.month,
        )
    )).scalar_one_or_none()
    if budget is None:
        return []

    spent = (
        select(Transaction.category_id, func.sum(Transaction.amount).label("spent"))
        .where(
            Transaction.budget_account_id == account_id,
            Transaction.type == TransactionType.EXPENSE,
            Transaction.date >= start,
            Transaction.date <= end,
        )
        .group_by(Transaction.category_id)
        .subquery()
    )
    result = await db.execute(
        select(Category.name, BudgetCategory.amount, func.coalesce(spent.c.spent, 0))
        .join(Category, BudgetCategory.category_id == Category.id)
        .outerjoin(spent, spent.c.category_id == Category.id)
        .where(BudgetCategory.budget_id == budget.id)
        .order_by(Category.name)
    )
    return [
        {
            "name": name,
            "spent": round(float(spent_amount), 2),
            "budget": round(float(amount), 2),
            "color": CATEGORY_PALETTE[index % len(CATEGORY_PALETTE)],
        }
        for index, (name, amount, spent_amount) in enumerate(result.all())
    ]


async def get_dashboard_data(db: AsyncSession, user: User, account_id: Optional[str] = None) -> dict:
    account_id = await resolve_account_id(db, user, account_id)
    return {
        "total_balance": await get_account_balance(db, user, account_id),
        "monthly_income": await get_monthly_income(db, user, account_id),
        "monthly_expenses": await get_monthly_expenses(db, user, account_id),
        "monthly_spending_data": await get_monthly_spending_data(db, user, account_id),
        "budget_categories": await get_budget_categories_with_spending(db, user, account_id),
    }
