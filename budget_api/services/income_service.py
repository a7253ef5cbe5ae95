import uuid
from datetime import date, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.exceptions import NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import BudgetAccountMember, IncomeFrequency, IncomeSource, User
from budget_api.services.access_service import require_member
from budget_api.utils.date_utils import month_bounds

logger = get_logger(__name__)

WEEKS_PER_YEAR = 52
BI_WEEKLY_STEP = timedelta(days=14)


def serialize_income_source(source: IncomeSource) -> dict:
    return {
        "id": source.id,
        "user_id": source.user_id,
        "name": source.name,
        "amount": float(source.amount),
        "frequency": source.frequency,
        "start_date": source.start_date,
        "end_date": source.end_date,
        "is_active": source.is_active,
        "notes": source.notes,
        "created_at": source.created_at,
    }


def count_bi_weekly_pay_dates(start_date: date, end_date: Optional[date], year: int, month: int) -> int:
    """Number of 14-day pay dates from ``start_date`` that land in the month."""
    first_of_month, last_of_month = month_bounds(year, month)
    pay_date = start_date
    while pay_date < first_of_month:
        pay_date += BI_WEEKLY_STEP

    count = 0
    while pay_date <= last_of_month:
        if end_date is None or pay_date <= end_date:
            count += 1
        pay_date += BI_WEEKLY_STEP
    return count


def monthly_equivalent(source: IncomeSource, year: int, month: int) -> float:
    amount = float(source.amount)
    frequency = IncomeFrequency(source.frequency)
    if frequency == IncomeFrequency.WEEKLY:
        return amount * WEEKS_PER_YEAR / 12
    if frequency == IncomeFrequency.BI_WEEKLY:
        return amount * count_bi_weekly_pay_dates(source.start_date, source.end_date, year, month)
    return amount


def total_monthly_income(sources: Iterable[IncomeSource], year: int, month: int) -> float:
    return round(sum(monthly_equivalent(source, year, month) for source in sources), 2)


async def get_income_sources(db: AsyncSession, user: User) -> List[dict]:
    result = await db.execute(
        select(IncomeSource).where(IncomeSource.user_id == user.id).order_by(IncomeSource.created_at)
    )
    return [serialize_income_source(source) for source in result.scalars().all()]


async def _get_own_source(db: AsyncSession, user: User, source_id: str) -> IncomeSource:
    result = await db.execute(
        select(IncomeSource).where(IncomeSource.id == source_id, IncomeSource.user_id == user.id)
    )
    source = result.scalar_one_or_none()
    if source is None:
        raise NotFoundError("Income source not found or not authorized")
    return source


async def create_income_source(db: AsyncSession, user: User, data: dict) -> dict:
    source = IncomeSource(
        id=str(uuid.uuid4()),
        user_id=user.id,
        name=data["name"],
        amount=data["amount"],
        frequency=IncomeFrequency(data["frequency"]),
        start_date=data["start_date"],
        end_date=data.get("end_date"),
        is_active=data.get("is_active", True),
        notes=data.get("notes"),
    )
    db.add(source)
    await db.commit()
    logger.info(f"Created income source {source.id} for user {user.id}")
    return serialize_income_source(source)


async def update_income_source(db: AsyncSession, user: User, source_id: str, data: dict) -> dict:
    source = await _get_own_source(db, user, source_id)
    if data.get("frequency") is not None:
        data["frequency"] = IncomeFrequency(data["frequency"])
    for field, value in data.items():
        setattr(source, field, value)
    await db.commit()
    return serialize_income_source(source)


async def delete_income_source(db: AsyncSession, user: User, source_id: str) -> None:
    source = await _get_own_source(db, user, source_id)
    await db.delete(source)
    await db.commit()


async def calculate_monthly_income(
    db: AsyncSession,
    user: User,
    account_id: str,
    year: Optional[int] = None,
    month: Optional[int] = None,
) -> float:
    """Expected income for a month from the active sources of every account member."""
    await require_member(db, account_id, user.id)
    today = date.today()
    year = year or today.year
    month = month or today.month

    result = await db.execute(
        select(IncomeSource)
        .join(BudgetAccountMember, BudgetAccountMember.user_id == IncomeSource.user_id)
        .where(
            BudgetAccountMember.budget_account_id == account_id,
            IncomeSource.is_active.is_(True),
        )
    )
    return total_monthly_income(result.scalars().unique().all(), year, month)
