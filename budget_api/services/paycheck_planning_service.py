"""
Paycheck planning: which debts are due in a planning window, which paycheck
pays each of them, and what is left over.

The date math lives in ``budget_api.planning``; this module loads rows,
converts them to planning dataclasses and persists allocation changes.
"""
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.exceptions import BadRequestError, NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import (
    Debt,
    DebtAllocation,
    DismissedWarning,
    IncomeSource,
    MonthlyDebtPlanning,
    User,
)
from budget_api.planning import board
from budget_api.planning.schedule import (
    AllocationRecord,
    DebtInfo,
    IncomeSchedule,
    build_paycheck_allocations,
    funding_warnings,
    generate_paychecks,
    months_to_plan,
    warning_key,
)
from budget_api.services.access_service import require_member
from budget_api.utils.date_utils import month_bounds, parse_transaction_date, planning_window_end, to_ymd

logger = get_logger(__name__)

ACCESS_DENIED = "Access denied to budget account"

ALLOCATE = "allocate"
UNALLOCATE = "unallocate"
UPDATE = "update"


async def _require_access(db: AsyncSession, user: User, account_id: str) -> None:
    await require_member(db, account_id, user.id, ACCESS_DENIED)


def _to_schedule(source: IncomeSource) -> IncomeSchedule:
    return IncomeSchedule(
        id=source.id,
        name=source.name,
        amount=float(source.amount),
        frequency=getattr(source.frequency, "value", source.frequency),
        start_date=source.start_date,
        end_date=source.end_date,
        is_active=source.is_active,
    )


def _to_debt_info(planning: MonthlyDebtPlanning, debt: Debt) -> DebtInfo:
    return DebtInfo(
        id=planning.id,
        name=debt.name,
        amount=float(debt.payment_amount),
        due_date=planning.due_date,
        description=debt.name,
        category_id=debt.category_id,
    )


def _optional_date(value) -> Optional[date]:
    if not value:
        return None
    return parse_transaction_date(value) if isinstance(value, str) else value


async def _load_paychecks(db: AsyncSession, user: User, year: int, month: int):
    result = await db.execute(select(IncomeSource).where(IncomeSource.user_id == user.id))
    schedules = [_to_schedule(source) for source in result.scalars().all()]
    return generate_paychecks(schedules, year, month, user.id)


async def _load_window_debts(
    db: AsyncSession, account_id: str, year: int, month: int, window: int, is_active: bool
) -> List[DebtInfo]:
    first_of_month, _ = month_bounds(year, month)
    window_end = planning_window_end(year, month, window)

    result = await db.execute(
        select(MonthlyDebtPlanning, Debt)
        .outerjoin(Debt, MonthlyDebtPlanning.debt_id == Debt.id)
        .where(
            MonthlyDebtPlanning.budget_account_id == account_id,
            MonthlyDebtPlanning.is_active.is_(is_active),
            MonthlyDebtPlanning.due_date >= first_of_month,
            MonthlyDebtPlanning.due_date <= window_end,
        )
        .order_by(MonthlyDebtPlanning.due_date, Debt.name)
    )

    debts = []
    for planning, debt in result.all():
        if debt is None:
            logger.warning(f"Monthly debt planning {planning.id} references missing debt {planning.debt_id}")
            continue
        debts.append(_to_debt_info(planning, debt))
    return debts


async def _dismissed_keys(db: AsyncSession, user: User, account_id: str) -> set:
    result = await db.execute(
        select(DismissedWarning.warning_type, DismissedWarning.warning_key).where(
            DismissedWarning.budget_account_id == account_id,
            DismissedWarning.user_id == user.id,
        )
    )
    return {(row.warning_type, row.warning_key) for row in result.all()}


async def _visible_warnings(
    db: AsyncSession, user: User, account_id: str, year: int, month: int, paychecks, debts
) -> List[dict]:
    key = warning_key(year, month)
    dismissed = await _dismissed_keys(db, user, account_id)
    return [
        dict(w.to_dict(), key=key)
        for w in funding_warnings(paychecks, debts)
        if (w.type, key) not in dismissed
    ]


async def get_paycheck_planning_data(
    db: AsyncSession,
    user: User,
    account_id: str,
    year: int,
    month: int,
    window: int = 0,
) -> dict:
    """
    Paychecks for the month (and the few months after it), active debt
    instances due inside the planning window, and funding warnings.

    Args:
        window: Extra months after ``month`` whose debts are included

    Raises:
        ForbiddenError: Caller is not a member of the account
    """
    await _require_access(db, user, account_id)

    paychecks, future_paychecks = await _load_paychecks(db, user, year, month)
    debts = await _load_window_debts(db, account_id, year, month, window, is_active=True)

    warnings = await _visible_warnings(db, user, account_id, year, month, paychecks, debts)

    return {
        "year": year,
        "month": month,
        "planning_window_months": window,
        "paychecks": [p.to_dict() for p in paychecks],
        "future_paychecks": [p.to_dict() for p in future_paychecks],
        "debts": [d.to_dict() for d in debts],
        "warnings": warnings,
    }


async def get_hidden_monthly_debt_planning_data(
    db: AsyncSession, user: User, account_id: str, year: int, month: int, window: int = 0
) -> List[dict]:
    """Debt instances in the window that were hidden from the planner."""
    await _require_access(db, user, account_id)
    debts = await _load_window_debts(db, account_id, year, month, window, is_active=False)
    return [d.to_dict() for d in debts]


async def set_monthly_debt_planning_active(
    db: AsyncSession, user: User, account_id: str, planning_id: str, is_active: bool
) -> dict:
    await _require_access(db, user, account_id)
    result = await db.execute(
        select(MonthlyDebtPlanning).where(
            MonthlyDebtPlanning.id == planning_id,
            MonthlyDebtPlanning.budget_account_id == account_id,
        )
    )
    planning = result.scalar_one_or_none()
    if planning is None:
        raise NotFoundError("Monthly debt planning record not found")

    planning.is_active = is_active
    await db.commit()
    logger.info(f"Set monthly debt planning {planning_id} active={is_active}")
    return {"success": True}


async def dismiss_warning(db: AsyncSession, user: User, account_id: str, warning_type: str, key: str) -> dict:
    await _require_access(db, user, account_id)
    result = await db.execute(
        select(DismissedWarning.id).where(
            DismissedWarning.budget_account_id == account_id,
            DismissedWarning.user_id == user.id,
            DismissedWarning.warning_type == warning_type,
            DismissedWarning.warning_key == key,
        )
    )
    if result.scalars().first() is None:
        db.add(DismissedWarning(
            id=str(uuid.uuid4()),
            budget_account_id=account_id,
            user_id=user.id,
            warning_type=warning_type,
            warning_key=key,
        ))
        await db.commit()
    return {"success": True}


def _serialize_allocation(allocation: DebtAllocation) -> dict:
    return {
        "id": allocation.id,
        "budget_account_id": allocation.budget_account_id,
        "monthly_debt_planning_id": allocation.monthly_debt_planning_id,
        "paycheck_id": allocation.paycheck_id,
        "payment_amount": float(allocation.payment_amount) if allocation.payment_amount is not None else None,
        "payment_date": to_ymd(allocation.payment_date) if allocation.payment_date else None,
        "is_paid": allocation.is_paid,
        "paid_at": allocation.paid_at,
        "note": allocation.note,
        "allocated_at": allocation.allocated_at,
        "user_id": allocation.user_id,
    }


async def get_debt_allocations(db: AsyncSession, user: User, account_id: str) -> List[dict]:
    await _require_access(db, user, account_id)
    result = await db.execute(
        select(DebtAllocation)
        .where(DebtAllocation.budget_account_id == account_id)
        .order_by(DebtAllocation.allocated_at)
    )
    return [_serialize_allocation(a) for a in result.scalars().all()]


async def _load_allocation_records(db: AsyncSession, account_id: str) -> List[AllocationRecord]:
    result = await db.execute(
        select(DebtAllocation, MonthlyDebtPlanning, Debt)
        .join(MonthlyDebtPlanning, DebtAllocation.monthly_debt_planning_id == MonthlyDebtPlanning.id)
        .join(Debt, MonthlyDebtPlanning.debt_id == Debt.id)
        .where(DebtAllocation.budget_account_id == account_id)
        .order_by(MonthlyDebtPlanning.due_date)
    )
    return [
        AllocationRecord(
            payment_id=allocation.id,
            paycheck_id=allocation.paycheck_id,
            planning_id=planning.id,
            debt_name=debt.name,
            debt_amount=float(debt.payment_amount or 0),
            due_date=planning.due_date,
            original_due_date=debt.due_date,
            payment_amount=float(allocation.payment_amount) if allocation.payment_amount else None,
            payment_date=allocation.payment_date,
            is_paid=allocation.is_paid,
        )
        for allocation, planning, debt in result.all()
    ]


async def _allocations_for_month(db: AsyncSession, user: User, account_id: str, year: int, month: int):
    paychecks, _ = await _load_paychecks(db, user, year, month)
    records = await _load_allocation_records(db, account_id)
    return paychecks, build_paycheck_allocations(paychecks, records)


async def get_paycheck_allocations(
    db: AsyncSession, user: User, account_id: str, year: int, month: int
) -> List[dict]:
    """What each paycheck of the month pays and how much of it remains."""
    await _require_access(db, user, account_id)
    _, allocations = await _allocations_for_month(db, user, account_id, year, month)
    return [a.to_dict() for a in allocations]


async def _get_planning(db: AsyncSession, account_id: str, planning_id: str) -> MonthlyDebtPlanning:
    result = await db.execute(
        select(MonthlyDebtPlanning).where(
            MonthlyDebtPlanning.id == planning_id,
            MonthlyDebtPlanning.budget_account_id == account_id,
        )
    )
    planning = result.scalar_one_or_none()
    if planning is None:
        raise NotFoundError("Monthly debt planning record not found")
    return planning


async def update_debt_allocation(
    db: AsyncSession,
    user: User,
    account_id: str,
    planning_id: str,
    paycheck_id: str,
    action: str,
    payment_amount: Optional[float] = None,
    payment_date: Optional[str] = None,
) -> dict:
    """
    Allocate a debt instance to a paycheck, change that allocation, or remove it.

    ``allocate`` creates or overwrites the allocation, ``update`` only touches
    an existing one, ``unallocate`` deletes it. A zero or missing amount is
    stored as "use the debt's amount".
    """
    await _require_access(db, user, account_id)
    if action not in (ALLOCATE, UNALLOCATE, UPDATE):
        raise BadRequestError(f"Unknown allocation action: {action}")

    match = and_(
        DebtAllocation.monthly_debt_planning_id == planning_id,
        DebtAllocation.paycheck_id == paycheck_id,
        DebtAllocation.budget_account_id == account_id,
    )

    if action == UNALLOCATE:
        await db.execute(delete(DebtAllocation).where(match))
        await db.commit()
        logger.info(f"Unallocated planning {planning_id} from paycheck {paycheck_id}")
        return {"success": True}

    amount = payment_amount or None
    paid_on = _optional_date(payment_date)
    existing = (await db.execute(select(DebtAllocation).where(match))).scalars().first()

    if existing is not None:
        existing.payment_amount = amount
        existing.payment_date = paid_on
        existing.note = f"Updated payment from paycheck allocation on {to_ymd(paid_on)}" if paid_on else None
    elif action == ALLOCATE:
        await _get_planning(db, account_id, planning_id)
        db.add(DebtAllocation(
            id=str(uuid.uuid4()),
            budget_account_id=account_id,
            monthly_debt_planning_id=planning_id,
            paycheck_id=paycheck_id,
            user_id=user.id,
            payment_amount=amount,
            payment_date=paid_on,
            note=f"Scheduled payment from paycheck allocation on {to_ymd(paid_on)}" if paid_on else None,
            is_paid=False,
        ))
        logger.info(f"Allocated planning {planning_id} to paycheck {paycheck_id}")

    await db.commit()
    return {"success": True}


async def mark_payment_as_paid(
    db: AsyncSession,
    user: User,
    account_id: str,
    planning_id: str,
    payment_id: str,
    payment_amount: Optional[float] = None,
    payment_date: Optional[str] = None,
) -> dict:
    await _require_access(db, user, account_id)
    result = await db.execute(
        select(DebtAllocation).where(
            DebtAllocation.id == payment_id,
            DebtAllocation.budget_account_id == account_id,
            DebtAllocation.monthly_debt_planning_id == planning_id,
        )
    )
    allocation = result.scalar_one_or_none()
    if allocation is None:
        raise NotFoundError("Debt allocation not found")

    paid_on = _optional_date(payment_date) or date.today()
    allocation.is_paid = True
    allocation.payment_amount = payment_amount or None
    allocation.payment_date = paid_on
    allocation.paid_at = datetime.now(timezone.utc)
    allocation.note = f"Payment marked as paid on {to_ymd(paid_on)}"
    await db.commit()

    logger.info(f"Marked allocation {payment_id} paid on {paid_on}")
    return {"success": True}


async def populate_monthly_debt_planning(
    db: AsyncSession, user: User, account_id: str, year: int, month: int, window: int = 0
) -> int:
    """
    Create the missing monthly planning rows for every debt in the window.

    Rows that already exist (including ones inserted concurrently) are left
    alone. Returns the number of rows created.
    """
    await _require_access(db, user, account_id)

    debts = (await db.execute(select(Debt).where(Debt.budget_account_id == account_id))).scalars().all()
    existing = await db.execute(
        select(MonthlyDebtPlanning.debt_id, MonthlyDebtPlanning.year, MonthlyDebtPlanning.month).where(
            MonthlyDebtPlanning.budget_account_id == account_id
        )
    )
    existing_keys = {(row.debt_id, row.year, row.month) for row in existing.all()}

    created = 0
    for debt in debts:
        for target_year, target_month, due_date in months_to_plan(debt.due_date, year, month, window):
            if (debt.id, target_year, target_month) in existing_keys:
                continue
            stmt = (
                insert(MonthlyDebtPlanning)
                .values(
                    id=str(uuid.uuid4()),
                    budget_account_id=account_id,
                    debt_id=debt.id,
                    year=target_year,
                    month=target_month,
                    due_date=due_date,
                    is_active=True,
                )
                .on_conflict_do_nothing(constraint="uq_monthly_debt_planning_account_debt_month")
            )
            result = await db.execute(stmt)
            created += result.rowcount or 0
            existing_keys.add((debt.id, target_year, target_month))

    await db.commit()
    if created:
        logger.info(f"Populated {created} monthly debt planning rows for account {account_id}")
    return created


async def get_current_month_paycheck_planning(db: AsyncSession, user: User, account_id: str) -> dict:
    today = date.today()
    return await get_paycheck_planning_data(db, user, account_id, today.year, today.month)


async def get_current_month_paycheck_allocations(db: AsyncSession, user: User, account_id: str) -> List[dict]:
    today = date.today()
    return await get_paycheck_allocations(db, user, account_id, today.year, today.month)


async def get_allocation_board(
    db: AsyncSession, user: User, account_id: str, year: int, month: int, window: int = 0
) -> dict:
    """Everything the assignment board shows, with debt statuses and grouped paychecks."""
    await _require_access(db, user, account_id)

    paychecks, _ = await _load_paychecks(db, user, year, month)
    debts = await _load_window_debts(db, account_id, year, month, window, is_active=True)
    hidden = await _load_window_debts(db, account_id, year, month, window, is_active=False)
    allocations = build_paycheck_allocations(paychecks, await _load_allocation_records(db, account_id))
    warnings = await _visible_warnings(db, user, account_id, year, month, paychecks, debts)
    return board.build_board(year, month, window, paychecks, debts, hidden, allocations, warnings)


async def assign_debts(
    db: AsyncSession,
    user: User,
    account_id: str,
    year: int,
    month: int,
    planning_ids: Sequence[str],
    paycheck_id: str,
    payment_amount: Optional[float] = None,
    payment_date: Optional[str] = None,
) -> dict:
    """
    Assign one or more debt instances to a paycheck (or paycheck group).

    Each debt defaults to its own amount and today's date.
    """
    if not planning_ids:
        raise BadRequestError("Please select at least one debt to assign.")
    if not paycheck_id:
        raise BadRequestError("Please select a paycheck to assign debts to.")
    await _require_access(db, user, account_id)

    paychecks, _ = await _load_paychecks(db, user, year, month)
    target = board.resolve_paycheck_id(paycheck_id, board.group_paychecks(paychecks))

    result = await db.execute(
        select(MonthlyDebtPlanning.id, Debt.payment_amount)
        .join(Debt, MonthlyDebtPlanning.debt_id == Debt.id)
        .where(
            MonthlyDebtPlanning.budget_account_id == account_id,
            MonthlyDebtPlanning.id.in_(list(planning_ids)),
        )
    )
    amounts = {row.id: float(row.payment_amount) for row in result.all()}
    missing = [pid for pid in planning_ids if pid not in amounts]
    if missing:
        raise NotFoundError("Monthly debt planning record not found")

    paid_on = payment_date or to_ymd(date.today())
    for planning_id in planning_ids:
        await update_debt_allocation(
            db, user, account_id, planning_id, target, ALLOCATE,
            payment_amount if payment_amount is not None else amounts[planning_id],
            paid_on,
        )
    return {"success": True, "paycheck_id": target, "assigned": len(planning_ids)}


async def unassign_debt(
    db: AsyncSession, user: User, account_id: str, year: int, month: int, planning_id: str
) -> dict:
    """Remove a debt instance from whichever paycheck of the month holds it."""
    await _require_access(db, user, account_id)
    _, allocations = await _allocations_for_month(db, user, account_id, year, month)
    allocation = board.find_allocation_for_debt(planning_id, allocations)
    if allocation is None:
        raise NotFoundError("Could not find paycheck allocation for debt")

    return await update_debt_allocation(db, user, account_id, planning_id, allocation.paycheck_id, UNALLOCATE)
