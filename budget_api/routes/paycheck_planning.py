"""
Paycheck planner endpoints. Every route is scoped to one budget account and
requires the caller to be a member of it.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.schemas.paycheck_planning import (
    PLANNING_WINDOW_MAX,
    AllocationUpdateRequest,
    AssignDebtsRequest,
    DismissWarningRequest,
    MarkPaidRequest,
    PlanningActiveUpdate,
    PopulateRequest,
    PopulateResponse,
    UnassignDebtRequest,
)
from budget_api.services import paycheck_planning_service as planning
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/accounts/{account_id}/paycheck-planning", tags=["paycheck-planning"])


def _failed(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error trying to {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )


@router.get("")
async def get_paycheck_planning_data(
    account_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    planning_window_months: int = Query(default=0, ge=0, le=PLANNING_WINDOW_MAX),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Paychecks, debts due in the window and funding warnings"""
    try:
        return await planning.get_paycheck_planning_data(
            db, current_user, account_id, year, month, planning_window_months
        )
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("load paycheck planning", e)


@router.get("/current")
async def get_current_month_paycheck_planning(
    account_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Planning data for the current month"""
    try:
        return await planning.get_current_month_paycheck_planning(db, current_user, account_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("load paycheck planning", e)


@router.get("/hidden")
async def get_hidden_debts(
    account_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    planning_window_months: int = Query(default=0, ge=0, le=PLANNING_WINDOW_MAX),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> List[dict]:
    """Debt instances hidden from the planner"""
    try:
        return await planning.get_hidden_monthly_debt_planning_data(
            db, current_user, account_id, year, month, planning_window_months
        )
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("load hidden debts", e)


@router.put("/monthly/{planning_id}/active")
async def set_monthly_debt_planning_active(
    account_id: str,
    planning_id: str,
    payload: PlanningActiveUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Hide or show a debt instance"""
    try:
        return await planning.set_monthly_debt_planning_active(
            db, current_user, account_id, planning_id, payload.is_active
        )
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("update debt visibility", e)


@router.post("/populate", response_model=PopulateResponse)
async def populate_monthly_debt_planning(
    account_id: str,
    payload: PopulateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create missing debt instances for the month and window"""
    try:
        created = await planning.populate_monthly_debt_planning(
            db, current_user, account_id, payload.year, payload.month, payload.planning_window_months
        )
        return {"created": created}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("populate debt planning", e)


@router.post("/warnings/dismiss")
async def dismiss_warning(
    account_id: str,
    payload: DismissWarningRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Dismiss a planner warning for the caller"""
    try:
        return await planning.dismiss_warning(
            db, current_user, account_id, payload.warning_type, payload.warning_key
        )
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("dismiss warning", e)


@router.get("/debt-allocations")
async def get_debt_allocations(
    account_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> List[dict]:
    """Every stored debt allocation of the account"""
    try:
        return await planning.get_debt_allocations(db, current_user, account_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("load debt allocations", e)


@router.get("/allocations")
async def get_paycheck_allocations(
    account_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> List[dict]:
    """Per-paycheck allocations for a month"""
    try:
        return await planning.get_paycheck_allocations(db, current_user, account_id, year, month)
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("load paycheck allocations", e)


@router.get("/allocations/current")
async def get_current_month_paycheck_allocations(
    account_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> List[dict]:
    """Per-paycheck allocations for the current month"""
    try:
        return await planning.get_current_month_paycheck_allocations(db, current_user, account_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("load paycheck allocations", e)


@router.post("/allocations")
async def update_debt_allocation(
    account_id: str,
    payload: AllocationUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Allocate, unallocate or update one debt instance on a paycheck"""
    try:
        return await planning.update_debt_allocation(
            db,
            current_user,
            account_id,
            payload.monthly_debt_planning_id,
            payload.paycheck_id,
            payload.action,
            payment_amount=payload.payment_amount,
            payment_date=payload.payment_date,
        )
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("update debt allocation", e)


@router.post("/allocations/mark-paid")
async def mark_payment_as_paid(
    account_id: str,
    payload: MarkPaidRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Mark an allocated payment as paid"""
    try:
        return await planning.mark_payment_as_paid(
            db,
            current_user,
            account_id,
            payload.monthly_debt_planning_id,
            payload.payment_id,
            payment_amount=payload.payment_amount,
            payment_date=payload.payment_date,
        )
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("mark payment as paid", e)


@router.get("/board")
async def get_allocation_board(
    account_id: str,
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    planning_window_months: int = Query(default=0, ge=0, le=PLANNING_WINDOW_MAX),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Everything the assignment board needs in one response"""
    try:
        return await planning.get_allocation_board(
            db, current_user, account_id, year, month, planning_window_months
        )
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("load allocation board", e)


@router.post("/board/assign")
async def assign_debts(
    account_id: str,
    payload: AssignDebtsRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Assign one or more debt instances to a paycheck or paycheck group"""
    try:
        return await planning.assign_debts(
            db,
            current_user,
            account_id,
            payload.year,
            payload.month,
            payload.monthly_debt_planning_ids,
            payload.paycheck_id,
            payment_amount=payload.payment_amount,
            payment_date=payload.payment_date,
        )
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("assign debts", e)


@router.post("/board/unassign")
async def unassign_debt(
    account_id: str,
    payload: UnassignDebtRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Remove a debt instance from whichever paycheck holds it"""
    try:
        return await planning.unassign_debt(
            db, current_user, account_id, payload.year, payload.month, payload.monthly_debt_planning_id
        )
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("unassign debt", e)
