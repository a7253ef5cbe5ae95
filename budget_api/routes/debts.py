from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.schemas.debt import DebtCreate, DebtPaymentCreate, DebtResponse, DebtUpdate
from budget_api.services import debt_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/debts", tags=["debts"])


@router.get("", response_model=List[DebtResponse])
async def get_debts(
    budget_account_id: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the account's debts with their payments"""
    try:
        return await debt_service.get_debts(db, current_user, budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching debts: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch debts"
        )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_debt(
    debt_data: DebtCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a debt"""
    try:
        data = debt_data.model_dump(exclude={"budget_account_id"})
        return await debt_service.create_debt(db, current_user, data, debt_data.budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating debt: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create debt"
        )


@router.put("/{debt_id}")
async def update_debt(
    debt_id: str,
    debt_data: DebtUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a debt"""
    try:
        data = debt_data.model_dump(exclude_unset=True, exclude={"budget_account_id"})
        return await debt_service.update_debt(db, current_user, debt_id, data, debt_data.budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating debt {debt_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update debt"
        )


@router.delete("/{debt_id}")
async def delete_debt(
    debt_id: str,
    budget_account_id: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a debt along with its planning rows"""
    try:
        return await debt_service.delete_debt(db, current_user, debt_id, budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting debt {debt_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete debt"
        )


@router.post("/{debt_id}/payments", status_code=status.HTTP_201_CREATED)
async def create_debt_payment(
    debt_id: str,
    payment: DebtPaymentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a payment against a debt"""
    try:
        return await debt_service.create_debt_payment(
            db,
            current_user,
            debt_id,
            payment.amount,
            payment.date,
            note=payment.note,
            account_id=payment.budget_account_id,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error recording payment for debt {debt_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record payment"
        )
