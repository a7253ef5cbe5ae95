from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.schemas.account import SuccessResponse
from budget_api.schemas.income import (
    IncomeSourceCreate,
    IncomeSourceResponse,
    IncomeSourceUpdate,
    MonthlyIncomeResponse,
)
from budget_api.services import income_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/income", tags=["income"])


@router.get("", response_model=List[IncomeSourceResponse])
async def get_income_sources(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's income sources"""
    try:
        return await income_service.get_income_sources(db, current_user)
    except Exception as e:
        logger.error(f"Error fetching income sources: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch income sources"
        )


@router.get("/monthly", response_model=MonthlyIncomeResponse)
async def get_monthly_income(
    budget_account_id: str = Query(...),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Expected income for a month across every member's active sources"""
    try:
        today = date.today()
        year = year or today.year
        month = month or today.month
        total = await income_service.calculate_monthly_income(db, current_user, budget_account_id, year, month)
        return {"budget_account_id": budget_account_id, "year": year, "month": month, "total": total}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error calculating monthly income: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate monthly income"
        )


@router.post("", response_model=IncomeSourceResponse, status_code=status.HTTP_201_CREATED)
async def create_income_source(
    source_data: IncomeSourceCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Add an income source"""
    try:
        return await income_service.create_income_source(db, current_user, source_data.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating income source: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create income source"
        )


@router.put("/{source_id}", response_model=IncomeSourceResponse)
async def update_income_source(
    source_id: str,
    source_data: IncomeSourceUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update an income source"""
    try:
        return await income_service.update_income_source(
            db, current_user, source_id, source_data.model_dump(exclude_unset=True)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating income source {source_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update income source"
        )


@router.delete("/{source_id}", response_model=SuccessResponse)
async def delete_income_source(
    source_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete an income source"""
    try:
        await income_service.delete_income_source(db, current_user, source_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting income source {source_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete income source"
        )
