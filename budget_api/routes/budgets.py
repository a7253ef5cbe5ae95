from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.schemas.account import SuccessResponse
from budget_api.schemas.budget import (
    BudgetCategoryCreate,
    BudgetCategoryResponse,
    BudgetCategoryUpdate,
    BudgetCreate,
    BudgetResponse,
    BudgetUpdate,
)
from budget_api.services import budget_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/budgets", tags=["budgets"])


@router.get("", response_model=Optional[BudgetResponse])
async def get_budget(
    budget_account_id: str = Query(...),
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the budget for a month, or null when none exists"""
    try:
        return await budget_service.get_budget(db, current_user, budget_account_id, year, month)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching budget: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch budget"
        )


@router.post("", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
async def create_budget(
    budget_data: BudgetCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create the month's budget; returns the existing one if already created"""
    try:
        return await budget_service.create_budget(
            db, current_user, budget_data.budget_account_id, budget_data.year, budget_data.month,
            budget_data.total_budget,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating budget: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create budget"
        )


@router.put("/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: str,
    budget_data: BudgetUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a budget's total"""
    try:
        return await budget_service.update_budget(db, current_user, budget_id, budget_data.total_budget)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating budget: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update budget"
        )


@router.get("/{budget_id}/categories", response_model=List[BudgetCategoryResponse])
async def get_budget_categories(
    budget_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the category lines of a budget"""
    try:
        return await budget_service.get_budget_categories(db, current_user, budget_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching budget categories: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch budget categories"
        )


@router.post("/{budget_id}/categories", response_model=BudgetCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_budget_category(
    budget_id: str,
    line: BudgetCategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Add a category line to a budget"""
    try:
        return await budget_service.create_budget_category(db, current_user, budget_id, line.name, line.amount)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating budget category: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create budget category"
        )


@router.put("/categories/{budget_category_id}", response_model=BudgetCategoryResponse)
async def update_budget_category(
    budget_category_id: str,
    line: BudgetCategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change the amount of a budget line"""
    try:
        return await budget_service.update_budget_category(db, current_user, budget_category_id, line.amount)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating budget category: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update budget category"
        )


@router.delete("/categories/{budget_category_id}", response_model=SuccessResponse)
async def delete_budget_category(
    budget_category_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a budget line"""
    try:
        await budget_service.delete_budget_category(db, current_user, budget_category_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting budget category: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete budget category"
        )
