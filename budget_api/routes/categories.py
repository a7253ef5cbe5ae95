from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.schemas.account import SuccessResponse
from budget_api.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from budget_api.services import category_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a new category"""
    try:
        return await category_service.create_category(
            db,
            current_user,
            category_data.budget_account_id,
            category_data.name,
            category_data.description,
            category_data.color,
            category_data.icon,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating category: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create category"
        )


@router.get("", response_model=List[CategoryResponse])
async def get_categories(
    budget_account_id: str = Query(...),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get all categories of an account with their transaction counts"""
    try:
        return await category_service.get_categories(db, current_user, budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching categories: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch categories"
        )


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    category_data: CategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a category"""
    try:
        return await category_service.update_category(
            db, current_user, category_id, category_data.model_dump(exclude_unset=True)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating category: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update category"
        )


@router.delete("/{category_id}", response_model=SuccessResponse)
async def delete_category(
    category_id: str,
    reassign_to: Optional[str] = Query(None, description="Move transactions to this category first"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a category"""
    try:
        await category_service.delete_category(db, current_user, category_id, reassign_to)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting category: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete category"
        )
