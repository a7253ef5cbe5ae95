from datetime import date
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.schemas.account import SuccessResponse
from budget_api.schemas.transaction import (
    TransactionCategoryUpdate,
    TransactionCreate,
    TransactionListResponse,
    TransactionResponse,
    TransactionUpdate,
)
from budget_api.services import transaction_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    budget_account_id: Optional[str] = Query(default=None, description="Defaults to the caller's default account"),
    # Filters
    date_from: Optional[date] = Query(default=None, description="Start date (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(default=None, description="End date (YYYY-MM-DD)"),
    description_contains: Optional[str] = Query(default=None, description="Substring match in description"),
    amount_min: Optional[float] = Query(default=None, description="Minimum amount"),
    amount_max: Optional[float] = Query(default=None, description="Maximum amount"),
    type: Optional[Literal["income", "expense"]] = Query(default=None, description="Transaction type"),
    category_id: Optional[str] = Query(default=None, description="Filter by category ID"),
    # Pagination
    limit: int = Query(default=50, ge=1, le=200, description="Max items to return"),
    offset: int = Query(default=0, ge=0, description="Items to skip"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List transactions with filtering, newest first.

    Supported filters: date range, description substring, amount range,
    type, category_id.
    """
    try:
        return await transaction_service.list_transactions(
            db,
            current_user,
            account_id=budget_account_id,
            date_from=date_from,
            date_to=date_to,
            description_contains=description_contains,
            amount_min=amount_min,
            amount_max=amount_max,
            transaction_type=type,
            category_id=category_id,
            limit=limit,
            offset=offset,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error listing transactions: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch transactions"
        )


@router.get("/categories")
async def get_transaction_categories(
    budget_account_id: Optional[str] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> List[dict]:
    """Categories available for tagging transactions"""
    try:
        return await transaction_service.get_transaction_categories(db, current_user, budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching transaction categories: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch categories"
        )


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a manual transaction"""
    try:
        return await transaction_service.create_transaction(db, current_user, transaction_data.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating transaction: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create transaction"
        )


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: str,
    transaction_data: TransactionUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Partially update a transaction"""
    try:
        return await transaction_service.update_transaction(
            db, current_user, transaction_id, transaction_data.model_dump(exclude_unset=True)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating transaction {transaction_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update transaction"
        )


@router.put("/{transaction_id}/category", response_model=TransactionResponse)
async def update_transaction_category(
    transaction_id: str,
    payload: TransactionCategoryUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Re-categorize a transaction, or clear its category"""
    try:
        return await transaction_service.update_transaction_category(
            db, current_user, transaction_id, payload.category_id
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating transaction category: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update transaction"
        )


@router.delete("/{transaction_id}", response_model=SuccessResponse)
async def delete_transaction(
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a transaction"""
    try:
        await transaction_service.delete_transaction(db, current_user, transaction_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting transaction {transaction_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete transaction"
        )
