from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.services import dashboard_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("")
async def get_dashboard(
    budget_account_id: Optional[str] = Query(default=None, description="Defaults to the caller's default account"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Balance, this month's cash flow, spending trend and budget progress"""
    try:
        return await dashboard_service.get_dashboard_data(db, current_user, budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error building dashboard: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load dashboard"
        )
