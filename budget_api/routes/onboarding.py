from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.models.user import User
from budget_api.schemas.account import SuccessResponse
from budget_api.schemas.onboarding import DefaultAccountUpdate, QuickOnboardingRequest, QuickOnboardingResponse
from budget_api.services import onboarding_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.put("/default-account", response_model=SuccessResponse)
async def set_default_account(
    payload: DefaultAccountUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Use the given account as the caller's default"""
    try:
        return await onboarding_service.update_user_default_account(db, current_user, payload.budget_account_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating default account: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update default account"
        )


@router.post("/complete", response_model=SuccessResponse)
async def complete_onboarding(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark onboarding as finished"""
    try:
        return await onboarding_service.complete_onboarding(db, current_user)
    except Exception as e:
        logger.error(f"Error completing onboarding: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to complete onboarding"
        )


@router.post("/quick-complete", response_model=QuickOnboardingResponse)
async def quick_complete_onboarding(
    payload: QuickOnboardingRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create the account and first income source in one step"""
    try:
        return await onboarding_service.quick_complete_onboarding(
            db,
            current_user,
            account_name=payload.account_name,
            account_description=payload.account_description,
            income_source=payload.income_source.model_dump() if payload.income_source else None,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in quick onboarding: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to complete onboarding"
        )
