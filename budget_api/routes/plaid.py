from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.exceptions import PlaidError
from budget_api.models.user import User
from budget_api.schemas.plaid import ExchangeTokenRequest, ExchangeTokenResponse, LinkTokenResponse
from budget_api.services import plaid_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/plaid", tags=["plaid"])


@router.post("/link-token", response_model=LinkTokenResponse)
async def create_link_token(current_user: User = Depends(get_current_user)):
    """Start Plaid Link for the caller"""
    try:
        return await plaid_service.create_link_token(current_user)
    except PlaidError as e:
        logger.error(f"Error creating Plaid link token for user {current_user.id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to create link token"
        )


@router.post("/exchange-token", response_model=ExchangeTokenResponse)
async def exchange_public_token(
    request_data: ExchangeTokenRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Link a bank to a budget account"""
    try:
        item = await plaid_service.exchange_public_token(
            db, current_user, request_data.public_token, request_data.metadata.model_dump()
        )
        return {"success": True, "item_id": item.id}
    except HTTPException:
        raise
    except PlaidError as e:
        logger.error(f"Error exchanging Plaid public token: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to exchange public token"
        )
    except Exception as e:
        logger.error(f"Error linking Plaid item: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to link bank account"
        )
