from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.config import settings
from budget_api.dependencies import get_db, get_optional_user
from budget_api.models.user import User
from budget_api.services import account_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/invite", tags=["invitations"])


@router.get("/accept")
async def accept_invitation(
    token: Optional[str] = Query(None),
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Accept an e-mailed invitation.

    Anonymous visitors are sent to sign-up with the token so the invite can be
    accepted once they have an account.
    """
    try:
        invitation = await account_service.get_invitation_by_token(db, token)

        if current_user is None:
            return RedirectResponse(
                url=f"{settings.APP_BASE_URL}/auth/signup?inviteToken={token}",
                status_code=status.HTTP_307_TEMPORARY_REDIRECT,
            )

        await account_service.accept_invitation(db, current_user, invitation)
        return RedirectResponse(
            url=f"{settings.APP_BASE_URL}/account?joined=1&inviteAccepted=1",
            status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error accepting invitation: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to accept invitation"
        )
