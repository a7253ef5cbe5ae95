from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user
from budget_api.exceptions import NotFoundError
from budget_api.models.user import User
from budget_api.schemas.account import (
    AccountCreate,
    AccountCreateResponse,
    AccountNameUpdate,
    AccountResponse,
    InvitationResponse,
    InviteRequest,
    RoleUpdate,
    SuccessResponse,
)
from budget_api.services import account_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/accounts", tags=["accounts"])


def _server_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error trying to {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )


@router.get("", response_model=List[AccountResponse])
async def get_accounts(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get every budget account the caller belongs to"""
    try:
        return await account_service.get_accounts(db, current_user)
    except Exception as e:
        raise _server_error("fetch accounts", e)


@router.post("", response_model=AccountCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_account(
    account_data: AccountCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a budget account owned by the caller"""
    try:
        account_id = await account_service.create_account(
            db, current_user, account_data.name, account_data.description
        )
        return {"id": account_id}
    except Exception as e:
        await db.rollback()
        raise _server_error("create account", e)


@router.get("/default", response_model=Optional[AccountResponse])
async def get_default_account(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the caller's default budget account"""
    try:
        return await account_service.get_default_account(db, current_user)
    except HTTPException:
        raise
    except Exception as e:
        raise _server_error("fetch default account", e)


@router.put("/default/{account_id}", response_model=SuccessResponse)
async def update_default_account(
    account_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Switch the caller's default budget account"""
    try:
        await account_service.update_default_account(db, current_user, account_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("update default account", e)


@router.post("/invite", response_model=SuccessResponse)
async def invite_to_default_account(
    invite: InviteRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Invite someone to the caller's default account"""
    try:
        return await account_service.invite_to_account(db, current_user, invite.email, invite.role)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("send invitation", e)


@router.post("/invitations/{invitation_id}/resend", response_model=SuccessResponse)
async def resend_invite(
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Issue a fresh token for a pending invitation and e-mail it again"""
    try:
        await account_service.resend_invite(db, current_user, invitation_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("resend invitation", e)


@router.delete("/invitations/{invitation_id}", response_model=SuccessResponse)
async def delete_invitation(
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Withdraw an invitation"""
    try:
        await account_service.delete_invitation(db, current_user, invitation_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("delete invitation", e)


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(
    account_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get a budget account by ID"""
    try:
        account = await account_service.get_account(db, current_user, account_id)
        if account is None:
            raise NotFoundError("Account not found")
        return account
    except HTTPException:
        raise
    except Exception as e:
        raise _server_error("fetch account", e)


@router.put("/{account_id}", response_model=SuccessResponse)
async def update_account_name(
    account_id: str,
    payload: AccountNameUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Rename a budget account (owner only)"""
    try:
        await account_service.update_account_name(db, current_user, account_id, payload.name)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("update account", e)


@router.post("/{account_id}/invitations", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(
    account_id: str,
    invite: InviteRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Invite someone to a budget account (owner only)"""
    try:
        return await account_service.invite_user(db, current_user, account_id, invite.email, invite.role)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("send invitation", e)


@router.delete("/{account_id}/members/{user_id}", response_model=SuccessResponse)
async def remove_user(
    account_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Remove a member (owner only)"""
    try:
        await account_service.remove_user(db, current_user, account_id, user_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("remove member", e)


@router.put("/{account_id}/members/{user_id}/role", response_model=SuccessResponse)
async def update_user_role(
    account_id: str,
    user_id: str,
    payload: RoleUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change a member's role (owner only)"""
    try:
        await account_service.update_user_role(db, current_user, account_id, user_id, payload.role)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _server_error("update member role", e)
