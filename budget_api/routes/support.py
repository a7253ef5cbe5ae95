from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_current_user, get_optional_user, require_global_admin
from budget_api.models.user import User
from budget_api.schemas.account import SuccessResponse
from budget_api.schemas.support import (
    CanEditResponse,
    SupportCommentCreate,
    SupportCommentResponse,
    SupportRequestCreate,
    SupportRequestResponse,
    SupportRequestUpdate,
    SupportStatusUpdate,
)
from budget_api.services import support_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/support", tags=["support"])

StatusFilter = Optional[Literal["open", "Closed"]]


def _failed(action: str, e: Exception) -> HTTPException:
    logger.error(f"Error trying to {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )


@router.get("/requests", response_model=List[SupportRequestResponse])
async def get_public_support_requests(
    status_filter: StatusFilter = Query(default=None, alias="status"),
    db: AsyncSession = Depends(get_db)
):
    """Public support requests"""
    try:
        return await support_service.get_public_support_requests(db, status_filter)
    except Exception as e:
        raise _failed("fetch support requests", e)


@router.get("/requests/mine", response_model=List[SupportRequestResponse])
async def get_my_support_requests(
    status_filter: StatusFilter = Query(default=None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Support requests opened by the caller"""
    try:
        return await support_service.get_my_support_requests(db, current_user, status_filter)
    except Exception as e:
        raise _failed("fetch support requests", e)


@router.get("/requests/all", response_model=List[SupportRequestResponse])
async def get_all_support_requests(
    status_filter: StatusFilter = Query(default=None, alias="status"),
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
):
    """Every support request, public or not (global admin)"""
    try:
        return await support_service.get_all_support_requests_for_admin(db, status_filter)
    except Exception as e:
        raise _failed("fetch support requests", e)


@router.post("/requests", response_model=SupportRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_support_request(
    request_data: SupportRequestCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Open a support request"""
    try:
        return await support_service.create_support_request(
            db,
            current_user,
            request_data.title,
            request_data.description,
            request_data.category,
            request_data.is_public,
        )
    except Exception as e:
        await db.rollback()
        raise _failed("create support request", e)


@router.get("/requests/{request_id}/can-edit", response_model=CanEditResponse)
async def can_edit_support_request(
    request_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db)
):
    """Whether the caller may edit the request"""
    try:
        return {"can_edit": await support_service.can_edit_support_request(db, current_user, request_id)}
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("check permissions", e)


@router.post("/requests/{request_id}/upvote", response_model=SuccessResponse)
async def upvote_support_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upvote a request"""
    try:
        await support_service.upvote_support_request(db, request_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("upvote support request", e)


@router.post("/requests/{request_id}/downvote", response_model=SuccessResponse)
async def downvote_support_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Downvote a request"""
    try:
        await support_service.downvote_support_request(db, request_id)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("downvote support request", e)


@router.put("/requests/{request_id}/status", response_model=SuccessResponse)
async def update_support_request_status(
    request_id: str,
    payload: SupportStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change a request's status (creator or admin)"""
    try:
        await support_service.update_support_request_status(db, current_user, request_id, payload.status)
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("update support request", e)


@router.put("/requests/{request_id}", response_model=SuccessResponse)
async def update_support_request(
    request_id: str,
    payload: SupportRequestUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Edit a request (creator or admin)"""
    try:
        await support_service.update_support_request(
            db, current_user, request_id, payload.model_dump(exclude_unset=True)
        )
        return {"success": True}
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("update support request", e)


@router.get("/comments", response_model=List[SupportCommentResponse])
async def get_support_comments(
    request_ids: List[str] = Query(default=[]),
    db: AsyncSession = Depends(get_db)
):
    """Comments of the given requests, oldest first"""
    try:
        return await support_service.get_support_comments_for_requests(db, request_ids)
    except Exception as e:
        raise _failed("fetch comments", e)


@router.post(
    "/requests/{request_id}/comments",
    response_model=SupportCommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_support_comment(
    request_id: str,
    payload: SupportCommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Comment on a request"""
    try:
        return await support_service.add_support_comment(db, current_user, request_id, payload.text)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("add comment", e)
