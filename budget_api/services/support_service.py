"""
Support requests (public feature requests / bug reports) and their comments.
"""
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from budget_api.exceptions import ForbiddenError, NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import SupportComment, SupportRequest, User

logger = get_logger(__name__)

STATUS_OPEN = "Open"
STATUS_CLOSED = "Closed"
STATUS_FILTER_OPEN = "open"


def serialize_request(request: SupportRequest) -> dict:
    return {
        "id": request.id,
        "title": request.title,
        "description": request.description,
        "category": request.category,
        "status": request.status,
        "is_public": request.is_public,
        "user_id": request.user_id,
        "user_name": request.user.name if request.user else None,
        "upvotes": request.upvotes,
        "downvotes": request.downvotes,
        "last_updated": request.last_updated,
        "created_at": request.created_at,
    }


def serialize_comment(comment: SupportComment) -> dict:
    return {
        "id": comment.id,
        "request_id": comment.request_id,
        "user_id": comment.user_id,
        "user_name": comment.user.name if comment.user else None,
        "text": comment.text,
        "timestamp": comment.timestamp,
    }


def _apply_status_filter(stmt, status: Optional[str]):
    if status == STATUS_CLOSED:
        return stmt.where(SupportRequest.status == STATUS_CLOSED)
    if status == STATUS_FILTER_OPEN:
        return stmt.where(SupportRequest.status != STATUS_CLOSED)
    return stmt


async def _list_requests(db: AsyncSession, status: Optional[str], *conditions) -> List[dict]:
    stmt = (
        select(SupportRequest)
        .where(*conditions)
        .options(joinedload(SupportRequest.user))
        .order_by(SupportRequest.last_updated.desc())
    )
    result = await db.execute(_apply_status_filter(stmt, status))
    return [serialize_request(r) for r in result.scalars().all()]


async def get_public_support_requests(db: AsyncSession, status: Optional[str] = None) -> List[dict]:
    return await _list_requests(db, status, SupportRequest.is_public.is_(True))


async def get_my_support_requests(db: AsyncSession, user: User, status: Optional[str] = None) -> List[dict]:
    return await _list_requests(db, status, SupportRequest.user_id == user.id)


async def get_all_support_requests_for_admin(db: AsyncSession, status: Optional[str] = None) -> List[dict]:
    return await _list_requests(db, status)


async def _get_request(db: AsyncSession, request_id: str) -> SupportRequest:
    request = await db.get(SupportRequest, request_id)
    if request is None:
        raise NotFoundError("Support request not found")
    return request


def can_edit(request: SupportRequest, user: Optional[User]) -> bool:
    if user is None:
        return False
    return bool(user.is_global_admin) or request.user_id == user.id


async def can_edit_support_request(db: AsyncSession, user: Optional[User], request_id: str) -> bool:
    return can_edit(await _get_request(db, request_id), user)


async def create_support_request(
    db: AsyncSession,
    user: User,
    title: str,
    description: str,
    category: str,
    is_public: bool,
) -> dict:
    now = datetime.now(timezone.utc)
    request = SupportRequest(
        id=str(uuid.uuid4()),
        title=title,
        description=description,
        category=category,
        status=STATUS_OPEN,
        is_public=is_public,
        user_id=user.id,
        upvotes=0,
        downvotes=0,
        last_updated=now,
    )
    db.add(request)
    await db.commit()
    logger.info(f"User {user.id} opened support request {request.id}")

    result = await db.execute(
        select(SupportRequest).where(SupportRequest.id == request.id).options(joinedload(SupportRequest.user))
    )
    return serialize_request(result.scalar_one())


async def _vote(db: AsyncSession, request_id: str, column) -> None:
    result = await db.execute(
        update(SupportRequest).where(SupportRequest.id == request_id).values({column: column + 1})
    )
    if not result.rowcount:
        raise NotFoundError("Support request not found")
    await db.commit()


async def upvote_support_request(db: AsyncSession, request_id: str) -> None:
    await _vote(db, request_id, SupportRequest.upvotes)


async def downvote_support_request(db: AsyncSession, request_id: str) -> None:
    await _vote(db, request_id, SupportRequest.downvotes)


async def _get_editable_request(db: AsyncSession, user: User, request_id: str) -> SupportRequest:
    request = await _get_request(db, request_id)
    if not can_edit(request, user):
        raise ForbiddenError("You don't have permission to edit this request")
    return request


async def update_support_request_status(db: AsyncSession, user: User, request_id: str, status: str) -> None:
    request = await _get_editable_request(db, user, request_id)
    request.status = status
    request.last_updated = datetime.now(timezone.utc)
    await db.commit()


async def update_support_request(db: AsyncSession, user: User, request_id: str, data: dict) -> None:
    """Apply edits from the creator or an admin; ``last_updated`` moves only when something changed."""
    request = await _get_editable_request(db, user, request_id)
    changes = {k: v for k, v in data.items() if v is not None}
    if not changes:
        return
    for field, value in changes.items():
        setattr(request, field, value)
    request.last_updated = datetime.now(timezone.utc)
    await db.commit()


async def get_support_comments_for_requests(db: AsyncSession, request_ids: Sequence[str]) -> List[dict]:
    if not request_ids:
        return []
    result = await db.execute(
        select(SupportComment)
        .where(SupportComment.request_id.in_(list(request_ids)))
        .options(joinedload(SupportComment.user))
        .order_by(SupportComment.timestamp)
    )
    return [serialize_comment(c) for c in result.scalars().all()]


async def add_support_comment(db: AsyncSession, user: User, request_id: str, text: str) -> dict:
    request = await _get_request(db, request_id)
    now = datetime.now(timezone.utc)
    comment = SupportComment(
        id=str(uuid.uuid4()),
        request_id=request_id,
        user_id=user.id,
        text=text,
        timestamp=now,
    )
    db.add(comment)
    request.last_updated = now
    await db.commit()

    return {
        "id": comment.id,
        "request_id": request_id,
        "user_id": user.id,
        "user_name": user.name,
        "text": text,
        "timestamp": now,
    }
