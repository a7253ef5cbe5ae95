from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.db import AsyncSessionLocal
from budget_api.exceptions import ForbiddenError, UnauthorizedError
from budget_api.logging_config import get_logger
from budget_api.models.user import User
from budget_api.utils.jwt import decode_access_token

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Database session dependency"""
    async with AsyncSessionLocal() as session:
        yield session


async def _resolve_user(
    credentials: Optional[HTTPAuthorizationCredentials],
    db: AsyncSession,
) -> Optional[User]:
    if credentials is None or not credentials.credentials:
        return None

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected invalid access token: {e}")
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Current user, or None for anonymous requests"""
    return await _resolve_user(credentials, db)


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    """Current user; 401 when the bearer token is missing or invalid"""
    if user is None:
        raise UnauthorizedError("Not authenticated")
    return user


async def require_global_admin(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if user is None:
        raise UnauthorizedError("Authentication required")
    if not user.is_global_admin:
        raise ForbiddenError("Global admin access required")
    return user
