from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, get_optional_user, require_global_admin
from budget_api.models.user import User
from budget_api.schemas.admin import AdminCheckResponse, RecordPayload, TableInfo
from budget_api.services import admin_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


def _failed(action: str, e: Exception) -> HTTPException:
    logger.error(f"Admin failed to {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {action}"
    )


@router.get("/check", response_model=AdminCheckResponse)
async def check_admin(current_user: Optional[User] = Depends(get_optional_user)):
    """Whether the caller is a global admin; anonymous callers are not"""
    return {"is_global_admin": bool(current_user and current_user.is_global_admin)}


@router.get("/tables", response_model=List[TableInfo])
async def get_available_tables(admin: User = Depends(require_global_admin)):
    """Managed tables with their editable and searchable fields"""
    return admin_service.get_available_tables()


@router.get("/tables/{table_name}")
async def get_table_data(
    table_name: str,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=50, ge=1, le=500, alias="pageSize"),
    search: Optional[str] = Query(default=None),
    sort_field: Optional[str] = Query(default=None, alias="sortField"),
    sort_direction: Literal["asc", "desc"] = Query(default="desc", alias="sortDirection"),
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """One page of rows"""
    try:
        return await admin_service.get_table_data(
            db, table_name, page, page_size, search, sort_field, sort_direction
        )
    except HTTPException:
        raise
    except Exception as e:
        raise _failed(f"fetch {table_name}", e)


@router.get("/tables/{table_name}/schema")
async def get_table_schema(table_name: str, admin: User = Depends(require_global_admin)) -> dict:
    return admin_service.get_table_schema(table_name)


@router.get("/tables/{table_name}/records/{record_id}")
async def get_table_record(
    table_name: str,
    record_id: str,
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
) -> dict:
    try:
        record = await admin_service.get_table_record(db, table_name, record_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _failed("fetch record", e)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    return record


@router.put("/tables/{table_name}/records/{record_id}")
async def update_table_record(
    table_name: str,
    record_id: str,
    payload: RecordPayload,
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Update editable fields only"""
    try:
        return await admin_service.update_table_record(db, table_name, record_id, payload.data)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("update record", e)


@router.delete("/tables/{table_name}/records/{record_id}")
async def delete_table_record(
    table_name: str,
    record_id: str,
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """Delete a row and return what it held"""
    try:
        return await admin_service.delete_table_record(db, table_name, record_id)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("delete record", e)


@router.post("/tables/{table_name}/records", status_code=status.HTTP_201_CREATED)
async def create_table_record(
    table_name: str,
    payload: RecordPayload,
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
) -> dict:
    try:
        return await admin_service.create_table_record(db, table_name, payload.data)
    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        raise _failed("create record", e)
