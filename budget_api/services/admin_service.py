"""
Generic table browser for global admins.

Each managed table is registered with the fields an admin may edit and the
fields the free-text search runs over.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Type

from sqlalchemy import String, cast, func, inspect, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.db import Base
from budget_api.exceptions import NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import (
    Budget,
    BudgetAccount,
    BudgetAccountInvitation,
    BudgetAccountMember,
    BudgetCategory,
    Category,
    ContactSubmission,
    Debt,
    DebtAllocation,
    DismissedWarning,
    EmailConversation,
    IncomeSource,
    MonthlyDebtPlanning,
    PlaidAccount,
    PlaidItem,
    SupportComment,
    SupportRequest,
    Transaction,
    User,
)

logger = get_logger(__name__)

# Never returned to the browser.
HIDDEN_COLUMNS = {"plaid_access_token"}


@dataclass(frozen=True)
class TableConfig:
    model: Type[Base]
    editable_fields: List[str] = field(default_factory=list)
    search_fields: List[str] = field(default_factory=list)


TABLE_CONFIGS: Dict[str, TableConfig] = {
    "user": TableConfig(User, ["name", "email", "phone_number", "is_global_admin", "email_verified"], ["name", "email"]),
    "budgetAccounts": TableConfig(BudgetAccount, ["name", "description", "account_number"], ["name", "account_number"]),
    "budgetAccountMembers": TableConfig(BudgetAccountMember, ["role"], ["role"]),
    "budgetAccountInvitations": TableConfig(
        BudgetAccountInvitation, ["invitee_email", "role", "status"], ["invitee_email", "role", "status"]
    ),
    "budgets": TableConfig(Budget, ["name", "description", "year", "month", "total_budget"], ["name"]),
    "categories": TableConfig(Category, ["name", "description", "color", "icon"], ["name"]),
    "budgetCategories": TableConfig(BudgetCategory, ["amount"], []),
    "transactions": TableConfig(
        Transaction,
        ["amount", "description", "type", "status", "merchant_name"],
        ["description", "merchant_name", "type", "status"],
    ),
    "plaidItems": TableConfig(PlaidItem, ["status"], ["plaid_institution_name", "status"]),
    "plaidAccounts": TableConfig(PlaidAccount, ["name", "type", "subtype"], ["name", "type", "subtype"]),
    "incomeSources": TableConfig(
        IncomeSource, ["name", "amount", "frequency", "is_active", "notes"], ["name", "frequency"]
    ),
    "debts": TableConfig(Debt, ["name", "payment_amount", "interest_rate", "has_balance"], ["name"]),
    "debtAllocations": TableConfig(DebtAllocation, ["payment_amount", "is_paid", "note"], ["note"]),
    "monthlyDebtPlanning": TableConfig(MonthlyDebtPlanning, ["year", "month", "is_active"], []),
    "supportRequests": TableConfig(
        SupportRequest,
        ["title", "description", "category", "status", "is_public"],
        ["title", "category", "status"],
    ),
    "supportComments": TableConfig(SupportComment, ["text"], ["text"]),
    "dismissedWarnings": TableConfig(DismissedWarning, ["warning_type", "warning_key"], ["warning_type"]),
    "contactSubmissions": TableConfig(
        ContactSubmission,
        ["name", "email", "subject", "message", "status", "notes"],
        ["name", "email", "subject", "status"],
    ),
    "emailConversations": TableConfig(
        EmailConversation,
        ["subject", "message", "message_type", "direction"],
        ["subject", "message_type", "direction"],
    ),
}

FIELD_TYPES = {
    "name": "string",
    "email": "email",
    "invitee_email": "email",
    "description": "text",
    "subject": "string",
    "message": "text",
    "text": "text",
    "notes": "text",
    "note": "text",
    "title": "string",
    "amount": "number",
    "payment_amount": "number",
    "total_budget": "number",
    "interest_rate": "number",
    "year": "number",
    "month": "number",
    "upvotes": "number",
    "downvotes": "number",
    "is_global_admin": "boolean",
    "email_verified": "boolean",
    "is_active": "boolean",
    "is_paid": "boolean",
    "is_public": "boolean",
    "has_balance": "boolean",
    "status": "select",
    "role": "select",
    "type": "select",
    "category": "select",
    "frequency": "select",
    "message_type": "select",
    "direction": "select",
    "warning_type": "select",
    "due_date": "date",
    "start_date": "date",
    "end_date": "date",
    "payment_date": "date",
}


def display_name(table_name: str) -> str:
    """``budgetAccounts`` -> ``budget Accounts``"""
    return re.sub(r"([A-Z])", r" \1", table_name).strip()


def pagination(page: int, page_size: int, total_items: int) -> dict:
    total_pages = math.ceil(total_items / page_size) if page_size else 0
    return {
        "page": page,
        "pageSize": page_size,
        "totalItems": total_items,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1,
    }


def get_table_config(table_name: str) -> TableConfig:
    config = TABLE_CONFIGS.get(table_name)
    if config is None:
        raise NotFoundError(f"Table {table_name} not found")
    return config


def serialize_record(record) -> dict:
    return {
        attr.key: getattr(record, attr.key)
        for attr in inspect(record).mapper.column_attrs
        if attr.key not in HIDDEN_COLUMNS
    }


def editable_values(config: TableConfig, data: dict) -> dict:
    return {key: value for key, value in data.items() if key in config.editable_fields}


def get_available_tables() -> List[dict]:
    return [
        {
            "name": name,
            "display_name": display_name(name),
            "editable_fields": config.editable_fields,
            "search_fields": config.search_fields,
        }
        for name, config in TABLE_CONFIGS.items()
    ]


async def get_table_data(
    db: AsyncSession,
    table_name: str,
    page: int = 1,
    page_size: int = 50,
    search: Optional[str] = None,
    sort_field: Optional[str] = None,
    sort_direction: str = "desc",
) -> dict:
    """
    One page of rows from a managed table.

    Search is a case-insensitive substring match OR-ed across the table's
    search fields. Without a valid sort field, rows come newest first by
    ``created_at`` (or by ``id`` where there is no such column).
    """
    config = get_table_config(table_name)
    model = config.model
    columns = inspect(model).columns

    stmt = select(model)
    count_stmt = select(func.count()).select_from(model)
    if search and config.search_fields:
        condition = or_(*[cast(columns[f], String).ilike(f"%{search}%") for f in config.search_fields])
        stmt = stmt.where(condition)
        count_stmt = count_stmt.where(condition)

    if sort_field and sort_field in columns:
        column = columns[sort_field]
        stmt = stmt.order_by(column.asc() if sort_direction == "asc" else column.desc())
    else:
        default = columns["created_at"] if "created_at" in columns else columns["id"]
        stmt = stmt.order_by(default.desc())

    stmt = stmt.limit(page_size).offset((page - 1) * page_size)
    rows = (await db.execute(stmt)).scalars().all()
    total = (await db.execute(count_stmt)).scalar_one()

    return {
        "data": [serialize_record(r) for r in rows],
        "pagination": pagination(page, page_size, total),
    }


async def _get_record(db: AsyncSession, config: TableConfig, record_id: str):
    record = await db.get(config.model, record_id)
    if record is None:
        raise NotFoundError("Record not found")
    return record


async def get_table_record(db: AsyncSession, table_name: str, record_id: str) -> Optional[dict]:
    config = get_table_config(table_name)
    record = await db.get(config.model, record_id)
    return serialize_record(record) if record is not None else None


async def update_table_record(db: AsyncSession, table_name: str, record_id: str, data: dict) -> dict:
    config = get_table_config(table_name)
    record = await _get_record(db, config, record_id)
    for key, value in editable_values(config, data).items():
        setattr(record, key, value)
    if hasattr(record, "updated_at"):
        record.updated_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(record)
    logger.info(f"Admin updated {table_name} record {record_id}")
    return serialize_record(record)


async def delete_table_record(db: AsyncSession, table_name: str, record_id: str) -> dict:
    config = get_table_config(table_name)
    record = await _get_record(db, config, record_id)
    snapshot = serialize_record(record)
    await db.delete(record)
    await db.commit()
    logger.info(f"Admin deleted {table_name} record {record_id}")
    return snapshot


async def create_table_record(db: AsyncSession, table_name: str, data: dict) -> dict:
    config = get_table_config(table_name)
    record = config.model(**editable_values(config, data))
    db.add(record)
    await db.commit()
    await db.refresh(record)
    logger.info(f"Admin created {table_name} record {record.id}")
    return serialize_record(record)


def get_table_schema(table_name: str) -> dict:
    config = get_table_config(table_name)
    return {
        "table_name": table_name,
        "fields": [
            {"name": f, "type": FIELD_TYPES.get(f, "string"), "required": False}
            for f in config.editable_fields
        ],
        "editable_fields": config.editable_fields,
        "search_fields": config.search_fields,
    }
