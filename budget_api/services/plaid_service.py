"""
Bank linking and transaction import through the Plaid SDK.

Plaid reports outflows as positive amounts and inflows as negative ones;
imported transactions store the absolute amount with the matching type.
"""
import asyncio
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

import plaid
from plaid.api import plaid_api
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.institutions_get_by_id_request import InstitutionsGetByIdRequest
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.products import Products
from plaid.model.transactions_get_request import TransactionsGetRequest
from plaid.model.transactions_get_request_options import TransactionsGetRequestOptions
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.config import settings
from budget_api.exceptions import PlaidError
from budget_api.logging_config import get_logger
from budget_api.models import (
    PlaidAccount,
    PlaidItem,
    Transaction,
    TransactionStatus,
    TransactionType,
    User,
)
from budget_api.services.access_service import require_member

logger = get_logger(__name__)

CLIENT_NAME = "Budget Before Broke"
PRODUCTS = ["transactions"]
COUNTRY_CODES = ["US"]
TRANSACTIONS_PAGE_SIZE = 500

ITEM_ACTIVE = "active"
ITEM_ERROR = "error"


def get_client() -> plaid_api.PlaidApi:
    configuration = plaid.Configuration(
        host=settings.plaid_base_url,
        api_key={"clientId": settings.PLAID_CLIENT_ID, "secret": settings.PLAID_SECRET},
    )
    return plaid_api.PlaidApi(plaid.ApiClient(configuration))


async def _call(operation: str, request) -> dict:
    """Run one blocking SDK call off the event loop and return the response as a dict."""
    endpoint = getattr(get_client(), operation)
    try:
        response = await asyncio.to_thread(endpoint, request)
    except plaid.ApiException as e:
        raise PlaidError(f"Plaid {operation} failed: {e.status} {e.body}") from e
    return response.to_dict()


def _country_codes() -> List[CountryCode]:
    return [CountryCode(code) for code in COUNTRY_CODES]


def transaction_type_for(amount: float) -> TransactionType:
    return TransactionType.EXPENSE if amount > 0 else TransactionType.INCOME


async def create_link_token(user: User) -> dict:
    return await _call("link_token_create", LinkTokenCreateRequest(
        user=LinkTokenCreateRequestUser(client_user_id=user.id),
        client_name=CLIENT_NAME,
        products=[Products(product) for product in PRODUCTS],
        country_codes=_country_codes(),
        language="en",
    ))


async def exchange_public_token(db: AsyncSession, user: User, public_token: str, metadata: dict) -> PlaidItem:
    """
    Swap a Link public token for an access token and remember the item.

    ``metadata`` is what Plaid Link hands the client, plus the
    ``budget_account_id`` the item should import into.
    """
    account_id = metadata["budget_account_id"]
    await require_member(db, account_id, user.id)

    exchange = await _call("item_public_token_exchange", ItemPublicTokenExchangeRequest(public_token=public_token))
    institution = (await _call("institutions_get_by_id", InstitutionsGetByIdRequest(
        institution_id=metadata["institution"]["institution_id"],
        country_codes=_country_codes(),
    )))["institution"]

    item = PlaidItem(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        user_id=user.id,
        plaid_item_id=exchange["item_id"],
        plaid_access_token=exchange["access_token"],
        plaid_institution_id=institution["institution_id"],
        plaid_institution_name=institution["name"],
        status=ITEM_ACTIVE,
    )
    db.add(item)
    await db.commit()
    logger.info(f"Linked Plaid item {item.plaid_item_id} ({item.plaid_institution_name}) to account {account_id}")
    return item


async def _upsert_accounts(db: AsyncSession, item: PlaidItem, accounts: List[dict]) -> dict:
    """Store Plaid's accounts for an item; returns Plaid account id -> local id."""
    local_ids = {}
    for account in accounts:
        result = await db.execute(
            select(PlaidAccount).where(PlaidAccount.plaid_account_id == account["account_id"])
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = PlaidAccount(id=str(uuid.uuid4()), plaid_item_id=item.id, plaid_account_id=account["account_id"])
            db.add(row)
        row.name = account["name"]
        row.type = account["type"]
        row.subtype = account.get("subtype") or ""
        row.mask = account.get("mask")
        local_ids[account["account_id"]] = row.id
    await db.flush()
    return local_ids


async def _fetch_transactions(access_token: str, start: date, end: date) -> List[dict]:
    transactions: List[dict] = []
    while True:
        page = await _call("transactions_get", TransactionsGetRequest(
            access_token=access_token,
            start_date=start,
            end_date=end,
            options=TransactionsGetRequestOptions(count=TRANSACTIONS_PAGE_SIZE, offset=len(transactions)),
        ))
        transactions.extend(page["transactions"])
        if not page["transactions"] or len(transactions) >= page.get("total_transactions", 0):
            return transactions


async def _upsert_transaction(db: AsyncSession, item: PlaidItem, account_ids: dict, data: dict) -> None:
    result = await db.execute(
        select(Transaction).where(Transaction.plaid_transaction_id == data["transaction_id"])
    )
    transaction = result.scalar_one_or_none()
    if transaction is None:
        transaction = Transaction(
            id=str(uuid.uuid4()),
            budget_account_id=item.budget_account_id,
            created_by_user_id=item.user_id,
            plaid_item_id=item.id,
            plaid_account_id=account_ids.get(data["account_id"]),
            plaid_transaction_id=data["transaction_id"],
        )
        db.add(transaction)

    amount = float(data["amount"])
    categories = data.get("category") or []
    transaction.amount = abs(amount)
    transaction.type = transaction_type_for(amount)
    transaction.date = data["date"]
    transaction.description = data["name"]
    transaction.merchant_name = data.get("merchant_name")
    transaction.plaid_category = categories[0] if categories else None
    transaction.pending = bool(data.get("pending"))
    transaction.status = TransactionStatus.PENDING if transaction.pending else TransactionStatus.COMPLETED


async def sync_item(db: AsyncSession, item: PlaidItem, today: Optional[date] = None) -> int:
    """Import one item's accounts and recent transactions; returns the number of transactions seen."""
    end = today or date.today()
    start = end - timedelta(days=settings.PLAID_SYNC_DAYS)

    accounts = (await _call("accounts_get", AccountsGetRequest(access_token=item.plaid_access_token)))["accounts"]
    account_ids = await _upsert_accounts(db, item, accounts)

    transactions = await _fetch_transactions(item.plaid_access_token, start, end)
    for data in transactions:
        await _upsert_transaction(db, item, account_ids, data)

    item.last_sync_at = datetime.now(timezone.utc)
    await db.commit()
    return len(transactions)


async def sync_all_items(db: AsyncSession) -> dict:
    """
    Sync every active item. A failing item is marked ``error`` and the run
    moves on to the next one.
    """
    result = await db.execute(select(PlaidItem.id).where(PlaidItem.status == ITEM_ACTIVE))
    item_ids = result.scalars().all()

    synced, failed = 0, 0
    for item_id in item_ids:
        try:
            count = await sync_item(db, await db.get(PlaidItem, item_id))
            synced += 1
            logger.info(f"Synced {count} transactions for Plaid item {item_id}")
        except (PlaidError, KeyError, ValueError) as e:
            logger.error(f"Error syncing Plaid item {item_id}: {e}")
            await db.rollback()
            await db.execute(update(PlaidItem).where(PlaidItem.id == item_id).values(status=ITEM_ERROR))
            await db.commit()
            failed += 1

    return {"items": len(item_ids), "synced": synced, "failed": failed}
