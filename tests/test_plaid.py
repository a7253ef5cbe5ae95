import asyncio
from datetime import date

from budget_api.exceptions import PlaidError
from budget_api.models import PlaidAccount, PlaidItem, Transaction, TransactionStatus, TransactionType
from budget_api.services import plaid_service

from tests.conftest import FakeResult, FakeSession, make_user


class TestTransactionType:

    def test_outflows_are_expenses(self):
        assert plaid_service.transaction_type_for(12.5) == TransactionType.EXPENSE

    def test_inflows_are_income(self):
        assert plaid_service.transaction_type_for(-1500) == TransactionType.INCOME


class TestLinkToken:

    def test_request_payload(self, monkeypatch):
        calls = []

        async def fake_call(operation, request):
            calls.append((operation, request))
            return {"link_token": "link-sandbox-1"}

        monkeypatch.setattr(plaid_service, "_call", fake_call)
        result = asyncio.run(plaid_service.create_link_token(make_user()))

        assert result == {"link_token": "link-sandbox-1"}
        operation, request = calls[0]
        assert operation == "link_token_create"
        assert request.user.client_user_id == "user-1"
        assert [p.value for p in request.products] == ["transactions"]
        assert [c.value for c in request.country_codes] == ["US"]
        assert request.client_name == "Budget Before Broke"


class TestSyncAllItems:

    def test_failed_item_is_marked_and_run_continues(self, monkeypatch):
        good = PlaidItem(id="i1", plaid_item_id="good", status="active")
        bad = PlaidItem(id="i2", plaid_item_id="bad", status="active")
        db = FakeSession(results=[FakeResult(rows=["i1", "i2"])], objects={"i1": good, "i2": bad})

        async def fake_sync(session, item, today=None):
            if item is bad:
                raise PlaidError("ITEM_LOGIN_REQUIRED")
            return 7

        monkeypatch.setattr(plaid_service, "sync_item", fake_sync)
        summary = asyncio.run(plaid_service.sync_all_items(db))

        assert summary == {"items": 2, "synced": 1, "failed": 1}
        assert db.rollbacks == 1
        assert db.commits == 1


class TestSyncItem:

    def test_accounts_and_transactions_are_imported(self, monkeypatch):
        """Outflows become expenses and inflows income, both stored as positive amounts."""
        item = PlaidItem(
            id="i1", budget_account_id="acct-1", user_id="user-1",
            plaid_item_id="item-1", plaid_access_token="access-1", status="active",
        )
        db = FakeSession()
        requests = []

        async def fake_call(operation, request):
            requests.append(operation)
            if operation == "accounts_get":
                return {"accounts": [{"account_id": "pa-1", "name": "Checking", "type": "depository",
                                      "subtype": "checking", "mask": "0000"}]}
            return {
                "total_transactions": 2,
                "transactions": [
                    {"transaction_id": "t1", "account_id": "pa-1", "amount": 12.5, "date": date(2025, 1, 3),
                     "name": "Coffee", "merchant_name": "Cafe", "category": ["Food"], "pending": False},
                    {"transaction_id": "t2", "account_id": "pa-1", "amount": -1500, "date": date(2025, 1, 4),
                     "name": "Payroll", "category": None, "pending": True},
                ],
            }

        monkeypatch.setattr(plaid_service, "_call", fake_call)
        count = asyncio.run(plaid_service.sync_item(db, item, today=date(2025, 1, 10)))

        assert count == 2
        assert requests == ["accounts_get", "transactions_get"]
        account = [o for o in db.added if isinstance(o, PlaidAccount)][0]
        coffee, payroll = [o for o in db.added if isinstance(o, Transaction)]
        assert coffee.plaid_account_id == account.id
        assert (coffee.amount, coffee.type, coffee.plaid_category) == (12.5, TransactionType.EXPENSE, "Food")
        assert (payroll.amount, payroll.type, payroll.status) == (1500, TransactionType.INCOME, TransactionStatus.PENDING)
        assert item.last_sync_at is not None
        assert db.commits == 1
