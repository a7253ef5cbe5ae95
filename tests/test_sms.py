import asyncio
from datetime import date
from decimal import Decimal

from twilio.request_validator import RequestValidator

from budget_api.config import settings
from budget_api.models import Category, Transaction, TransactionType
from budget_api.services import sms_service
from budget_api.services.sms_service import BudgetLine, ParsedSms, parse_transaction_message

from tests.conftest import FakeResult, FakeSession, make_user


API = "/api/v1"
WEBHOOK_URL = f"http://testserver{API}/sms/webhook"
TODAY = date(2025, 3, 12)  # a Wednesday


def texter(**kwargs):
    return make_user(phone_number="+15551234567", default_budget_account_id=kwargs.pop("account", "acct-1"))


class TestPhoneNumbers:

    def test_us_numbers_get_country_code(self):
        assert sms_service.format_phone_number("(555) 123-4567") == "+15551234567"

    def test_long_numbers_get_plus(self):
        assert sms_service.format_phone_number("447700900123") == "+447700900123"

    def test_e164_is_kept(self):
        assert sms_service.format_phone_number("+15551234567") == "+15551234567"


class TestParseTransactionMessage:

    def test_expense_with_category_and_merchant(self):
        parsed = parse_transaction_message("Spent $25 on groceries at Walmart", TODAY)
        assert parsed == ParsedSms(
            amount=25.0, description="expense via SMS", type=TransactionType.EXPENSE,
            category="groceries", merchant="Walmart", date=None,
        )

    def test_income_with_short_date(self):
        parsed = parse_transaction_message("Income $500 freelance work 12/15", TODAY)
        assert parsed.type == TransactionType.INCOME
        assert parsed.amount == 500.0
        assert parsed.category == "freelance work"
        assert parsed.date == date(2025, 12, 15)

    def test_relative_dates(self):
        assert parse_transaction_message("Paid $50 for gas at Shell yesterday", TODAY).date == date(2025, 3, 11)
        assert parse_transaction_message("Spent 12.50 on coffee 3 days ago", TODAY).date == date(2025, 3, 9)

    def test_weekday_is_next_occurrence(self):
        assert sms_service.parse_sms_date("Monday", TODAY) == date(2025, 3, 17)
        assert sms_service.parse_sms_date("wednesday", TODAY) == TODAY

    def test_two_digit_year(self):
        parsed = parse_transaction_message("Spent $40 on gifts 12/15/24", TODAY)
        assert parsed.date == date(2024, 12, 15)
        assert parsed.category == "gifts"

    def test_impossible_date_is_dropped(self):
        assert sms_service.parse_sms_date("2/30", TODAY) is None

    def test_amount_is_required(self):
        assert parse_transaction_message("coffee with sam", TODAY) is None
        assert parse_transaction_message("spent $0 on nothing", TODAY) is None


class TestReplies:

    def test_budget_remaining(self):
        parsed = parse_transaction_message("Spent $25 on groceries at Walmart", TODAY)
        reply = sms_service.format_transaction_reply(parsed, BudgetLine("groceries", 200, 80), TODAY)
        assert reply == (
            "✅ Expense recorded: $25.00 - expense via SMS at Walmart (groceries)"
            "\n\n💰 groceries budget remaining: $120.00"
        )

    def test_budget_exceeded_and_past_date(self):
        parsed = parse_transaction_message("Paid $50 for gas yesterday", TODAY)
        reply = sms_service.format_transaction_reply(parsed, BudgetLine("gas", 50, 80), TODAY)
        assert "(gas) on 3/11/2025" in reply
        assert reply.endswith("⚠️ gas budget exceeded by $30.00")


class TestProcessSmsMessage:

    def test_unknown_number(self):
        db = FakeSession(results=[FakeResult(rows=[])])
        assert asyncio.run(sms_service.process_sms_message(db, "5551234567", "help")) == sms_service.UNKNOWN_NUMBER

    def test_help(self):
        db = FakeSession(results=[FakeResult(rows=[texter()])])
        assert asyncio.run(sms_service.process_sms_message(db, "5551234567", " HELP ")) == sms_service.HELP_MESSAGE

    def test_budget_summary(self):
        db = FakeSession(results=[
            FakeResult(rows=[texter()]),
            FakeResult(rows=[("Gas", Decimal("100"), 0), ("Groceries", Decimal("200.00"), Decimal("80.00"))]),
        ])
        reply = asyncio.run(sms_service.process_sms_message(db, "5551234567", "budget", TODAY))
        assert reply == "📊 Budget Summary (3/2025):\n\nGas: $100.00 remaining\nGroceries: $120.00 remaining"

    def test_single_category_over_budget(self):
        db = FakeSession(results=[
            FakeResult(rows=[texter()]),
            FakeResult(rows=[("Dining", Decimal("50"), Decimal("65.5"))]),
        ])
        reply = asyncio.run(sms_service.process_sms_message(db, "5551234567", "Balance dining", TODAY))
        assert reply.startswith("💰 Dining Budget:")
        assert reply.endswith("Remaining: $-15.50 (over budget)")

    def test_unknown_category_lists_alternatives(self):
        db = FakeSession(results=[
            FakeResult(rows=[texter()]),
            FakeResult(rows=[]),
            FakeResult(rows=["Gas", "Groceries"]),
        ])
        reply = asyncio.run(sms_service.process_sms_message(db, "5551234567", "budget dining", TODAY))
        assert reply == 'No budget found for "dining" this month. Available categories: Gas, Groceries'

    def test_transaction_is_recorded(self):
        db = FakeSession(results=[FakeResult(rows=[texter()]), FakeResult(rows=[]), FakeResult(rows=[])])
        reply = asyncio.run(sms_service.process_sms_message(
            db, "5551234567", "Spent $25 on groceries at Walmart", TODAY
        ))

        category = next(o for o in db.added if isinstance(o, Category))
        transaction = next(o for o in db.added if isinstance(o, Transaction))
        assert category.name == "groceries"
        assert transaction.category_id == category.id
        assert transaction.amount == 25.0
        assert transaction.type == TransactionType.EXPENSE
        assert transaction.merchant_name == "Walmart"
        assert transaction.created_by_user_id == "user-1"
        assert transaction.date == TODAY
        assert db.commits == 1
        assert reply == "✅ Expense recorded: $25.00 - expense via SMS at Walmart (groceries)"

    def test_transaction_needs_an_account(self):
        db = FakeSession(results=[FakeResult(rows=[texter(account=None)])])
        reply = asyncio.run(sms_service.process_sms_message(db, "5551234567", "spent $5 on tea", TODAY))
        assert reply == sms_service.NO_ACCOUNT
        assert db.added == []

    def test_unrecognized(self):
        db = FakeSession(results=[FakeResult(rows=[texter()])])
        reply = asyncio.run(sms_service.process_sms_message(db, "5551234567", "hello there", TODAY))
        assert reply == sms_service.UNRECOGNIZED


class TestSmsWebhook:

    def test_missing_signature(self, client):
        response = client.post(f"{API}/sms/webhook", data={"From": "+15551234567", "Body": "help"})
        assert response.status_code == 401
        assert response.json() == {"error": "Missing Twilio signature"}

    def test_invalid_signature(self, client, monkeypatch):
        monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "tw-token")
        response = client.post(
            f"{API}/sms/webhook",
            data={"From": "+15551234567", "Body": "help"},
            headers={"X-Twilio-Signature": "forged"},
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid Twilio signature"}

    def test_signed_message_gets_twiml_reply(self, client, monkeypatch):
        params = {"From": "+15551234567", "To": "+15550000000", "Body": "budget", "MessageSid": "SM1"}
        signature = RequestValidator("tw-token").compute_signature(WEBHOOK_URL, params)
        received = []

        async def fake_process(db, from_number, body):
            received.append((from_number, body))
            return "Gas: $10.00 remaining"

        monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "tw-token")
        monkeypatch.setattr(sms_service, "process_sms_message", fake_process)
        response = client.post(f"{API}/sms/webhook", data=params, headers={"X-Twilio-Signature": signature})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/xml")
        assert "<Message>Gas: $10.00 remaining</Message>" in response.text
        assert received == [("+15551234567", "budget")]

    def test_missing_fields(self, client, monkeypatch):
        monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", None)
        response = client.post(f"{API}/sms/webhook", data={"From": "+15551234567"}, headers={"X-Twilio-Signature": "x"})
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required SMS data"}

    def test_failure_still_replies(self, client, fake_db, monkeypatch):
        async def broken(db, from_number, body):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", None)
        monkeypatch.setattr(sms_service, "process_sms_message", broken)
        response = client.post(
            f"{API}/sms/webhook",
            data={"From": "+15551234567", "Body": "help"},
            headers={"X-Twilio-Signature": "x"},
        )

        assert response.status_code == 200
        assert "Sorry, I encountered an error processing your message." in response.text
        assert fake_db.rollbacks == 1
