import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from budget_api.exceptions import BadRequestError, NotFoundError
from budget_api.models import Category, Debt, DebtAllocation, MonthlyDebtPlanning, Transaction, TransactionType
from budget_api.services import debt_service

from tests.conftest import FakeResult, FakeSession, make_user


USER = make_user()


def member():
    return FakeResult(rows=[SimpleNamespace(role="member")])


def car_loan(**kwargs):
    return Debt(
        id="debt-1", budget_account_id="acct-1", name="Car loan",
        payment_amount=Decimal(kwargs.pop("payment_amount", "300")),
        has_balance=kwargs.pop("has_balance", False),
        due_date=kwargs.pop("due_date", date(2025, 2, 10)),
    )


def pay(db, amount, payment_date):
    return asyncio.run(debt_service.create_debt_payment(
        db, USER, "debt-1", amount, payment_date, note=None, account_id="acct-1"
    ))


class TestCreateDebtPayment:

    def test_unknown_debt(self):
        db = FakeSession(results=[member(), FakeResult(scalar=None)])
        with pytest.raises(NotFoundError) as exc_info:
            pay(db, 50, "2025-02-05")
        assert exc_info.value.detail == "Debt not found"

    def test_amount_cannot_exceed_balance(self):
        db = FakeSession(results=[member(), FakeResult(scalar=car_loan(has_balance=True, payment_amount="100"))])
        with pytest.raises(BadRequestError) as exc_info:
            pay(db, 150, "2025-02-05")
        assert exc_info.value.detail == "Payment amount cannot exceed current balance"
        assert db.added == []

    def test_early_payment_creates_records_and_advances_due_date(self):
        debt = car_loan()
        db = FakeSession(results=[member(), FakeResult(scalar=debt), FakeResult(rows=[]), FakeResult(scalar=None)])
        result = pay(db, 300, "2025-02-05")

        category = next(o for o in db.added if isinstance(o, Category))
        transaction = next(o for o in db.added if isinstance(o, Transaction))
        planning = next(o for o in db.added if isinstance(o, MonthlyDebtPlanning))
        allocation = next(o for o in db.added if isinstance(o, DebtAllocation))

        assert (category.name, category.color) == ("Debts", "#ef4444")
        assert transaction.category_id == category.id
        assert transaction.description == "Payment for Car loan"
        assert transaction.type == TransactionType.EXPENSE
        assert transaction.debt_id == "debt-1"
        assert (planning.year, planning.month) == (2025, 2)
        assert allocation.monthly_debt_planning_id == planning.id
        assert allocation.is_paid is True
        assert result == {"id": allocation.id}
        assert debt.due_date == date(2025, 3, 10)
        assert debt.last_payment_month == date(2025, 2, 1)
        assert db.commits == 1

    def test_late_payment_reuses_category_and_keeps_due_date(self):
        debt = car_loan()
        existing_category = Category(id="cat-debts", budget_account_id="acct-1", name="Debts")
        existing_planning = MonthlyDebtPlanning(id="plan-1", budget_account_id="acct-1", debt_id="debt-1")
        db = FakeSession(results=[
            member(),
            FakeResult(scalar=debt),
            FakeResult(rows=[existing_category]),
            FakeResult(scalar=existing_planning),
        ])
        pay(db, 300, "2025-02-12")

        assert not any(isinstance(o, Category) for o in db.added)
        transaction = next(o for o in db.added if isinstance(o, Transaction))
        allocation = next(o for o in db.added if isinstance(o, DebtAllocation))
        assert transaction.category_id == "cat-debts"
        assert allocation.monthly_debt_planning_id == "plan-1"
        assert debt.due_date == date(2025, 2, 10)
        assert debt.last_payment_month is None
