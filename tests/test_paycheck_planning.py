import asyncio
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from budget_api.exceptions import BadRequestError, ForbiddenError, NotFoundError
from budget_api.models import Debt, DebtAllocation, DismissedWarning, IncomeFrequency, IncomeSource, MonthlyDebtPlanning
from budget_api.services import paycheck_planning_service as planning
from budget_api.utils.date_utils import to_ymd

from tests.conftest import FakeResult, FakeSession, make_user


USER = make_user()


def member():
    return FakeResult(rows=[SimpleNamespace(role="member")])


def salary(source_id):
    return IncomeSource(
        id=source_id, user_id=USER.id, name=f"Salary {source_id}", amount=Decimal("1000"),
        frequency=IncomeFrequency.MONTHLY, start_date=date(2025, 1, 15), is_active=True,
    )


class TestAccess:

    def test_non_member_is_denied(self):
        db = FakeSession(results=[FakeResult(rows=[])])
        with pytest.raises(ForbiddenError) as exc_info:
            asyncio.run(planning.get_debt_allocations(db, USER, "acct-1"))
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == "Access denied to budget account"


class TestUpdateDebtAllocation:

    def test_allocate_creates_scheduled_payment(self):
        db = FakeSession(results=[member(), FakeResult(rows=[]), FakeResult(scalar=SimpleNamespace(id="plan-1"))])
        asyncio.run(planning.update_debt_allocation(
            db, USER, "acct-1", "plan-1", "inc-a-2025-01-15", "allocate", 250, "2025-01-15"
        ))

        allocation = db.added[0]
        assert isinstance(allocation, DebtAllocation)
        assert allocation.paycheck_id == "inc-a-2025-01-15"
        assert allocation.payment_amount == 250
        assert allocation.payment_date == date(2025, 1, 15)
        assert allocation.note == "Scheduled payment from paycheck allocation on 2025-01-15"
        assert allocation.is_paid is False
        assert db.commits == 1

    def test_allocate_overwrites_existing_row(self):
        existing = DebtAllocation(id="pay-1", payment_amount=100, note=None)
        db = FakeSession(results=[member(), FakeResult(rows=[existing])])
        asyncio.run(planning.update_debt_allocation(
            db, USER, "acct-1", "plan-1", "inc-a-2025-01-15", "allocate", 175, "2025-01-20"
        ))

        assert db.added == []
        assert existing.payment_amount == 175
        assert existing.note == "Updated payment from paycheck allocation on 2025-01-20"

    def test_zero_amount_is_stored_as_null(self):
        db = FakeSession(results=[member(), FakeResult(rows=[]), FakeResult(scalar=SimpleNamespace(id="plan-1"))])
        asyncio.run(planning.update_debt_allocation(db, USER, "acct-1", "plan-1", "p1", "allocate", 0, None))

        assert db.added[0].payment_amount is None
        assert db.added[0].note is None

    def test_update_without_row_changes_nothing(self):
        db = FakeSession(results=[member(), FakeResult(rows=[])])
        asyncio.run(planning.update_debt_allocation(db, USER, "acct-1", "plan-1", "p1", "update", 50, "2025-01-15"))

        assert db.added == []
        assert len(db.executed) == 2

    def test_unallocate_deletes(self):
        db = FakeSession(results=[member()])
        result = asyncio.run(planning.update_debt_allocation(db, USER, "acct-1", "plan-1", "p1", "unallocate"))

        assert result == {"success": True}
        assert db.executed[1].is_delete
        assert db.commits == 1

    def test_unknown_action(self):
        db = FakeSession(results=[member()])
        with pytest.raises(BadRequestError):
            asyncio.run(planning.update_debt_allocation(db, USER, "acct-1", "plan-1", "p1", "shuffle"))


class TestAssignDebts:

    def test_requires_a_debt(self):
        with pytest.raises(BadRequestError) as exc_info:
            asyncio.run(planning.assign_debts(FakeSession(), USER, "acct-1", 2025, 1, [], "group-0"))
        assert exc_info.value.detail == "Please select at least one debt to assign."

    def test_requires_a_paycheck(self):
        with pytest.raises(BadRequestError) as exc_info:
            asyncio.run(planning.assign_debts(FakeSession(), USER, "acct-1", 2025, 1, ["plan-1"], ""))
        assert exc_info.value.detail == "Please select a paycheck to assign debts to."

    def test_group_resolves_and_defaults_apply(self):
        """A group option lands on its first paycheck; amount and date default to the debt's amount and today."""
        db = FakeSession(results=[
            member(),
            FakeResult(rows=[salary("inc-a"), salary("inc-b")]),
            FakeResult(rows=[SimpleNamespace(id="plan-1", payment_amount=Decimal("120.00"))]),
            member(),
            FakeResult(rows=[]),
            FakeResult(scalar=SimpleNamespace(id="plan-1")),
        ])
        result = asyncio.run(planning.assign_debts(db, USER, "acct-1", 2025, 1, ["plan-1"], "group-0"))

        assert result == {"success": True, "paycheck_id": "inc-a-2025-01-15", "assigned": 1}
        allocation = db.added[0]
        assert allocation.paycheck_id == "inc-a-2025-01-15"
        assert allocation.payment_amount == 120.0
        assert allocation.payment_date == date.today()

    def test_unknown_planning_row(self):
        db = FakeSession(results=[member(), FakeResult(rows=[]), FakeResult(rows=[])])
        with pytest.raises(NotFoundError):
            asyncio.run(planning.assign_debts(db, USER, "acct-1", 2025, 1, ["plan-x"], "p1"))


class TestUnassignDebt:

    def test_missing_allocation(self):
        db = FakeSession(results=[member(), FakeResult(rows=[]), FakeResult(rows=[])])
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(planning.unassign_debt(db, USER, "acct-1", 2025, 1, "plan-1"))
        assert exc_info.value.detail == "Could not find paycheck allocation for debt"


class TestMarkPaymentAsPaid:

    def test_defaults_to_today(self):
        allocation = DebtAllocation(id="pay-1", is_paid=False)
        db = FakeSession(results=[member(), FakeResult(scalar=allocation)])
        asyncio.run(planning.mark_payment_as_paid(db, USER, "acct-1", "plan-1", "pay-1", 95.5))

        assert allocation.is_paid is True
        assert allocation.payment_amount == 95.5
        assert allocation.payment_date == date.today()
        assert allocation.paid_at is not None
        assert allocation.note == f"Payment marked as paid on {to_ymd(date.today())}"

    def test_unknown_allocation(self):
        db = FakeSession(results=[member(), FakeResult(scalar=None)])
        with pytest.raises(NotFoundError):
            asyncio.run(planning.mark_payment_as_paid(db, USER, "acct-1", "plan-1", "pay-x"))


class TestPopulateMonthlyDebtPlanning:

    def test_existing_rows_are_skipped(self):
        debt = Debt(id="debt-1", budget_account_id="acct-1", name="Car loan", due_date=date(2025, 1, 10))
        db = FakeSession(results=[
            member(),
            FakeResult(rows=[debt]),
            FakeResult(rows=[SimpleNamespace(debt_id="debt-1", year=2025, month=1)]),
            FakeResult(rowcount=1),
        ])
        created = asyncio.run(planning.populate_monthly_debt_planning(db, USER, "acct-1", 2025, 1, window=1))

        assert created == 1
        assert len(db.executed) == 4
        assert db.executed[3].is_insert


class TestDismissWarning:

    def test_first_dismissal_is_stored(self):
        db = FakeSession(results=[member(), FakeResult(rows=[])])
        asyncio.run(planning.dismiss_warning(db, USER, "acct-1", "insufficient_funds", "2025-01"))

        warning = db.added[0]
        assert isinstance(warning, DismissedWarning)
        assert (warning.warning_type, warning.warning_key) == ("insufficient_funds", "2025-01")
        assert db.commits == 1

    def test_repeat_dismissal_is_a_no_op(self):
        db = FakeSession(results=[member(), FakeResult(rows=["dw-1"])])
        result = asyncio.run(planning.dismiss_warning(db, USER, "acct-1", "insufficient_funds", "2025-01"))

        assert result == {"success": True}
        assert db.added == []
        assert db.commits == 0


class TestAllocationBoard:

    def rent_row(self):
        debt = Debt(id="debt-1", name="Rent", payment_amount=Decimal("1500"), category_id=None)
        row = MonthlyDebtPlanning(id="plan-1", debt_id="debt-1", due_date=date(2025, 1, 20), is_active=True)
        return (row, debt)

    def board_session(self, dismissed):
        return FakeSession(results=[
            member(),
            FakeResult(rows=[salary("inc-a")]),
            FakeResult(rows=[self.rent_row()]),
            FakeResult(rows=[]),
            FakeResult(rows=[]),
            FakeResult(rows=dismissed),
        ])

    def test_board_loads_each_source_once(self):
        """One membership check, one income load and one query per debt list."""
        db = self.board_session(dismissed=[])
        result = asyncio.run(planning.get_allocation_board(db, USER, "acct-1", 2025, 1))

        assert len(db.executed) == 6
        assert [group["paycheck_ids"] for group in result["paycheck_groups"]] == [["inc-a-2025-01-15"]]
        assert [debt["name"] for debt in result["unallocated_debts"]] == ["Rent"]
        assert result["hidden_debts"] == []
        assert result["summary"]["total_income"] == 1000
        assert result["summary"]["total_debts"] == 1500
        assert [w["type"] for w in result["warnings"]] == ["insufficient_funds"]
        assert result["warnings"][0]["key"] == "2025-01"

    def test_dismissed_warning_is_hidden(self):
        dismissed = [SimpleNamespace(warning_type="insufficient_funds", warning_key="2025-01")]
        db = self.board_session(dismissed=dismissed)
        result = asyncio.run(planning.get_allocation_board(db, USER, "acct-1", 2025, 1))

        assert result["warnings"] == []
