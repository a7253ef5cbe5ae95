from datetime import date

from budget_api.planning.board import (
    build_board,
    compute_status,
    find_allocation_for_debt,
    group_paychecks,
    resolve_paycheck_id,
    summarize,
    time_range_label,
    unallocated_debts,
)
from budget_api.planning.schedule import AllocatedDebt, DebtInfo, PaycheckAllocation, PaycheckInfo


def paycheck(pid, day, amount):
    return PaycheckInfo(id=pid, name=pid, amount=amount, date=day, frequency="bi-weekly", user_id="u1")


PAYCHECKS = [
    paycheck("a-2025-01-15", date(2025, 1, 15), 500),
    paycheck("b-2025-01-15", date(2025, 1, 15), 700),
    paycheck("c-2025-01-01", date(2025, 1, 1), 900),
]


def allocation(paycheck_id, amount, debts):
    return PaycheckAllocation(
        paycheck_id=paycheck_id,
        paycheck_date=date(2025, 1, 1),
        paycheck_amount=amount,
        allocated_debts=[
            AllocatedDebt(
                debt_id=debt_id, debt_name=debt_id, amount=debt_amount,
                due_date=date(2025, 1, 20), original_due_date=date(2025, 1, 20), payment_id=f"pay-{debt_id}",
            )
            for debt_id, debt_amount in debts
        ],
    )


class TestGroups:

    def test_same_day_paychecks_share_a_group(self):
        groups = group_paychecks(PAYCHECKS)
        assert [g.id for g in groups] == ["group-0", "group-1"]
        assert groups[0].date == date(2025, 1, 1)
        assert groups[1].label == "Paycheck 2"
        assert groups[1].total_amount == 1200
        assert groups[1].paycheck_ids == ["a-2025-01-15", "b-2025-01-15"]

    def test_resolve_group_to_first_paycheck(self):
        groups = group_paychecks(PAYCHECKS)
        assert resolve_paycheck_id("group-1", groups) == "a-2025-01-15"

    def test_unknown_ids_pass_through(self):
        groups = group_paychecks(PAYCHECKS)
        assert resolve_paycheck_id("group-9", groups) == "group-9"
        assert resolve_paycheck_id("group-x", groups) == "group-x"
        assert resolve_paycheck_id("c-2025-01-01", groups) == "c-2025-01-01"


class TestStatus:

    def test_status_relative_to_viewed_month(self):
        assert compute_status(date(2024, 12, 20), 2025, 1) == "Past Due"
        assert compute_status(date(2025, 1, 5), 2025, 1) == "Current Month"
        assert compute_status(date(2025, 2, 1), 2025, 1) == "Next Month"
        assert compute_status(date(2025, 4, 1), 2025, 1) == "3 Months Ahead"

    def test_time_range_label(self):
        assert time_range_label(2025, 1) == "Jan 2025"
        assert time_range_label(2025, 11, 2) == "Nov 2025 - Jan 2026"


class TestBoard:

    def test_unallocated_and_lookup(self):
        debts = [
            DebtInfo(id="m1", name="Rent", amount=1000, due_date=date(2025, 1, 1)),
            DebtInfo(id="m2", name="Phone", amount=50, due_date=date(2025, 1, 9)),
        ]
        allocations = [allocation("c-2025-01-01", 900, [("m1", 1000)])]
        assert [d.id for d in unallocated_debts(debts, allocations)] == ["m2"]
        assert find_allocation_for_debt("m1", allocations).paycheck_id == "c-2025-01-01"
        assert find_allocation_for_debt("m2", allocations) is None

    def test_overdrawn_paychecks_count_as_zero_remaining(self):
        debts = [DebtInfo(id="m1", name="Rent", amount=1000, due_date=date(2025, 1, 1))]
        allocations = [
            allocation("c-2025-01-01", 900, [("m1", 1000)]),
            allocation("a-2025-01-15", 500, []),
        ]
        summary = summarize(PAYCHECKS, debts, allocations)
        assert summary == {
            "total_income": 2100,
            "total_debts": 1000,
            "total_remaining": 500,
            "paycheck_count": 3,
            "debt_count": 1,
        }

    def test_build_board_shape(self):
        debts = [DebtInfo(id="m2", name="Phone", amount=50, due_date=date(2025, 2, 9))]
        board = build_board(2025, 1, 1, PAYCHECKS, debts, [], [allocation("b-2025-01-15", 700, [])], [])
        assert board["time_range"] == "Jan 2025 - Feb 2025"
        assert board["paycheck_groups"][1]["value"] == "group-1"
        assert len(board["paycheck_groups"][1]["allocations"]) == 1
        assert board["paycheck_groups"][0]["allocations"] == []
        assert board["unallocated_debts"][0]["status"] == "Next Month"
