from datetime import date

import pytest

from budget_api.planning.schedule import (
    INSUFFICIENT_FUNDS,
    AllocationRecord,
    DebtInfo,
    IncomeSchedule,
    PaycheckInfo,
    build_paycheck_allocations,
    funding_warnings,
    generate_paychecks,
    months_to_plan,
    nth_pay_date,
    pay_dates_between,
    warning_key,
)


def weekly(**kwargs):
    defaults = dict(id="s1", name="Day job", amount=500, frequency="weekly", start_date=date(2025, 1, 6))
    defaults.update(kwargs)
    return IncomeSchedule(**defaults)


def paycheck(pid, day, amount=1000.0):
    return PaycheckInfo(id=pid, name="Job", amount=amount, date=day, frequency="bi-weekly", user_id="u1")


class TestPayDates:

    def test_monthly_schedule_does_not_drift(self):
        start = date(2025, 1, 31)
        assert nth_pay_date(start, "monthly", 1) == date(2025, 2, 28)
        assert nth_pay_date(start, "monthly", 2) == date(2025, 3, 31)

    def test_bi_weekly_step(self):
        assert nth_pay_date(date(2025, 1, 3), "bi-weekly", 2) == date(2025, 1, 31)

    def test_unknown_frequency(self):
        with pytest.raises(ValueError):
            nth_pay_date(date(2025, 1, 3), "daily", 1)

    def test_three_paycheck_month(self):
        schedule = weekly(frequency="bi-weekly", start_date=date(2025, 1, 3))
        dates = pay_dates_between(schedule, date(2025, 1, 1), date(2025, 2, 1))
        assert dates == [date(2025, 1, 3), date(2025, 1, 17), date(2025, 1, 31)]

    def test_stops_after_end_date(self):
        schedule = weekly(end_date=date(2025, 1, 15))
        assert pay_dates_between(schedule, date(2025, 1, 1), date(2025, 2, 1)) == [
            date(2025, 1, 6), date(2025, 1, 13)
        ]


class TestGeneratePaychecks:

    def test_splits_current_and_future(self):
        current, future = generate_paychecks([weekly()], 2025, 1, "u1")
        assert [p.date.day for p in current] == [6, 13, 20, 27]
        assert current[0].id == "s1-2025-01-06"
        assert current[0].user_id == "u1"
        assert len(future) == 13
        assert future[-1].date == date(2025, 4, 28)

    def test_inactive_sources_are_skipped(self):
        current, future = generate_paychecks([weekly(is_active=False)], 2025, 1, "u1")
        assert current == [] and future == []

    def test_sorted_across_sources(self):
        other = weekly(id="s2", start_date=date(2025, 1, 1), frequency="monthly", amount=2000)
        current, _ = generate_paychecks([weekly(), other], 2025, 1, "u1")
        assert [p.id for p in current][:2] == ["s2-2025-01-01", "s1-2025-01-06"]


class TestWarnings:

    def test_insufficient_funds(self):
        debts = [DebtInfo(id="d1", name="Rent", amount=1200, due_date=date(2025, 1, 1))]
        warnings = funding_warnings([paycheck("p1", date(2025, 1, 3))], debts)
        assert len(warnings) == 1
        assert warnings[0].type == INSUFFICIENT_FUNDS
        assert warnings[0].message == "Total debts ($1200.00) exceed total income ($1000.00)"
        assert warnings[0].severity == "high"

    def test_no_warning_when_covered(self):
        debts = [DebtInfo(id="d1", name="Phone", amount=80, due_date=date(2025, 1, 1))]
        assert funding_warnings([paycheck("p1", date(2025, 1, 3))], debts) == []

    def test_warning_key(self):
        assert warning_key(2025, 3) == "2025-03"


class TestAllocations:

    def test_remaining_uses_payment_amount_when_set(self):
        records = [
            AllocationRecord(
                payment_id="a1", paycheck_id="p1", planning_id="m1", debt_name="Car",
                debt_amount=300, due_date=date(2025, 1, 10), original_due_date=date(2025, 1, 10),
            ),
            AllocationRecord(
                payment_id="a2", paycheck_id="p1", planning_id="m2", debt_name="Card",
                debt_amount=200, due_date=date(2025, 1, 12), original_due_date=date(2025, 1, 12),
                payment_amount=250,
            ),
        ]
        allocations = build_paycheck_allocations(
            [paycheck("p1", date(2025, 1, 3)), paycheck("p2", date(2025, 1, 17))], records
        )
        assert [a.paycheck_id for a in allocations] == ["p1", "p2"]
        assert allocations[0].remaining_amount == 450
        assert allocations[1].allocated_debts == []
        assert allocations[0].to_dict()["allocated_debts"][1]["payment_amount"] == 250


class TestMonthsToPlan:

    def test_keeps_day_of_month_clamped(self):
        assert months_to_plan(date(2025, 1, 31), 2025, 1, 2) == [
            (2025, 1, date(2025, 1, 31)),
            (2025, 2, date(2025, 2, 28)),
            (2025, 3, date(2025, 3, 31)),
        ]

    def test_debt_starts_in_its_due_month(self):
        assert months_to_plan(date(2025, 3, 15), 2025, 1, 1) == []
        assert months_to_plan(date(2025, 3, 15), 2025, 1, 2) == [(2025, 3, date(2025, 3, 15))]
