"""
Paycheck schedules and per-paycheck debt allocation math.

Everything here is pure: it works on plain values and dataclasses so the
planner can be exercised without a database.
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from budget_api.utils.date_utils import add_months, month_bounds, to_ymd, with_day_clamped

PAYCHECK_HORIZON_MONTHS = 4

INSUFFICIENT_FUNDS = "insufficient_funds"
DEBT_UNPAID = "debt_unpaid"
LATE_PAYMENT = "late_payment"
WARNING_TYPES = (INSUFFICIENT_FUNDS, DEBT_UNPAID, LATE_PAYMENT)


@dataclass
class IncomeSchedule:
    """The parts of an income source that drive its paycheck dates."""
    id: str
    name: str
    amount: float
    frequency: str
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True


@dataclass
class PaycheckInfo:
    id: str
    name: str
    amount: float
    date: date
    frequency: str
    user_id: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "date": to_ymd(self.date),
            "frequency": self.frequency,
            "user_id": self.user_id,
        }


@dataclass
class DebtInfo:
    """A monthly debt instance as the planner sees it; ``id`` is the planning row id."""
    id: str
    name: str
    amount: float
    due_date: date
    frequency: str = "monthly"
    description: Optional[str] = None
    is_recurring: bool = True
    category_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "due_date": to_ymd(self.due_date),
            "frequency": self.frequency,
            "description": self.description,
            "is_recurring": self.is_recurring,
            "category_id": self.category_id,
        }


@dataclass
class PaycheckWarning:
    type: str
    message: str
    severity: str
    debt_id: Optional[str] = None
    paycheck_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "severity": self.severity,
            "debt_id": self.debt_id,
            "paycheck_id": self.paycheck_id,
        }


@dataclass
class AllocationRecord:
    """A stored allocation joined with its planning row and debt template."""
    payment_id: str
    paycheck_id: str
    planning_id: str
    debt_name: str
    debt_amount: float
    due_date: date
    original_due_date: date
    payment_amount: Optional[float] = None
    payment_date: Optional[date] = None
    is_paid: bool = False


@dataclass
class AllocatedDebt:
    debt_id: str
    debt_name: str
    amount: float
    due_date: date
    original_due_date: date
    payment_id: str
    is_paid: bool = False
    payment_date: Optional[date] = None
    payment_amount: Optional[float] = None

    @property
    def committed_amount(self) -> float:
        return self.payment_amount if self.payment_amount else self.amount

    def to_dict(self) -> dict:
        return {
            "debt_id": self.debt_id,
            "debt_name": self.debt_name,
            "amount": self.amount,
            "due_date": to_ymd(self.due_date),
            "original_due_date": to_ymd(self.original_due_date),
            "payment_date": to_ymd(self.payment_date) if self.payment_date else None,
            "payment_amount": self.payment_amount,
            "payment_id": self.payment_id,
            "is_paid": self.is_paid,
        }


@dataclass
class PaycheckAllocation:
    paycheck_id: str
    paycheck_date: date
    paycheck_amount: float
    allocated_debts: List[AllocatedDebt] = field(default_factory=list)

    @property
    def remaining_amount(self) -> float:
        return round(self.paycheck_amount - sum(d.committed_amount for d in self.allocated_debts), 2)

    def to_dict(self) -> dict:
        return {
            "paycheck_id": self.paycheck_id,
            "paycheck_date": to_ymd(self.paycheck_date),
            "paycheck_amount": self.paycheck_amount,
            "allocated_debts": [debt.to_dict() for debt in self.allocated_debts],
            "remaining_amount": self.remaining_amount,
        }


def nth_pay_date(start_date: date, frequency: str, n: int) -> date:
    """
    The n-th pay date of a schedule (n=0 is the start date).

    Monthly schedules are computed from the start date each time so a start
    on the 31st lands on the last day of shorter months without drifting.
    """
    if frequency == "weekly":
        return start_date + timedelta(weeks=n)
    if frequency == "bi-weekly":
        return start_date + timedelta(weeks=2 * n)
    if frequency == "monthly":
        return add_months(start_date, n)
    raise ValueError(f"Unknown income frequency: {frequency}")


def pay_dates_between(schedule: IncomeSchedule, window_start: date, window_end: date) -> List[date]:
    """Pay dates with ``window_start <= d < window_end``, stopping after the end date."""
    dates = []
    n = 0
    pay_date = schedule.start_date
    while pay_date < window_start:
        n += 1
        pay_date = nth_pay_date(schedule.start_date, schedule.frequency, n)

    while pay_date < window_end:
        if schedule.end_date and pay_date > schedule.end_date:
            break
        dates.append(pay_date)
        n += 1
        pay_date = nth_pay_date(schedule.start_date, schedule.frequency, n)
    return dates


def paycheck_id(source_id: str, pay_date: date) -> str:
    return f"{source_id}-{to_ymd(pay_date)}"


def generate_paychecks(
    schedules: Iterable[IncomeSchedule],
    year: int,
    month: int,
    user_id: str,
    horizon_months: int = PAYCHECK_HORIZON_MONTHS,
) -> Tuple[List[PaycheckInfo], List[PaycheckInfo]]:
    """
    Expand income sources into concrete paychecks.

    Returns ``(paychecks, future_paychecks)``: dates inside the target month,
    and dates from the following month up to ``horizon_months`` after the
    first of the target month. Both lists are sorted by date.
    """
    first_of_month, last_of_month = month_bounds(year, month)
    horizon_end = add_months(first_of_month, horizon_months)

    current, future = [], []
    for schedule in schedules:
        if not schedule.is_active:
            continue
        for pay_date in pay_dates_between(schedule, first_of_month, horizon_end):
            paycheck = PaycheckInfo(
                id=paycheck_id(schedule.id, pay_date),
                name=schedule.name,
                amount=float(schedule.amount),
                date=pay_date,
                frequency=schedule.frequency,
                user_id=user_id,
            )
            (current if pay_date <= last_of_month else future).append(paycheck)

    current.sort(key=lambda p: p.date)
    future.sort(key=lambda p: p.date)
    return current, future


def warning_key(year: int, month: int) -> str:
    return f"{year}-{month:02d}"


def funding_warnings(paychecks: Sequence[PaycheckInfo], debts: Sequence[DebtInfo]) -> List[PaycheckWarning]:
    total_income = sum(p.amount for p in paychecks)
    total_debts = sum(d.amount for d in debts)
    if total_debts > total_income:
        return [PaycheckWarning(
            type=INSUFFICIENT_FUNDS,
            message=f"Total debts (${total_debts:.2f}) exceed total income (${total_income:.2f})",
            severity="high",
        )]
    return []


def build_paycheck_allocations(
    paychecks: Sequence[PaycheckInfo], records: Iterable[AllocationRecord]
) -> List[PaycheckAllocation]:
    """One allocation summary per paycheck, in paycheck order."""
    by_paycheck = {}
    for record in records:
        by_paycheck.setdefault(record.paycheck_id, []).append(record)

    allocations = []
    for paycheck in paychecks:
        allocated = [
            AllocatedDebt(
                debt_id=record.planning_id,
                debt_name=record.debt_name,
                amount=record.debt_amount,
                due_date=record.due_date,
                original_due_date=record.original_due_date,
                payment_id=record.payment_id,
                is_paid=record.is_paid,
                payment_date=record.payment_date,
                payment_amount=record.payment_amount,
            )
            for record in by_paycheck.get(paycheck.id, [])
        ]
        allocations.append(PaycheckAllocation(
            paycheck_id=paycheck.id,
            paycheck_date=paycheck.date,
            paycheck_amount=paycheck.amount,
            allocated_debts=allocated,
        ))
    return allocations


def months_to_plan(debt_due_date: date, year: int, month: int, window: int) -> List[Tuple[int, int, date]]:
    """
    (year, month, due_date) for each month of the window a debt should appear in.

    A debt appears from the month of its due date onward; each instance keeps
    the template's day of month, clamped to the month length.
    """
    first_due_month = date(debt_due_date.year, debt_due_date.month, 1)
    result = []
    for offset in range(window + 1):
        target = add_months(date(year, month, 1), offset)
        if target < first_due_month:
            continue
        result.append((target.year, target.month, with_day_clamped(target.year, target.month, debt_due_date.day)))
    return result
