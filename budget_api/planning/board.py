"""
Assignment board for the paycheck planner.

Same-day paychecks are shown as one group ("Paycheck 1", "Paycheck 2", ...);
debts are assigned to a group and stored against the group's first paycheck.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Sequence

from budget_api.planning.schedule import DebtInfo, PaycheckAllocation, PaycheckInfo
from budget_api.utils.date_utils import add_months, format_date_label, months_between, to_ymd

GROUP_PREFIX = "group-"

PAST_DUE = "Past Due"
CURRENT_MONTH = "Current Month"
NEXT_MONTH = "Next Month"


@dataclass
class PaycheckGroup:
    index: int
    date: date
    total_amount: float = 0.0
    names: List[str] = field(default_factory=list)
    paychecks: List[PaycheckInfo] = field(default_factory=list)

    @property
    def id(self) -> str:
        return f"{GROUP_PREFIX}{self.index}"

    @property
    def label(self) -> str:
        return f"Paycheck {self.index + 1}"

    @property
    def paycheck_ids(self) -> List[str]:
        return [p.id for p in self.paychecks]

    def to_dict(self) -> dict:
        return {
            "value": self.id,
            "label": self.label,
            "date": to_ymd(self.date),
            "total_amount": round(self.total_amount, 2),
            "names": self.names,
            "paycheck_ids": self.paycheck_ids,
        }


def group_paychecks(paychecks: Sequence[PaycheckInfo]) -> List[PaycheckGroup]:
    """Merge paychecks that share a date, ordered by date."""
    by_date: Dict[date, PaycheckGroup] = {}
    for paycheck in paychecks:
        group = by_date.get(paycheck.date)
        if group is None:
            group = by_date[paycheck.date] = PaycheckGroup(index=0, date=paycheck.date)
        group.paychecks.append(paycheck)
        group.total_amount += paycheck.amount
        group.names.append(paycheck.name)

    groups = sorted(by_date.values(), key=lambda g: g.date)
    for index, group in enumerate(groups):
        group.index = index
    return groups


def _group_for(paycheck_id: str, groups: Sequence[PaycheckGroup]) -> Optional[PaycheckGroup]:
    if not paycheck_id.startswith(GROUP_PREFIX):
        return None
    try:
        index = int(paycheck_id[len(GROUP_PREFIX):])
    except ValueError:
        return None
    if 0 <= index < len(groups):
        return groups[index]
    return None


def resolve_paycheck_id(paycheck_id: str, groups: Sequence[PaycheckGroup]) -> str:
    """Map a ``group-<i>`` option to the first paycheck of that group; other ids pass through."""
    group = _group_for(paycheck_id, groups)
    if group is not None and group.paychecks:
        return group.paychecks[0].id
    return paycheck_id


def compute_status(due_date: date, year: int, month: int) -> str:
    """Label a debt instance relative to the month being viewed."""
    offset = months_between(date(year, month, 1), due_date)
    if offset < 0:
        return PAST_DUE
    if offset == 1:
        return NEXT_MONTH
    if offset > 1:
        return f"{offset} Months Ahead"
    return CURRENT_MONTH


def time_range_label(year: int, month: int, window: int = 0) -> str:
    start = date(year, month, 1)
    if window == 0:
        return format_date_label(start, "MMM yyyy")
    end = add_months(start, window)
    return f"{format_date_label(start, 'MMM yyyy')} - {format_date_label(end, 'MMM yyyy')}"


def allocated_debt_ids(allocations: Sequence[PaycheckAllocation]) -> set:
    return {debt.debt_id for allocation in allocations for debt in allocation.allocated_debts}


def unallocated_debts(debts: Sequence[DebtInfo], allocations: Sequence[PaycheckAllocation]) -> List[DebtInfo]:
    """Debt instances not yet assigned to any paycheck of the month."""
    assigned = allocated_debt_ids(allocations)
    return [debt for debt in debts if debt.id not in assigned]


def allocations_for_paycheck(
    paycheck_id: str,
    groups: Sequence[PaycheckGroup],
    allocations: Sequence[PaycheckAllocation],
) -> List[PaycheckAllocation]:
    """Allocations of a single paycheck, or of every paycheck in a group."""
    if paycheck_id.startswith(GROUP_PREFIX):
        group = _group_for(paycheck_id, groups)
        if group is None:
            return []
        ids = set(group.paycheck_ids)
        return [a for a in allocations if a.paycheck_id in ids]
    return [a for a in allocations if a.paycheck_id == paycheck_id]


def find_allocation_for_debt(
    debt_id: str, allocations: Sequence[PaycheckAllocation]
) -> Optional[PaycheckAllocation]:
    for allocation in allocations:
        if any(debt.debt_id == debt_id for debt in allocation.allocated_debts):
            return allocation
    return None


def debt_row(debt: DebtInfo, year: int, month: int) -> dict:
    row = debt.to_dict()
    row["status"] = compute_status(debt.due_date, year, month)
    return row


def summarize(
    paychecks: Sequence[PaycheckInfo],
    debts: Sequence[DebtInfo],
    allocations: Sequence[PaycheckAllocation],
) -> dict:
    """Totals for the summary cards; overdrawn paychecks count as zero remaining."""
    return {
        "total_income": round(sum(p.amount for p in paychecks), 2),
        "total_debts": round(sum(d.amount for d in debts), 2),
        "total_remaining": round(sum(max(0.0, a.remaining_amount) for a in allocations), 2),
        "paycheck_count": len(paychecks),
        "debt_count": len(debts),
    }


def build_board(
    year: int,
    month: int,
    window: int,
    paychecks: Sequence[PaycheckInfo],
    debts: Sequence[DebtInfo],
    hidden_debts: Sequence[DebtInfo],
    allocations: Sequence[PaycheckAllocation],
    warnings: Sequence[dict],
) -> dict:
    groups = group_paychecks(paychecks)
    return {
        "year": year,
        "month": month,
        "planning_window_months": window,
        "time_range": time_range_label(year, month, window),
        "paycheck_groups": [
            dict(group.to_dict(), allocations=[
                a.to_dict() for a in allocations_for_paycheck(group.id, groups, allocations)
            ])
            for group in groups
        ],
        "unallocated_debts": [debt_row(d, year, month) for d in unallocated_debts(debts, allocations)],
        "hidden_debts": [debt_row(d, year, month) for d in hidden_debts],
        "summary": summarize(paychecks, debts, allocations),
        "warnings": list(warnings),
    }
