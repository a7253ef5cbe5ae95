from budget_api.db import Base
from budget_api.models.user import User
from budget_api.models.budget_account import (
    BudgetAccount,
    BudgetAccountMember,
    BudgetAccountInvitation,
    MemberRole,
    InvitationStatus,
)
from budget_api.models.category import Category
from budget_api.models.budget import Budget, BudgetCategory
from budget_api.models.transaction import Transaction, TransactionType, TransactionStatus
from budget_api.models.debt import Debt, MonthlyDebtPlanning, DebtAllocation
from budget_api.models.income_source import IncomeSource, IncomeFrequency
from budget_api.models.dismissed_warning import DismissedWarning
from budget_api.models.support import SupportRequest, SupportComment
from budget_api.models.contact import ContactSubmission, EmailConversation
from budget_api.models.plaid import PlaidItem, PlaidAccount

__all__ = [
    "Base",
    "User",
    "BudgetAccount",
    "BudgetAccountMember",
    "BudgetAccountInvitation",
    "MemberRole",
    "InvitationStatus",
    "Category",
    "Budget",
    "BudgetCategory",
    "Transaction",
    "TransactionType",
    "TransactionStatus",
    "Debt",
    "MonthlyDebtPlanning",
    "DebtAllocation",
    "IncomeSource",
    "IncomeFrequency",
    "DismissedWarning",
    "SupportRequest",
    "SupportComment",
    "ContactSubmission",
    "EmailConversation",
    "PlaidItem",
    "PlaidAccount",
]
