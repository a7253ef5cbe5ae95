from fastapi import APIRouter

api_router = APIRouter()

from budget_api.routes import (
    accounts,
    admin,
    budgets,
    categories,
    contact,
    dashboard,
    debts,
    income,
    invitations,
    onboarding,
    paycheck_planning,
    plaid,
    sms,
    support,
    transactions,
    users,
    webhooks,
)

api_router.include_router(users.router)
api_router.include_router(onboarding.router)
api_router.include_router(accounts.router)
api_router.include_router(invitations.router)
api_router.include_router(paycheck_planning.router)
api_router.include_router(budgets.router)
api_router.include_router(categories.router)
api_router.include_router(transactions.router)
api_router.include_router(debts.router)
api_router.include_router(income.router)
api_router.include_router(dashboard.router)
api_router.include_router(support.router)
api_router.include_router(contact.router)
api_router.include_router(webhooks.router)
api_router.include_router(sms.router)
api_router.include_router(admin.router)
api_router.include_router(plaid.router)
