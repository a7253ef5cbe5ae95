from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from budget_api.schemas.income import IncomeFrequencyValue


class DefaultAccountUpdate(BaseModel):
    budget_account_id: str


class OnboardingIncomeSource(BaseModel):
    name: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    frequency: IncomeFrequencyValue
    start_date: date


class QuickOnboardingRequest(BaseModel):
    """Everything is optional; skipped steps are simply not run."""
    account_name: Optional[str] = None
    account_description: Optional[str] = None
    income_source: Optional[OnboardingIncomeSource] = None

    class Config:
        json_schema_extra = {
            "example": {
                "account_name": "Household",
                "account_description": "Shared bills",
                "income_source": {
                    "name": "Salary",
                    "amount": 2100,
                    "frequency": "bi-weekly",
                    "start_date": "2025-01-03"
                }
            }
        }


class QuickOnboardingResponse(BaseModel):
    success: bool
    budget_account_id: Optional[str] = None
