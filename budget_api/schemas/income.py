from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

IncomeFrequencyValue = Literal["weekly", "bi-weekly", "monthly"]


class IncomeSourceCreate(BaseModel):
    name: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    frequency: IncomeFrequencyValue
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class IncomeSourceUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, gt=0)
    frequency: Optional[IncomeFrequencyValue] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class IncomeSourceResponse(BaseModel):
    id: str
    user_id: str
    name: str
    amount: float
    frequency: str
    start_date: date
    end_date: Optional[date] = None
    is_active: bool
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class MonthlyIncomeResponse(BaseModel):
    budget_account_id: str
    year: int
    month: int
    total: float
