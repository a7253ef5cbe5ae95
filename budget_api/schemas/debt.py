from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class DebtCreate(BaseModel):
    budget_account_id: Optional[str] = None
    category_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    payment_amount: float = Field(..., gt=0)
    interest_rate: Optional[float] = Field(0, ge=0)
    due_date: date
    has_balance: bool = False


class DebtUpdate(BaseModel):
    budget_account_id: Optional[str] = None
    category_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1)
    payment_amount: Optional[float] = Field(None, gt=0)
    interest_rate: Optional[float] = Field(None, ge=0)
    due_date: Optional[date] = None
    has_balance: Optional[bool] = None


class DebtPaymentCreate(BaseModel):
    budget_account_id: Optional[str] = None
    amount: float = Field(..., gt=0)
    date: str = Field(..., description="YYYY-MM-DD")
    note: Optional[str] = None


class DebtCategory(BaseModel):
    id: str
    name: str
    color: Optional[str] = None


class DebtPaymentResponse(BaseModel):
    id: str
    debt_id: str
    monthly_debt_planning_id: str
    amount: float
    date: Optional[date] = None
    note: Optional[str] = None
    is_paid: bool
    created_at: Optional[datetime] = None


class DebtResponse(BaseModel):
    id: str
    budget_account_id: str
    created_by_user_id: str
    category_id: Optional[str] = None
    category: Optional[DebtCategory] = None
    name: str
    payment_amount: float
    interest_rate: float
    due_date: date
    has_balance: bool
    last_payment_month: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    payments: List[DebtPaymentResponse] = []
