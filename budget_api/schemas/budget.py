from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class BudgetCreate(BaseModel):
    budget_account_id: str
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    total_budget: Optional[float] = Field(None, ge=0)


class BudgetUpdate(BaseModel):
    total_budget: float = Field(..., ge=0)


class BudgetResponse(BaseModel):
    id: str
    budget_account_id: str
    name: str
    description: Optional[str] = None
    year: int
    month: int
    total_budget: Optional[float] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BudgetCategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Category name; created if missing")
    amount: float = Field(..., ge=0)


class BudgetCategoryUpdate(BaseModel):
    amount: float = Field(..., ge=0)


class BudgetCategoryResponse(BaseModel):
    id: str
    name: str
    amount: float
    color: str
