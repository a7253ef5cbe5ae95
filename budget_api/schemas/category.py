from typing import Optional
from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    budget_account_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    transaction_count: int = 0
