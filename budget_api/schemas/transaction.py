"""
Pydantic schemas for transaction-related API requests and responses.
"""
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

TransactionTypeValue = Literal["income", "expense"]


class TransactionCreate(BaseModel):
    """Schema for recording a manual transaction."""
    budget_account_id: Optional[str] = Field(None, description="Defaults to the caller's default account")
    category_id: Optional[str] = Field(None, description="Category ID")
    amount: float = Field(..., gt=0, description="Positive amount")
    description: Optional[str] = None
    date: Optional[str] = Field(None, description="YYYY-MM-DD; defaults to today")
    type: TransactionTypeValue
    merchant_name: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "category_id": "0b6f5c3e-3f0d-4f1b-9d55-3c1d8f6b7a10",
                "amount": 54.2,
                "description": "Groceries",
                "date": "2025-03-14",
                "type": "expense"
            }
        }


class TransactionUpdate(BaseModel):
    """Schema for a partial transaction update."""
    category_id: Optional[str] = None
    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    date: Optional[str] = Field(None, description="YYYY-MM-DD")
    type: Optional[TransactionTypeValue] = None
    merchant_name: Optional[str] = None


class TransactionCategoryUpdate(BaseModel):
    category_id: Optional[str] = Field(None, description="New category ID, or null to clear")


class TransactionResponse(BaseModel):
    id: str
    budget_account_id: str
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    debt_id: Optional[str] = None
    amount: float
    description: Optional[str] = None
    date: date
    type: str
    status: str
    merchant_name: Optional[str] = None
    plaid_transaction_id: Optional[str] = None
    pending: bool = False
    created_at: Optional[datetime] = None


class TransactionListResponse(BaseModel):
    count: int
    items: List[TransactionResponse]
