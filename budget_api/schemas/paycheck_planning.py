"""
Pydantic schemas for the paycheck planner and the allocation board.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

PLANNING_WINDOW_MAX = 12

AllocationAction = Literal["allocate", "unallocate", "update"]
WarningType = Literal["debt_unpaid", "insufficient_funds", "late_payment"]


class PlanningActiveUpdate(BaseModel):
    is_active: bool


class DismissWarningRequest(BaseModel):
    warning_type: WarningType
    warning_key: str = Field(..., min_length=1, description="Month key, YYYY-MM")


class AllocationUpdateRequest(BaseModel):
    """Schema for changing one debt instance's paycheck allocation."""
    monthly_debt_planning_id: str
    paycheck_id: str
    action: AllocationAction
    payment_amount: Optional[float] = Field(None, ge=0)
    payment_date: Optional[str] = Field(None, description="YYYY-MM-DD")

    class Config:
        json_schema_extra = {
            "example": {
                "monthly_debt_planning_id": "5c0d7a41-2a39-4d34-8f7e-6a1f0d2c9b11",
                "paycheck_id": "a4c3e1d0-9b8f-4e2d-8c1b-0f9e8d7c6b5a-2025-03-14",
                "action": "allocate",
                "payment_amount": 120,
                "payment_date": "2025-03-14"
            }
        }


class MarkPaidRequest(BaseModel):
    monthly_debt_planning_id: str
    payment_id: str
    payment_amount: Optional[float] = Field(None, ge=0)
    payment_date: Optional[str] = Field(None, description="YYYY-MM-DD; defaults to today")


class PopulateRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    planning_window_months: int = Field(0, ge=0, le=PLANNING_WINDOW_MAX)


class PopulateResponse(BaseModel):
    created: int


class AssignDebtsRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    monthly_debt_planning_ids: List[str] = Field(default_factory=list)
    paycheck_id: str = Field("", description="Paycheck id or group-<n> option")
    payment_amount: Optional[float] = Field(None, ge=0)
    payment_date: Optional[str] = Field(None, description="YYYY-MM-DD; defaults to today")


class UnassignDebtRequest(BaseModel):
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    monthly_debt_planning_id: str
