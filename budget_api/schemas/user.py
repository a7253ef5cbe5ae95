from typing import Optional
from datetime import datetime
from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    image: Optional[str] = None
    phone_number: Optional[str] = None
    email_verified: bool = False
    default_budget_account_id: Optional[str] = None
    is_global_admin: bool = False
    onboarding_completed: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    name: Optional[str] = None
    image: Optional[str] = None
    phone_number: Optional[str] = None
