"""
Pydantic schemas for budget accounts, members and invitations.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field

RoleValue = Literal["owner", "admin", "member"]


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1, description="Account name")
    description: Optional[str] = Field(None, description="Optional description")


class AccountNameUpdate(BaseModel):
    name: str = Field(..., min_length=1)


class MemberUser(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    image: Optional[str] = None


class MemberResponse(BaseModel):
    id: str
    user_id: str
    role: str
    user: MemberUser


class InvitationSummary(BaseModel):
    id: str
    invitee_email: str
    role: str
    status: str
    created_at: Optional[datetime] = None


class AccountResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    account_number: str
    members: List[MemberResponse] = []
    invitations: List[InvitationSummary] = []


class AccountCreateResponse(BaseModel):
    id: str


class InviteRequest(BaseModel):
    """Invite someone by e-mail; role defaults to member."""
    email: EmailStr
    role: RoleValue = "member"

    class Config:
        json_schema_extra = {
            "example": {
                "email": "partner@example.com",
                "role": "member"
            }
        }


class InvitationResponse(BaseModel):
    id: str
    budget_account_id: str
    invitee_email: str
    role: str
    status: str
    expires_at: datetime

    class Config:
        from_attributes = True


class RoleUpdate(BaseModel):
    role: RoleValue


class SuccessResponse(BaseModel):
    success: bool = True
