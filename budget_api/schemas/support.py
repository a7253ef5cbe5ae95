from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SupportRequestCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    is_public: bool = True


class SupportRequestUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    is_public: Optional[bool] = None


class SupportStatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class SupportRequestResponse(BaseModel):
    id: str
    title: str
    description: str
    category: str
    status: str
    is_public: bool
    user_id: str
    user_name: Optional[str] = None
    upvotes: int
    downvotes: int
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SupportCommentCreate(BaseModel):
    text: str = Field(..., min_length=1)


class SupportCommentResponse(BaseModel):
    id: str
    request_id: str
    user_id: str
    user_name: Optional[str] = None
    text: str
    timestamp: datetime


class CanEditResponse(BaseModel):
    can_edit: bool
