"""
Pydantic schemas for the public contact form, support follow-ups and the
Resend inbound webhook.
"""
import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

SubmissionStatus = Literal["new", "in_progress", "resolved", "closed"]


def _check_length(value: str, minimum: int, maximum: int, too_short: str, too_long: str) -> str:
    if len(value) < minimum:
        raise ValueError(too_short)
    if len(value) > maximum:
        raise ValueError(too_long)
    return value


class ContactForm(BaseModel):
    """
    Contact form payload. Missing fields default to empty strings so every
    problem is reported with a human-readable message.
    """
    name: str = ""
    email: str = ""
    subject: str = ""
    message: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, v: str) -> str:
        return _check_length(v, 1, 100, "Name is required", "Name is too long")

    @field_validator("email")
    @classmethod
    def check_email(cls, v: str) -> str:
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Please enter a valid email address")
        return v

    @field_validator("subject")
    @classmethod
    def check_subject(cls, v: str) -> str:
        return _check_length(v, 1, 200, "Subject is required", "Subject is too long")

    @field_validator("message")
    @classmethod
    def check_message(cls, v: str) -> str:
        return _check_length(v, 10, 2000, "Message must be at least 10 characters", "Message is too long")

    class Config:
        validate_default = True
        json_schema_extra = {
            "example": {
                "name": "Jordan",
                "email": "jordan@example.com",
                "subject": "Question about bi-weekly paychecks",
                "message": "How are three-paycheck months handled?"
            }
        }


def form_errors(exc: ValidationError) -> List[dict]:
    """Flatten a validation error into ``[{"field", "message"}]``."""
    errors = []
    for error in exc.errors():
        ctx_error = (error.get("ctx") or {}).get("error")
        errors.append({
            "field": ".".join(str(part) for part in error["loc"]),
            "message": str(ctx_error) if ctx_error is not None else error["msg"],
        })
    return errors


class ContactSubmitResponse(BaseModel):
    success: bool
    message: str
    submissionId: str
    confirmationEmailSent: bool
    supportNotificationSent: bool


class SubmissionStatusUpdate(BaseModel):
    status: SubmissionStatus
    notes: Optional[str] = None


class FollowUpRequest(BaseModel):
    message: str = Field(..., min_length=1)
    support_name: str = Field(..., min_length=1)
    support_email: str = Field(..., min_length=3)


class SubmissionResponse(BaseModel):
    id: str
    name: str
    email: str
    subject: str
    message: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    status: str
    assigned_to: Optional[str] = None
    notes: Optional[str] = None
    resolved_at: Optional[datetime] = None
    conversation_id: Optional[str] = None
    last_user_message_at: Optional[datetime] = None
    last_support_message_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConversationMessage(BaseModel):
    id: str
    conversation_id: str
    message_id: Optional[str] = None
    from_email: str
    from_name: Optional[str] = None
    to_email: str
    subject: str
    message: str
    message_type: str
    direction: str
    created_at: Optional[datetime] = None


class ConversationHistoryResponse(BaseModel):
    submission: SubmissionResponse
    conversations: List[ConversationMessage]


class BackfillResponse(BaseModel):
    updated: int
    message: str
