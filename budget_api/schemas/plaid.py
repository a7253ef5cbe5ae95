from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PlaidInstitution(BaseModel):
    institution_id: str
    name: Optional[str] = None


class PlaidLinkMetadata(BaseModel):
    """Plaid Link's success metadata plus the account to import into."""
    budget_account_id: str
    institution: PlaidInstitution

    class Config:
        extra = "allow"


class ExchangeTokenRequest(BaseModel):
    public_token: str = Field(..., min_length=1)
    metadata: PlaidLinkMetadata


class ExchangeTokenResponse(BaseModel):
    success: bool
    item_id: Optional[str] = None


class LinkTokenResponse(BaseModel):
    link_token: str
    expiration: Optional[datetime] = None
    request_id: Optional[str] = None

    class Config:
        extra = "allow"

