import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from budget_api.db import Base


class PlaidItem(Base):
    """A linked institution login."""
    __tablename__ = "plaid_items"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_account_id = Column(UUID(as_uuid=False), ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=False), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    plaid_item_id = Column(String, unique=True, nullable=False)
    plaid_access_token = Column(String, nullable=False)
    plaid_institution_id = Column(String, nullable=True)
    plaid_institution_name = Column(String, nullable=True)
    status = Column(String, nullable=False, default="active")
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    accounts = relationship("PlaidAccount", backref="plaid_item", cascade="all, delete-orphan", passive_deletes=True)


class PlaidAccount(Base):
    __tablename__ = "plaid_accounts"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    plaid_item_id = Column(UUID(as_uuid=False), ForeignKey('plaid_items.id', ondelete='CASCADE'), nullable=False, index=True)
    plaid_account_id = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    subtype = Column(String, nullable=True)
    mask = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
