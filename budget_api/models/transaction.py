import uuid
import enum
from sqlalchemy import Column, String, Date, DateTime, Boolean, ForeignKey, Numeric, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func
from budget_api.db import Base


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_account_id = Column(UUID(as_uuid=False), ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False, index=True)
    category_id = Column(UUID(as_uuid=False), ForeignKey('categories.id', ondelete='SET NULL'), nullable=True, index=True)
    created_by_user_id = Column(UUID(as_uuid=False), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    debt_id = Column(UUID(as_uuid=False), ForeignKey('debts.id', ondelete='SET NULL'), nullable=True)
    plaid_item_id = Column(UUID(as_uuid=False), ForeignKey('plaid_items.id', ondelete='SET NULL'), nullable=True)
    plaid_account_id = Column(UUID(as_uuid=False), ForeignKey('plaid_accounts.id', ondelete='SET NULL'), nullable=True)
    plaid_transaction_id = Column(String, unique=True, nullable=True)
    amount = Column(Numeric(precision=10, scale=2), nullable=False)
    description = Column(String, nullable=True)
    date = Column(Date, nullable=False, index=True)
    type = Column(
        SQLEnum(TransactionType, name='transaction_type', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    status = Column(
        SQLEnum(TransactionStatus, name='transaction_status', values_callable=lambda e: [m.value for m in e]),
        default=TransactionStatus.COMPLETED,
        nullable=False,
    )
    merchant_name = Column(String, nullable=True)
    plaid_category = Column(String, nullable=True)
    pending = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("Category", backref=backref("transactions", passive_deletes=True))
