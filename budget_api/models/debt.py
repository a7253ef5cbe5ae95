import uuid
from sqlalchemy import Column, String, Integer, Date, DateTime, Boolean, ForeignKey, Numeric, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func
from budget_api.db import Base


class Debt(Base):
    """A recurring debt template. Monthly instances live in MonthlyDebtPlanning."""
    __tablename__ = "debts"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_account_id = Column(UUID(as_uuid=False), ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False, index=True)
    created_by_user_id = Column(UUID(as_uuid=False), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    category_id = Column(UUID(as_uuid=False), ForeignKey('categories.id', ondelete='SET NULL'), nullable=True)
    name = Column(String, nullable=False)
    payment_amount = Column(Numeric(precision=10, scale=2), nullable=False)
    interest_rate = Column(Numeric(precision=5, scale=2), nullable=False, default=0)
    due_date = Column(Date, nullable=False)
    has_balance = Column(Boolean, default=False, nullable=False)
    last_payment_month = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    category = relationship("Category")


class MonthlyDebtPlanning(Base):
    """One row per debt per month it appears in the planner."""
    __tablename__ = "monthly_debt_planning"
    __table_args__ = (
        UniqueConstraint('budget_account_id', 'debt_id', 'year', 'month', name='uq_monthly_debt_planning_account_debt_month'),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_account_id = Column(UUID(as_uuid=False), ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False, index=True)
    debt_id = Column(UUID(as_uuid=False), ForeignKey('debts.id', ondelete='CASCADE'), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    due_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    debt = relationship("Debt", backref=backref("monthly_plans", passive_deletes=True))


class DebtAllocation(Base):
    """A monthly debt instance assigned to a paycheck, optionally marked paid."""
    __tablename__ = "debt_allocations"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_account_id = Column(UUID(as_uuid=False), ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False, index=True)
    monthly_debt_planning_id = Column(
        UUID(as_uuid=False), ForeignKey('monthly_debt_planning.id', ondelete='CASCADE'), nullable=False, index=True
    )
    paycheck_id = Column(String, nullable=False)
    payment_amount = Column(Numeric(precision=10, scale=2), nullable=True)
    payment_date = Column(Date, nullable=True)
    is_paid = Column(Boolean, default=False, nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    note = Column(String, nullable=True)
    allocated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    user_id = Column(UUID(as_uuid=False), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    monthly_debt_planning = relationship("MonthlyDebtPlanning", backref=backref("allocations", passive_deletes=True))
