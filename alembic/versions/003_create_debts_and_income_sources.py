"""create debts, paycheck planning and income source tables

Revision ID: 003
Revises: 002
Create Date: 2026-09-01 10:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '003'
down_revision: Union[str, None] = '002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'debts',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by_user_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('payment_amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('interest_rate', sa.Numeric(precision=5, scale=2), nullable=False, server_default='0'),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('has_balance', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('last_payment_month', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_debts_id', 'debts', ['id'], unique=False)
    op.create_index('ix_debts_budget_account_id', 'debts', ['budget_account_id'], unique=False)

    op.create_table(
        'monthly_debt_planning',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('debt_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('debts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('month', sa.Integer(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('budget_account_id', 'debt_id', 'year', 'month', name='uq_monthly_debt_planning_account_debt_month'),
    )
    op.create_index('ix_monthly_debt_planning_id', 'monthly_debt_planning', ['id'], unique=False)
    op.create_index('ix_monthly_debt_planning_budget_account_id', 'monthly_debt_planning', ['budget_account_id'], unique=False)
    op.create_index('ix_monthly_debt_planning_debt_id', 'monthly_debt_planning', ['debt_id'], unique=False)

    op.create_table(
        'debt_allocations',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'monthly_debt_planning_id',
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey('monthly_debt_planning.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('paycheck_id', sa.String(), nullable=False),
        sa.Column('payment_amount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('is_paid', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('note', sa.String(), nullable=True),
        sa.Column('allocated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_debt_allocations_id', 'debt_allocations', ['id'], unique=False)
    op.create_index('ix_debt_allocations_budget_account_id', 'debt_allocations', ['budget_account_id'], unique=False)
    op.create_index('ix_debt_allocations_monthly_debt_planning_id', 'debt_allocations', ['monthly_debt_planning_id'], unique=False)

    op.create_table(
        'income_sources',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('user_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('frequency', sa.Enum('weekly', 'bi-weekly', 'monthly', name='income_frequency'), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_income_sources_id', 'income_sources', ['id'], unique=False)
    op.create_index('ix_income_sources_user_id', 'income_sources', ['user_id'], unique=False)

    op.create_table(
        'dismissed_warnings',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('warning_type', sa.String(), nullable=False),
        sa.Column('warning_key', sa.String(), nullable=False),
        sa.Column('dismissed_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_dismissed_warnings_id', 'dismissed_warnings', ['id'], unique=False)
    op.create_index('ix_dismissed_warnings_budget_account_id', 'dismissed_warnings', ['budget_account_id'], unique=False)
    op.create_index('ix_dismissed_warnings_user_id', 'dismissed_warnings', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_table('dismissed_warnings')
    op.drop_table('income_sources')
    op.drop_table('debt_allocations')
    op.drop_table('monthly_debt_planning')
    op.drop_table('debts')
    sa.Enum(name='income_frequency').drop(op.get_bind(), checkfirst=True)
