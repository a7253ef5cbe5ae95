"""create plaid and transactions tables

Revision ID: 004
Revises: 003
Create Date: 2026-09-01 10:15:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '004'
down_revision: Union[str, None] = '003'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'plaid_items',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plaid_item_id', sa.String(), nullable=False),
        sa.Column('plaid_access_token', sa.String(), nullable=False),
        sa.Column('plaid_institution_id', sa.String(), nullable=True),
        sa.Column('plaid_institution_name', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='active'),
        sa.Column('last_sync_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('plaid_item_id', name='uq_plaid_items_plaid_item_id'),
    )
    op.create_index('ix_plaid_items_id', 'plaid_items', ['id'], unique=False)
    op.create_index('ix_plaid_items_budget_account_id', 'plaid_items', ['budget_account_id'], unique=False)

    op.create_table(
        'plaid_accounts',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('plaid_item_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('plaid_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plaid_account_id', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('subtype', sa.String(), nullable=True),
        sa.Column('mask', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('plaid_account_id', name='uq_plaid_accounts_plaid_account_id'),
    )
    op.create_index('ix_plaid_accounts_id', 'plaid_accounts', ['id'], unique=False)
    op.create_index('ix_plaid_accounts_plaid_item_id', 'plaid_accounts', ['plaid_item_id'], unique=False)

    op.create_table(
        'transactions',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('category_id', postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column('created_by_user_id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('debt_id', postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column('plaid_item_id', postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column('plaid_account_id', postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column('plaid_transaction_id', sa.String(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('type', sa.Enum('income', 'expense', name='transaction_type'), nullable=False),
        sa.Column(
            'status',
            sa.Enum('pending', 'completed', 'failed', name='transaction_status'),
            nullable=False,
            server_default='completed'
        ),
        sa.Column('merchant_name', sa.String(), nullable=True),
        sa.Column('plaid_category', sa.String(), nullable=True),
        sa.Column('pending', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('plaid_transaction_id', name='uq_transactions_plaid_transaction_id'),
    )

    # Create foreign key constraints
    op.create_foreign_key(
        'fk_transactions_budget_account_id',
        'transactions',
        'budget_accounts',
        ['budget_account_id'],
        ['id'],
        ondelete='CASCADE'
    )
    op.create_foreign_key(
        'fk_transactions_category_id',
        'transactions',
        'categories',
        ['category_id'],
        ['id'],
        ondelete='SET NULL'
    )
    op.create_foreign_key(
        'fk_transactions_created_by_user_id',
        'transactions',
        'users',
        ['created_by_user_id'],
        ['id'],
        ondelete='CASCADE'
    )
    op.create_foreign_key(
        'fk_transactions_debt_id',
        'transactions',
        'debts',
        ['debt_id'],
        ['id'],
        ondelete='SET NULL'
    )
    op.create_foreign_key(
        'fk_transactions_plaid_item_id',
        'transactions',
        'plaid_items',
        ['plaid_item_id'],
        ['id'],
        ondelete='SET NULL'
    )
    op.create_foreign_key(
        'fk_transactions_plaid_account_id',
        'transactions',
        'plaid_accounts',
        ['plaid_account_id'],
        ['id'],
        ondelete='SET NULL'
    )

    # Create indexes
    op.create_index('ix_transactions_id', 'transactions', ['id'], unique=False)
    op.create_index('ix_transactions_budget_account_id', 'transactions', ['budget_account_id'], unique=False)
    op.create_index('ix_transactions_category_id', 'transactions', ['category_id'], unique=False)
    op.create_index('ix_transactions_date', 'transactions', ['date'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_transactions_date', table_name='transactions')
    op.drop_index('ix_transactions_category_id', table_name='transactions')
    op.drop_index('ix_transactions_budget_account_id', table_name='transactions')
    op.drop_index('ix_transactions_id', table_name='transactions')
    op.drop_table('transactions')
    op.drop_table('plaid_accounts')
    op.drop_table('plaid_items')
    sa.Enum(name='transaction_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='transaction_type').drop(op.get_bind(), checkfirst=True)
