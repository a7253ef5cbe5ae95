"""create users and budget accounts tables

Revision ID: 001
Revises: 
Create Date: 2026-09-01 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Enable pgcrypto extension for gen_random_uuid() function
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('image', sa.String(), nullable=True),
        sa.Column('phone_number', sa.String(), nullable=True),
        sa.Column('default_budget_account_id', postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column('is_global_admin', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('onboarding_completed', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_users_id', 'users', ['id'], unique=False)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'budget_accounts',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('account_number', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('account_number', name='uq_budget_accounts_account_number'),
    )
    op.create_index('ix_budget_accounts_id', 'budget_accounts', ['id'], unique=False)

    # users and budget_accounts reference each other
    op.create_foreign_key(
        'fk_users_default_budget_account_id',
        'users',
        'budget_accounts',
        ['default_budget_account_id'],
        ['id'],
        ondelete='SET NULL'
    )

    op.create_table(
        'budget_account_members',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.Enum('owner', 'admin', 'member', name='member_role'), nullable=False, server_default='member'),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('budget_account_id', 'user_id', name='uq_budget_account_members_account_user'),
    )
    op.create_index('ix_budget_account_members_id', 'budget_account_members', ['id'], unique=False)
    op.create_index('ix_budget_account_members_budget_account_id', 'budget_account_members', ['budget_account_id'], unique=False)
    op.create_index('ix_budget_account_members_user_id', 'budget_account_members', ['user_id'], unique=False)

    op.create_table(
        'budget_account_invitations',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_account_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('inviter_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('invitee_email', sa.String(), nullable=False),
        sa.Column('role', postgresql.ENUM(name='member_role', create_type=False), nullable=False, server_default='member'),
        sa.Column(
            'status',
            sa.Enum('pending', 'accepted', 'declined', 'expired', name='invitation_status'),
            nullable=False,
            server_default='pending'
        ),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('token', name='uq_budget_account_invitations_token'),
    )
    op.create_index('ix_budget_account_invitations_id', 'budget_account_invitations', ['id'], unique=False)
    op.create_index('ix_budget_account_invitations_budget_account_id', 'budget_account_invitations', ['budget_account_id'], unique=False)
    op.create_index('ix_budget_account_invitations_invitee_email', 'budget_account_invitations', ['invitee_email'], unique=False)


def downgrade() -> None:
    op.drop_table('budget_account_invitations')
    op.drop_table('budget_account_members')
    op.drop_constraint('fk_users_default_budget_account_id', 'users', type_='foreignkey')
    op.drop_table('budget_accounts')
    op.drop_table('users')
    sa.Enum(name='invitation_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='member_role').drop(op.get_bind(), checkfirst=True)
