import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import backref, relationship
from sqlalchemy.sql import func
from budget_api.db import Base


class MemberRole(str, enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class BudgetAccount(Base):
    __tablename__ = "budget_accounts"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    account_number = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    members = relationship("BudgetAccountMember", back_populates="budget_account", cascade="all, delete-orphan", passive_deletes=True)
    invitations = relationship("BudgetAccountInvitation", back_populates="budget_account", cascade="all, delete-orphan", passive_deletes=True)


class BudgetAccountMember(Base):
    __tablename__ = "budget_account_members"
    __table_args__ = (
        UniqueConstraint('budget_account_id', 'user_id', name='uq_budget_account_members_account_user'),
    )

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_account_id = Column(UUID(as_uuid=False), ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=False), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    role = Column(
        SQLEnum(MemberRole, name='member_role', values_callable=_enum_values),
        default=MemberRole.MEMBER,
        nullable=False,
    )
    joined_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    budget_account = relationship("BudgetAccount", back_populates="members")
    user = relationship("User", backref=backref("memberships", passive_deletes=True))


class BudgetAccountInvitation(Base):
    __tablename__ = "budget_account_invitations"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_account_id = Column(UUID(as_uuid=False), ForeignKey('budget_accounts.id', ondelete='CASCADE'), nullable=False, index=True)
    inviter_id = Column(UUID(as_uuid=False), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    invitee_email = Column(String, nullable=False, index=True)
    role = Column(
        SQLEnum(MemberRole, name='member_role', values_callable=_enum_values),
        default=MemberRole.MEMBER,
        nullable=False,
    )
    status = Column(
        SQLEnum(InvitationStatus, name='invitation_status', values_callable=_enum_values),
        default=InvitationStatus.PENDING,
        nullable=False,
    )
    token = Column(String, unique=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    budget_account = relationship("BudgetAccount", back_populates="invitations")
    inviter = relationship("User")
