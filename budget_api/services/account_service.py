"""
Budget account management: accounts, members and invitations.
"""
import secrets
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from budget_api.config import settings
from budget_api.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
)
from budget_api.logging_config import get_logger
from budget_api.models import (
    BudgetAccount,
    BudgetAccountInvitation,
    BudgetAccountMember,
    InvitationStatus,
    MemberRole,
    User,
)
from budget_api.services import email_service
from budget_api.services.access_service import get_membership, require_member, require_owner

logger = get_logger(__name__)

ACCOUNT_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def generate_account_number() -> str:
    """Random ``XXXX-XXXX`` identifier over A-Z and 0-9."""
    chars = [secrets.choice(ACCOUNT_NUMBER_ALPHABET) for _ in range(8)]
    return f"{''.join(chars[:4])}-{''.join(chars[4:])}"


def serialize_account(account: BudgetAccount) -> dict:
    return {
        "id": account.id,
        "name": account.name,
        "description": account.description,
        "account_number": account.account_number,
        "members": [
            {
                "id": member.id,
                "user_id": member.user_id,
                "role": member.role,
                "user": {
                    "name": member.user.name if member.user else "",
                    "email": member.user.email if member.user else "",
                    "image": member.user.image if member.user else None,
                },
            }
            for member in account.members
        ],
        "invitations": [
            {
                "id": invitation.id,
                "invitee_email": invitation.invitee_email,
                "role": invitation.role,
                "status": invitation.status,
                "created_at": invitation.created_at,
            }
            for invitation in account.invitations
        ],
    }


def _with_members():
    return (
        selectinload(BudgetAccount.members).selectinload(BudgetAccountMember.user),
        selectinload(BudgetAccount.invitations),
    )


async def get_accounts(db: AsyncSession, user: User) -> List[dict]:
    """All accounts the user belongs to, with members and invitations."""
    result = await db.execute(
        select(BudgetAccount)
        .join(BudgetAccountMember, BudgetAccountMember.budget_account_id == BudgetAccount.id)
        .where(BudgetAccountMember.user_id == user.id)
        .options(*_with_members())
        .order_by(BudgetAccount.created_at)
    )
    return [serialize_account(account) for account in result.scalars().unique().all()]


async def get_account(db: AsyncSession, user: User, account_id: str) -> Optional[dict]:
    """The account when the user is a member of it, otherwise None."""
    if await get_membership(db, account_id, user.id) is None:
        return None

    result = await db.execute(
        select(BudgetAccount).where(BudgetAccount.id == account_id).options(*_with_members())
    )
    account = result.scalar_one_or_none()
    return serialize_account(account) if account else None


async def create_account(db: AsyncSession, user: User, name: str, description: Optional[str] = None) -> str:
    account = BudgetAccount(
        id=str(uuid.uuid4()),
        name=name,
        description=description,
        account_number=generate_account_number(),
    )
    db.add(account)
    await db.flush()
    db.add(BudgetAccountMember(
        id=str(uuid.uuid4()),
        budget_account_id=account.id,
        user_id=user.id,
        role=MemberRole.OWNER,
    ))
    await db.commit()

    logger.info(f"User {user.id} created budget account {account.id}")
    return account.id


async def update_account_name(db: AsyncSession, user: User, account_id: str, name: str) -> None:
    await require_owner(db, account_id, user.id)
    await db.execute(update(BudgetAccount).where(BudgetAccount.id == account_id).values(name=name))
    await db.commit()


async def invite_to_account(db: AsyncSession, user: User, email: str, role: str = MemberRole.MEMBER.value) -> dict:
    """Invite someone to the caller's default account."""
    if not user.default_budget_account_id:
        raise BadRequestError("No default budget account found")
    await invite_user(db, user, user.default_budget_account_id, email, role)
    return {"success": True}


async def invite_user(
    db: AsyncSession,
    user: User,
    account_id: str,
    email: str,
    role: str = MemberRole.MEMBER.value,
) -> BudgetAccountInvitation:
    """
    Create a pending invitation and email the invite link.

    Raises:
        ForbiddenError: Caller is not the account owner
        NotFoundError: Account does not exist
        ConflictError: Invitee is already a member or already has a pending invite
    """
    await require_owner(db, account_id, user.id)

    account = await db.get(BudgetAccount, account_id)
    if account is None:
        raise NotFoundError("Account not found")

    invitee = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if invitee and await get_membership(db, account_id, invitee.id):
        raise ConflictError("This user is already a member of this account")

    pending = await db.execute(
        select(BudgetAccountInvitation).where(
            BudgetAccountInvitation.budget_account_id == account_id,
            BudgetAccountInvitation.invitee_email == email,
            BudgetAccountInvitation.status == InvitationStatus.PENDING,
        )
    )
    if pending.scalars().first():
        raise ConflictError("An invitation is already pending for this email")

    invitation = BudgetAccountInvitation(
        id=str(uuid.uuid4()),
        budget_account_id=account_id,
        inviter_id=user.id,
        invitee_email=email,
        role=MemberRole(role),
        status=InvitationStatus.PENDING,
        token=str(uuid.uuid4()),
        expires_at=datetime.now(timezone.utc) + timedelta(days=settings.INVITATION_EXPIRY_DAYS),
    )
    db.add(invitation)
    await db.commit()
    logger.info(f"Created invitation {invitation.id} for {email} to account {account_id}")

    await email_service.send_account_invite(
        to=email,
        inviter_name=user.name or "A user",
        account_name=account.name,
        token=invitation.token,
    )
    return invitation


async def remove_user(db: AsyncSession, user: User, account_id: str, member_user_id: str) -> None:
    await require_owner(db, account_id, user.id)
    membership = await get_membership(db, account_id, member_user_id)
    if membership is not None:
        await db.delete(membership)
        await db.commit()
        logger.info(f"Removed user {member_user_id} from account {account_id}")


async def update_user_role(db: AsyncSession, user: User, account_id: str, member_user_id: str, role: str) -> None:
    await require_owner(db, account_id, user.id)
    await db.execute(
        update(BudgetAccountMember)
        .where(
            BudgetAccountMember.budget_account_id == account_id,
            BudgetAccountMember.user_id == member_user_id,
        )
        .values(role=MemberRole(role))
    )
    await db.commit()


async def _get_invitation(db: AsyncSession, invitation_id: str) -> BudgetAccountInvitation:
    invitation = await db.get(BudgetAccountInvitation, invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    return invitation


async def resend_invite(db: AsyncSession, user: User, invitation_id: str) -> None:
    """Issue a fresh token and expiry for an invitation and email it again."""
    invitation = await _get_invitation(db, invitation_id)
    await require_owner(db, invitation.budget_account_id, user.id)

    account = await db.get(BudgetAccount, invitation.budget_account_id)
    if account is None:
        raise NotFoundError("Account not found")

    invitation.token = str(uuid.uuid4())
    invitation.status = InvitationStatus.PENDING
    invitation.expires_at = datetime.now(timezone.utc) + timedelta(days=settings.INVITATION_EXPIRY_DAYS)
    await db.commit()

    await email_service.send_account_invite(
        to=invitation.invitee_email,
        inviter_name=user.name or "A user",
        account_name=account.name,
        token=invitation.token,
    )


async def delete_invitation(db: AsyncSession, user: User, invitation_id: str) -> None:
    invitation = await _get_invitation(db, invitation_id)
    await require_owner(db, invitation.budget_account_id, user.id)
    await db.delete(invitation)
    await db.commit()


async def get_default_account(db: AsyncSession, user: User) -> Optional[dict]:
    if not user.default_budget_account_id:
        return None
    return await get_account(db, user, user.default_budget_account_id)


async def update_default_account(db: AsyncSession, user: User, account_id: str) -> None:
    await require_member(db, account_id, user.id)
    user.default_budget_account_id = account_id
    await db.commit()


async def get_invitation_by_token(db: AsyncSession, token: Optional[str]) -> BudgetAccountInvitation:
    """
    Look up an invitation that can still be accepted.

    Raises:
        BadRequestError: Token missing, or invitation no longer pending / expired
        NotFoundError: No invitation carries this token
    """
    if not token:
        raise BadRequestError("Missing token")

    result = await db.execute(select(BudgetAccountInvitation).where(BudgetAccountInvitation.token == token))
    invitation = result.scalar_one_or_none()
    if invitation is None:
        raise NotFoundError("Invalid or expired invitation")

    if invitation.status != InvitationStatus.PENDING or invitation.expires_at < datetime.now(timezone.utc):
        raise BadRequestError("Invitation is no longer valid")
    return invitation


async def accept_invitation(db: AsyncSession, user: User, invitation: BudgetAccountInvitation) -> None:
    """Join the invited account with the invited role and close the invitation."""
    if (user.email or "").lower() != invitation.invitee_email.lower():
        raise ForbiddenError("This invite was not sent to your email address.")

    if await get_membership(db, invitation.budget_account_id, user.id) is None:
        db.add(BudgetAccountMember(
            id=str(uuid.uuid4()),
            budget_account_id=invitation.budget_account_id,
            user_id=user.id,
            role=invitation.role,
        ))

    invitation.status = InvitationStatus.ACCEPTED
    if not user.default_budget_account_id:
        user.default_budget_account_id = invitation.budget_account_id
    await db.commit()
    logger.info(f"User {user.id} accepted invitation {invitation.id}")


async def expire_stale_invitations(db: AsyncSession) -> int:
    """Mark pending invitations past their expiry as expired. Returns the count."""
    result = await db.execute(
        update(BudgetAccountInvitation)
        .where(
            BudgetAccountInvitation.status == InvitationStatus.PENDING,
            BudgetAccountInvitation.expires_at < datetime.now(timezone.utc),
        )
        .values(status=InvitationStatus.EXPIRED)
    )
    await db.commit()
    return result.rowcount or 0
