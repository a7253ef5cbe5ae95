import asyncio
import re
from datetime import datetime, timedelta, timezone

import pytest

from budget_api.exceptions import BadRequestError, ForbiddenError, NotFoundError
from budget_api.models import BudgetAccountInvitation, BudgetAccountMember, InvitationStatus, MemberRole
from budget_api.services import account_service

from tests.conftest import FakeResult, FakeSession, make_user


def invitation(**kwargs):
    defaults = dict(
        id="inv-1",
        budget_account_id="acct-1",
        inviter_id="owner-1",
        invitee_email="Alex@Example.com",
        role=MemberRole.ADMIN,
        status=InvitationStatus.PENDING,
        token="tok",
        expires_at=datetime.now(timezone.utc) + timedelta(days=3),
    )
    defaults.update(kwargs)
    return BudgetAccountInvitation(**defaults)


class TestAccountNumber:

    def test_format(self):
        for _ in range(20):
            assert re.fullmatch(r"[A-Z0-9]{4}-[A-Z0-9]{4}", account_service.generate_account_number())


class TestInvitationLookup:

    def test_missing_token(self):
        with pytest.raises(BadRequestError):
            asyncio.run(account_service.get_invitation_by_token(FakeSession(), None))

    def test_unknown_token(self):
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(account_service.get_invitation_by_token(FakeSession(), "nope"))
        assert exc_info.value.detail == "Invalid or expired invitation"

    def test_expired_invitation(self):
        db = FakeSession(results=[FakeResult(scalar=invitation(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1)))])
        with pytest.raises(BadRequestError) as exc_info:
            asyncio.run(account_service.get_invitation_by_token(db, "tok"))
        assert exc_info.value.detail == "Invitation is no longer valid"

    def test_pending_invitation(self):
        invite = invitation()
        db = FakeSession(results=[FakeResult(scalar=invite)])
        assert asyncio.run(account_service.get_invitation_by_token(db, "tok")) is invite


class TestAcceptInvitation:

    def test_email_must_match(self):
        user = make_user(email="someone@else.com")
        with pytest.raises(ForbiddenError):
            asyncio.run(account_service.accept_invitation(FakeSession(), user, invitation()))

    def test_joins_with_invited_role_and_sets_default(self):
        user = make_user(email="alex@example.com")
        invite = invitation()
        db = FakeSession()

        asyncio.run(account_service.accept_invitation(db, user, invite))

        assert len(db.added) == 1
        member = db.added[0]
        assert isinstance(member, BudgetAccountMember)
        assert member.role == MemberRole.ADMIN
        assert member.budget_account_id == "acct-1"
        assert invite.status == InvitationStatus.ACCEPTED
        assert user.default_budget_account_id == "acct-1"
        assert db.commits == 1

    def test_existing_member_is_not_duplicated(self):
        user = make_user(email="alex@example.com", default_budget_account_id="other")
        existing = BudgetAccountMember(id="m", budget_account_id="acct-1", user_id=user.id, role=MemberRole.MEMBER)
        db = FakeSession(results=[FakeResult(rows=[existing])])

        asyncio.run(account_service.accept_invitation(db, user, invitation()))

        assert db.added == []
        assert user.default_budget_account_id == "other"
