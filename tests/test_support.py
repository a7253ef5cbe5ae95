import asyncio

import pytest

from budget_api.exceptions import ForbiddenError
from budget_api.models import SupportRequest
from budget_api.services import support_service

from tests.conftest import FakeSession, make_user


def ticket():
    return SupportRequest(id="req-1", title="Export", description="CSV export please", user_id="author-1",
                          status="Open", last_updated=None)


class TestEditPermissions:

    def test_other_users_cannot_edit(self):
        db = FakeSession(objects={"req-1": ticket()})
        with pytest.raises(ForbiddenError) as exc_info:
            asyncio.run(support_service.update_support_request(db, make_user("intruder"), "req-1", {"title": "Mine"}))
        assert exc_info.value.detail == "You don't have permission to edit this request"
        assert db.commits == 0

    def test_other_users_cannot_change_status(self):
        db = FakeSession(objects={"req-1": ticket()})
        with pytest.raises(ForbiddenError):
            asyncio.run(support_service.update_support_request_status(db, make_user("intruder"), "req-1", "Closed"))

    def test_global_admin_can_close(self):
        request = ticket()
        db = FakeSession(objects={"req-1": request})
        asyncio.run(support_service.update_support_request_status(
            db, make_user("admin-1", is_global_admin=True), "req-1", "Closed"
        ))
        assert request.status == "Closed"
        assert request.last_updated is not None
        assert db.commits == 1

    def test_empty_edit_leaves_timestamp_alone(self):
        request = ticket()
        db = FakeSession(objects={"req-1": request})
        asyncio.run(support_service.update_support_request(db, make_user("author-1"), "req-1", {"title": None}))
        assert request.last_updated is None
        assert db.commits == 0
