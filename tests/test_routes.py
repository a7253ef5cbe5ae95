from types import SimpleNamespace

from budget_api import db as db_module
from budget_api.config import settings
from budget_api.services import account_service, contact_service, support_service

from tests.conftest import make_user

API = "/api/v1"


class TestHealth:

    def test_reports_database_state(self, client, monkeypatch):
        async def down():
            return False

        monkeypatch.setattr(db_module, "check_database_connection", down)
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "degraded", "database": "disconnected"}


class TestAuth:

    def test_anonymous_caller_gets_401(self, client):
        response = client.get(f"{API}/users/me")
        assert response.status_code == 401
        assert response.json() == {"detail": "Not authenticated"}

    def test_profile_for_logged_in_user(self, client, login):
        login(make_user(onboarding_completed=True))
        response = client.get(f"{API}/users/me")
        assert response.status_code == 200
        assert response.json()["email"] == "alex@example.com"

    def test_planning_window_is_bounded(self, client, login):
        login(make_user())
        response = client.get(
            f"{API}/accounts/acct-1/paycheck-planning",
            params={"year": 2025, "month": 1, "planning_window_months": 13},
        )
        assert response.status_code == 422


class TestContactRoute:

    def test_validation_errors(self, client):
        response = client.post(f"{API}/contact", json={"name": "J", "email": "nope", "subject": "Hi", "message": "long enough text"})
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Please check your form data"
        assert body["errors"] == [{"field": "email", "message": "Please enter a valid email address"}]

    def test_submission(self, client, monkeypatch):
        captured = {}

        async def fake_submit(db, **kwargs):
            captured.update(kwargs)
            return {
                "success": True,
                "message": "ok",
                "submissionId": "sub-1",
                "confirmationEmailSent": True,
                "supportNotificationSent": True,
            }

        monkeypatch.setattr(contact_service, "submit_contact_form", fake_submit)
        response = client.post(
            f"{API}/contact",
            json={"name": "Jordan", "email": "j@example.com", "subject": "Hi", "message": "A question about debts"},
            headers={"x-forwarded-for": "9.9.9.9", "user-agent": "pytest-agent"},
        )
        assert response.status_code == 200
        assert response.json()["submissionId"] == "sub-1"
        assert captured["ip_address"] == "9.9.9.9"
        assert captured["user_agent"] == "pytest-agent"

    def test_admin_routes_need_admin(self, client, login):
        login(make_user())
        response = client.get(f"{API}/admin/contact-submissions")
        assert response.status_code == 403
        assert response.json() == {"detail": "Global admin access required"}


class TestResendWebhook:

    def test_wrong_secret(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RESEND_WEBHOOK_SECRET", "s3cret")
        response = client.post(f"{API}/webhooks/resend", json={"type": "email.received", "secret": "guess"})
        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_non_object_payload_is_rejected(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RESEND_WEBHOOK_SECRET", None)
        response = client.post(f"{API}/webhooks/resend", json=["not", "an", "object"])
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid payload"}

    def test_delivery_events_are_acknowledged(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RESEND_WEBHOOK_SECRET", None)
        response = client.post(f"{API}/webhooks/resend", json={"type": "email.bounced"})
        assert response.json() == {"success": True}

    def test_received_email_is_recorded(self, client, monkeypatch):
        received = []

        async def fake_record(db, email):
            received.append(email)
            return "abc123"

        monkeypatch.setattr(settings, "RESEND_WEBHOOK_SECRET", "s3cret")
        monkeypatch.setattr(contact_service, "record_inbound_email", fake_record)
        response = client.post(f"{API}/webhooks/resend", json={
            "type": "email.received",
            "secret": "s3cret",
            "data": {"from": "j@example.com", "subject": "Re: [CONV-abc123] Hi"},
        })
        assert response.json() == {"success": True}
        assert received[0]["subject"] == "Re: [CONV-abc123] Hi"


class TestInviteAccept:

    def test_anonymous_visitor_goes_to_signup(self, client, monkeypatch):
        async def fake_lookup(db, token):
            return SimpleNamespace(id="inv-1", budget_account_id="acct-1")

        monkeypatch.setattr(account_service, "get_invitation_by_token", fake_lookup)
        response = client.get(f"{API}/invite/accept", params={"token": "tok"}, follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"] == f"{settings.APP_BASE_URL}/auth/signup?inviteToken=tok"

    def test_member_is_sent_to_account_page(self, client, login, monkeypatch):
        accepted = []

        async def fake_lookup(db, token):
            return SimpleNamespace(id="inv-1", budget_account_id="acct-1")

        async def fake_accept(db, user, invitation):
            accepted.append((user.id, invitation.id))

        monkeypatch.setattr(account_service, "get_invitation_by_token", fake_lookup)
        monkeypatch.setattr(account_service, "accept_invitation", fake_accept)
        login(make_user())
        response = client.get(f"{API}/invite/accept", params={"token": "tok"}, follow_redirects=False)
        assert response.status_code == 307
        assert response.headers["location"].endswith("/account?joined=1&inviteAccepted=1")
        assert accepted == [("user-1", "inv-1")]

    def test_missing_token(self, client):
        response = client.get(f"{API}/invite/accept", follow_redirects=False)
        assert response.status_code == 400
        assert response.json() == {"detail": "Missing token"}


class TestAdminRoutes:

    def test_check_for_anonymous(self, client):
        assert client.get(f"{API}/admin/check").json() == {"is_global_admin": False}

    def test_check_for_admin(self, client, login):
        login(make_user(is_global_admin=True))
        assert client.get(f"{API}/admin/check").json() == {"is_global_admin": True}

    def test_tables_need_login(self, client):
        response = client.get(f"{API}/admin/tables")
        assert response.status_code == 401
        assert response.json() == {"detail": "Authentication required"}

    def test_tables_for_admin(self, client, login):
        login(make_user(is_global_admin=True))
        response = client.get(f"{API}/admin/tables")
        assert response.status_code == 200
        assert len(response.json()) == 19

    def test_unknown_table_schema(self, client, login):
        login(make_user(is_global_admin=True))
        response = client.get(f"{API}/admin/tables/nope/schema")
        assert response.status_code == 404
        assert response.json() == {"detail": "Table nope not found"}


class TestSupportRoutes:

    def test_public_list(self, client, monkeypatch):
        async def fake_public(db, status=None):
            assert status == "open"
            return []

        monkeypatch.setattr(support_service, "get_public_support_requests", fake_public)
        response = client.get(f"{API}/support/requests", params={"status": "open"})
        assert response.status_code == 200
        assert response.json() == []

    def test_can_edit_for_anonymous(self, client, monkeypatch):
        async def fake_can_edit(db, user, request_id):
            return user is not None

        monkeypatch.setattr(support_service, "can_edit_support_request", fake_can_edit)
        assert client.get(f"{API}/support/requests/r1/can-edit").json() == {"can_edit": False}
