import asyncio

import resend

from budget_api.config import settings
from budget_api.services import email_service


class TestResendSends:

    def test_follow_up_goes_through_resend(self, monkeypatch):
        """Follow-ups reply to the support agent and carry the conversation id."""
        sent = []

        def fake_send(params):
            sent.append(params)
            return {"id": "email-1"}

        monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
        monkeypatch.setattr(resend.Emails, "send", fake_send)
        result = asyncio.run(email_service.send_follow_up_email(
            to="jordan@example.com",
            name="Jordan",
            subject="Paychecks",
            message="Thanks for writing in.",
            support_name="Sam",
            support_email="sam@example.com",
            conversation_id="abc123",
        ))

        assert result == {"id": "email-1"}
        assert resend.api_key == "re_test"
        params = sent[0]
        assert params["to"] == ["jordan@example.com"]
        assert params["subject"] == "Re: Paychecks"
        assert params["reply_to"] == "sam@example.com"
        assert "Conversation ID: abc123" in params["html"]

    def test_invite_links_to_accept_route(self, monkeypatch):
        sent = []
        monkeypatch.setattr(resend.Emails, "send", lambda params: sent.append(params) or {"id": "email-2"})
        asyncio.run(email_service.send_account_invite("kim@example.com", "Alex", "Household", "tok-1"))

        assert f"{settings.APP_BASE_URL}/api/v1/invite/accept?token=tok-1" in sent[0]["html"]
        assert "reply_to" not in sent[0]
