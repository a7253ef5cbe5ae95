import asyncio
import json

import pytest
from pydantic import ValidationError

from budget_api.exceptions import EmailDeliveryError
from budget_api.models import EmailConversation
from budget_api.schemas.contact import ContactForm, form_errors
from budget_api.services import contact_service, email_service

from tests.conftest import FakeSession


VALID_FORM = {
    "name": "Jordan",
    "email": "jordan@example.com",
    "subject": "Paychecks",
    "message": "How are three-paycheck months handled?",
}


class TestConversationIds:

    def test_subject_tag_wins(self):
        assert contact_service.extract_conversation_id(
            "Re: [CONV-abc123] Paychecks", "Conversation ID: other", {"x-conversation-id": "hdr"}
        ) == "abc123"

    def test_body_marker(self):
        assert contact_service.extract_conversation_id("Re: Paychecks", "...\nConversation ID: def456\n") == "def456"

    def test_header_fallback(self):
        assert contact_service.extract_conversation_id("Re: Paychecks", "thanks", {"x-conversation-id": "h1"}) == "h1"

    def test_nothing_found(self):
        assert contact_service.extract_conversation_id("Hello", "thanks") is None
        assert contact_service.extract_conversation_id(None, None, {}) is None

    def test_generated_ids_match_extraction_pattern(self):
        conversation_id = contact_service.generate_conversation_id()
        assert contact_service.extract_conversation_id(f"[CONV-{conversation_id}]", "") == conversation_id


class TestContactForm:

    def test_valid(self):
        form = ContactForm.model_validate(VALID_FORM)
        assert form.name == "Jordan"

    def test_field_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            ContactForm.model_validate(dict(VALID_FORM, name="", email="nope", message="short"))
        errors = {e["field"]: e["message"] for e in form_errors(exc_info.value)}
        assert errors == {
            "name": "Name is required",
            "email": "Please enter a valid email address",
            "message": "Message must be at least 10 characters",
        }

    def test_missing_fields_are_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            ContactForm.model_validate({})
        fields = {e["field"] for e in form_errors(exc_info.value)}
        assert fields == {"name", "email", "subject", "message"}

    def test_too_long(self):
        with pytest.raises(ValidationError) as exc_info:
            ContactForm.model_validate(dict(VALID_FORM, subject="x" * 201))
        assert form_errors(exc_info.value) == [{"field": "subject", "message": "Subject is too long"}]


class TestHelpers:

    def test_client_ip_order(self):
        assert contact_service.client_ip({"x-forwarded-for": "1.1.1.1", "x-real-ip": "2.2.2.2"}) == "1.1.1.1"
        assert contact_service.client_ip({"x-real-ip": "2.2.2.2"}) == "2.2.2.2"
        assert contact_service.client_ip({}) == "unknown"

    def test_response_message(self):
        assert contact_service.submission_response_message(True) == (
            "Thank you for your message! We'll get back to you within 24 hours. Check your email for a confirmation."
        )
        assert "We couldn't send a confirmation email" in contact_service.submission_response_message(False)


class TestSubmitContactForm:

    def test_email_failure_is_not_fatal(self, monkeypatch):
        async def failing_confirmation(**kwargs):
            raise EmailDeliveryError("Failed to send confirmation email: boom")

        notifications = []

        async def notify(**kwargs):
            notifications.append(kwargs)
            return {"id": "re_1"}

        monkeypatch.setattr(email_service, "send_contact_confirmation", failing_confirmation)
        monkeypatch.setattr(email_service, "send_support_notification", notify)
        db = FakeSession()

        result = asyncio.run(contact_service.submit_contact_form(
            db, ip_address="1.1.1.1", user_agent="pytest", **VALID_FORM
        ))

        assert result["success"] is True
        assert result["confirmationEmailSent"] is False
        assert result["supportNotificationSent"] is True
        assert "couldn't send a confirmation" in result["message"]
        submission = db.added[0]
        assert result["submissionId"] == submission.id
        assert submission.status == "new"
        assert submission.conversation_id
        assert notifications[0]["ip_address"] == "1.1.1.1"


class TestInboundEmail:

    def test_reply_is_threaded(self):
        db = FakeSession()
        payload = {
            "id": "msg-1",
            "from": "jordan@example.com",
            "to": ["support@budgetbeforebroke.com"],
            "subject": "Re: [CONV-abc123] Paychecks",
            "text": "Thanks!",
        }

        conversation_id = asyncio.run(contact_service.record_inbound_email(db, payload))

        assert conversation_id == "abc123"
        message = db.added[0]
        assert isinstance(message, EmailConversation)
        assert message.from_name == "jordan"
        assert message.to_email == "support@budgetbeforebroke.com"
        assert message.message_type == "user_reply"
        assert message.direction == "inbound"
        assert json.loads(message.raw_email)["id"] == "msg-1"
        assert db.commits == 1

    def test_unmatched_email_is_dropped(self):
        db = FakeSession()
        payload = {"from": "stranger@example.com", "to": ["support@x.com"], "subject": "Hi", "text": "hello"}

        assert asyncio.run(contact_service.record_inbound_email(db, payload)) is None
        assert db.added == []
        assert db.commits == 0
