"""
Transactional email through the Resend SDK.

Each public ``send_*`` helper renders a small HTML body and hands it to
Resend. Failures are raised as ``EmailDeliveryError`` with a message naming
the kind of email, so callers can decide whether a failed send is fatal.
"""
import asyncio
from html import escape
from typing import Optional

import resend
from resend.exceptions import ResendError

from budget_api.config import settings
from budget_api.exceptions import EmailDeliveryError
from budget_api.logging_config import get_logger

logger = get_logger(__name__)


async def _send(to: str, subject: str, html: str, kind: str, reply_to: Optional[str] = None) -> dict:
    params = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    if reply_to:
        params["reply_to"] = reply_to

    resend.api_key = settings.RESEND_API_KEY
    try:
        data = await asyncio.to_thread(resend.Emails.send, params)
    except ResendError as e:
        logger.error(f"Resend API error for {kind} email to {to}: {e}")
        raise EmailDeliveryError(f"Failed to send {kind} email: {e}") from e

    logger.info(f"Sent {kind} email to {to} (id={data.get('id')})")
    return data


def _paragraphs(text: str) -> str:
    return "".join(f"<p>{escape(line)}</p>" for line in text.splitlines() if line.strip())


def invite_url(token: str) -> str:
    return f"{settings.APP_BASE_URL}/api/v1/invite/accept?token={token}"


async def send_account_invite(to: str, inviter_name: str, account_name: str, token: str) -> dict:
    url = invite_url(token)
    html = (
        f"<h2>Join {escape(account_name)} on Budget Before Broke</h2>"
        f"<p>{escape(inviter_name)} has invited you to share the budget account "
        f"<strong>{escape(account_name)}</strong>.</p>"
        f'<p><a href="{escape(url)}">Accept invitation</a></p>'
        f"<p>This invitation expires in {settings.INVITATION_EXPIRY_DAYS} days.</p>"
    )
    return await _send(to, f"You've been invited to join {account_name}", html, "invitation")


async def send_contact_confirmation(to: str, name: str, subject: str, message: str) -> dict:
    html = (
        f"<p>Hi {escape(name)},</p>"
        "<p>Thanks for reaching out. We received your message and will get back to you within 24 hours.</p>"
        f"<p><strong>Subject:</strong> {escape(subject)}</p>"
        f"<blockquote>{_paragraphs(message)}</blockquote>"
    )
    return await _send(to, f"We've received your message: {subject}", html, "contact confirmation")


async def send_support_notification(
    submission_id: str,
    name: str,
    email: str,
    subject: str,
    message: str,
    timestamp: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> dict:
    html = (
        "<h2>New contact form submission</h2>"
        f"<p><strong>Submission:</strong> {escape(submission_id)}</p>"
        f"<p><strong>From:</strong> {escape(name)} &lt;{escape(email)}&gt;</p>"
        f"<p><strong>Subject:</strong> {escape(subject)}</p>"
        f"<p><strong>Received:</strong> {escape(timestamp)}</p>"
        f"<p><strong>IP:</strong> {escape(ip_address or 'unknown')}</p>"
        f"<p><strong>User agent:</strong> {escape(user_agent or 'unknown')}</p>"
        f"<hr>{_paragraphs(message)}"
    )
    return await _send(
        settings.SUPPORT_TEAM_EMAIL,
        f"[Contact Form] {subject} - {name}",
        html,
        "support notification",
        reply_to=email,
    )


async def send_follow_up_email(
    to: str,
    name: str,
    subject: str,
    message: str,
    support_name: str,
    support_email: str,
    conversation_id: str,
) -> dict:
    html = (
        f"<p>Hi {escape(name)},</p>"
        f"{_paragraphs(message)}"
        f"<p>{escape(support_name)}<br>Budget Before Broke Support</p>"
        f"<p style=\"color:#64748b;font-size:12px\">Conversation ID: {escape(conversation_id)}</p>"
    )
    return await _send(to, f"Re: {subject}", html, "follow-up", reply_to=support_email)
