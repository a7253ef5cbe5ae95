"""
Contact form submissions and the email threads that grow out of them.

Every submission gets a conversation id. Outgoing follow-ups carry it in the
body ("Conversation ID: <id>") so replies that come back through the Resend
inbound webhook can be attached to the right thread.
"""
import json
import re
import time
import uuid
from datetime import datetime, timezone
from typing import List, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.exceptions import EmailDeliveryError, NotFoundError
from budget_api.logging_config import get_logger
from budget_api.models import ContactSubmission, EmailConversation
from budget_api.services import email_service

logger = get_logger(__name__)

STATUS_NEW = "new"
STATUS_RESOLVED = "resolved"

MESSAGE_SUPPORT_RESPONSE = "support_response"
MESSAGE_USER_REPLY = "user_reply"

SUBJECT_CONVERSATION_PATTERN = re.compile(r"\[CONV-([a-zA-Z0-9]+)\]")
BODY_CONVERSATION_PATTERN = re.compile(r"Conversation ID: ([a-zA-Z0-9]+)")

THANK_YOU_MESSAGE = "Thank you for your message! We'll get back to you within 24 hours."
CONFIRMATION_FAILED_NOTE = " Note: We couldn't send a confirmation email, but your message was received."
CHECK_EMAIL_NOTE = " Check your email for a confirmation."


def generate_conversation_id() -> str:
    return uuid.uuid4().hex


def extract_conversation_id(
    subject: Optional[str], message: Optional[str], headers: Optional[Mapping[str, str]] = None
) -> Optional[str]:
    """Find a thread id in the subject tag, then the body, then the x-conversation-id header."""
    match = SUBJECT_CONVERSATION_PATTERN.search(subject or "")
    if match:
        return match.group(1)
    match = BODY_CONVERSATION_PATTERN.search(message or "")
    if match:
        return match.group(1)
    if headers:
        return headers.get("x-conversation-id") or None
    return None


def client_ip(headers: Mapping[str, str]) -> str:
    return headers.get("x-forwarded-for") or headers.get("x-real-ip") or "unknown"


def submission_response_message(confirmation_sent: bool) -> str:
    message = THANK_YOU_MESSAGE
    if not confirmation_sent:
        message += CONFIRMATION_FAILED_NOTE
    return message + CHECK_EMAIL_NOTE


def serialize_submission(submission: ContactSubmission) -> dict:
    return {
        "id": submission.id,
        "name": submission.name,
        "email": submission.email,
        "subject": submission.subject,
        "message": submission.message,
        "ip_address": submission.ip_address,
        "user_agent": submission.user_agent,
        "status": submission.status,
        "assigned_to": submission.assigned_to,
        "notes": submission.notes,
        "resolved_at": submission.resolved_at,
        "conversation_id": submission.conversation_id,
        "last_user_message_at": submission.last_user_message_at,
        "last_support_message_at": submission.last_support_message_at,
        "created_at": submission.created_at,
        "updated_at": submission.updated_at,
    }


def serialize_conversation(message: EmailConversation) -> dict:
    return {
        "id": message.id,
        "conversation_id": message.conversation_id,
        "message_id": message.message_id,
        "from_email": message.from_email,
        "from_name": message.from_name,
        "to_email": message.to_email,
        "subject": message.subject,
        "message": message.message,
        "message_type": message.message_type,
        "direction": message.direction,
        "created_at": message.created_at,
    }


async def create_contact_submission(
    db: AsyncSession,
    name: str,
    email: str,
    subject: str,
    message: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> ContactSubmission:
    submission = ContactSubmission(
        id=str(uuid.uuid4()),
        conversation_id=generate_conversation_id(),
        name=name,
        email=email,
        subject=subject,
        message=message,
        ip_address=ip_address,
        user_agent=user_agent,
        status=STATUS_NEW,
    )
    db.add(submission)
    await db.commit()
    await db.refresh(submission)
    logger.info(f"Saved contact submission {submission.id} from {email}")
    return submission


async def submit_contact_form(
    db: AsyncSession,
    name: str,
    email: str,
    subject: str,
    message: str,
    ip_address: str,
    user_agent: Optional[str],
) -> dict:
    """
    Store a contact form and send the confirmation and support emails.

    Email failures are logged and reported in the response; they never fail
    the submission itself.
    """
    submission = await create_contact_submission(db, name, email, subject, message, ip_address, user_agent)

    confirmation_sent = True
    try:
        await email_service.send_contact_confirmation(to=email, name=name, subject=subject, message=message)
    except EmailDeliveryError as e:
        logger.error(f"Failed to send confirmation email for submission {submission.id}: {e}")
        confirmation_sent = False

    notification_sent = True
    try:
        await email_service.send_support_notification(
            submission_id=submission.id,
            name=name,
            email=email,
            subject=subject,
            message=message,
            timestamp=submission.created_at.isoformat(),
            ip_address=ip_address,
            user_agent=user_agent,
        )
    except EmailDeliveryError as e:
        logger.error(f"Failed to send support notification for submission {submission.id}: {e}")
        notification_sent = False

    return {
        "success": True,
        "message": submission_response_message(confirmation_sent),
        "submissionId": submission.id,
        "confirmationEmailSent": confirmation_sent,
        "supportNotificationSent": notification_sent,
    }


async def get_contact_submissions(db: AsyncSession) -> List[dict]:
    result = await db.execute(select(ContactSubmission).order_by(ContactSubmission.created_at.desc()))
    return [serialize_submission(s) for s in result.scalars().all()]


async def _get_submission(db: AsyncSession, submission_id: str) -> ContactSubmission:
    submission = await db.get(ContactSubmission, submission_id)
    if submission is None:
        raise NotFoundError("Contact submission not found")
    return submission


async def update_contact_submission_status(
    db: AsyncSession, submission_id: str, status: str, notes: Optional[str] = None
) -> dict:
    submission = await _get_submission(db, submission_id)
    submission.status = status
    if notes is not None:
        submission.notes = notes
    if status == STATUS_RESOLVED:
        submission.resolved_at = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(submission)
    return serialize_submission(submission)


async def send_follow_up_email(
    db: AsyncSession,
    submission_id: str,
    message: str,
    support_name: str,
    support_email: str,
) -> dict:
    """
    Reply to a submission from the support team.

    The outbound message is recorded in the thread before sending; the
    submission notes get a dated copy of the reply.

    Raises:
        NotFoundError: Unknown submission
        EmailDeliveryError: Resend rejected the email
    """
    submission = await _get_submission(db, submission_id)
    if not submission.conversation_id:
        submission.conversation_id = generate_conversation_id()

    db.add(EmailConversation(
        id=str(uuid.uuid4()),
        conversation_id=submission.conversation_id,
        message_id=f"support-{int(time.time() * 1000)}",
        from_email=support_email,
        from_name=support_name,
        to_email=submission.email,
        subject=submission.subject,
        message=message,
        message_type=MESSAGE_SUPPORT_RESPONSE,
        direction="outbound",
    ))
    await db.commit()

    await email_service.send_follow_up_email(
        to=submission.email,
        name=submission.name,
        subject=submission.subject,
        message=message,
        support_name=support_name,
        support_email=support_email,
        conversation_id=submission.conversation_id,
    )

    now = datetime.now(timezone.utc)
    entry = f"--- Follow-up sent on {now.isoformat()} ---\n{message}"
    submission.notes = f"{submission.notes}\n\n{entry}" if submission.notes else entry
    submission.last_support_message_at = now
    await db.commit()
    await db.refresh(submission)

    logger.info(f"Sent follow-up for submission {submission_id}")
    return serialize_submission(submission)


async def get_conversation_history(db: AsyncSession, submission_id: str) -> dict:
    submission = await _get_submission(db, submission_id)
    if not submission.conversation_id:
        raise NotFoundError("Submission or conversation not found")

    result = await db.execute(
        select(EmailConversation)
        .where(EmailConversation.conversation_id == submission.conversation_id)
        .order_by(EmailConversation.created_at)
    )
    return {
        "submission": serialize_submission(submission),
        "conversations": [serialize_conversation(m) for m in result.scalars().all()],
    }


async def backfill_conversation_ids(db: AsyncSession) -> int:
    """Give every submission without a conversation id a fresh one."""
    result = await db.execute(select(ContactSubmission).where(ContactSubmission.conversation_id.is_(None)))
    submissions = result.scalars().all()
    for submission in submissions:
        submission.conversation_id = generate_conversation_id()
    await db.commit()
    logger.info(f"Updated {len(submissions)} submissions with conversation IDs")
    return len(submissions)


async def _latest_conversation_for_sender(db: AsyncSession, from_email: str) -> Optional[str]:
    result = await db.execute(
        select(ContactSubmission.conversation_id)
        .where(ContactSubmission.email == from_email)
        .order_by(ContactSubmission.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def record_inbound_email(db: AsyncSession, email: dict) -> Optional[str]:
    """
    Attach an inbound reply to its conversation.

    Returns the conversation id, or None when the email matches no thread.
    """
    from_email = email.get("from") or ""
    from_name = email.get("from_name") or from_email.split("@")[0]
    recipients = email.get("to") or []
    to_email = recipients[0] if isinstance(recipients, list) and recipients else recipients or ""
    subject = email.get("subject") or ""
    message = email.get("text") or email.get("html") or "No message content"

    conversation_id = extract_conversation_id(subject, message, email.get("headers"))
    if not conversation_id:
        conversation_id = await _latest_conversation_for_sender(db, from_email)
    if not conversation_id:
        logger.info(f"Could not associate incoming email with existing conversation: {from_email} - {subject}")
        return None

    db.add(EmailConversation(
        id=str(uuid.uuid4()),
        conversation_id=conversation_id,
        message_id=email.get("id") or f"inbound-{int(time.time() * 1000)}",
        from_email=from_email,
        from_name=from_name,
        to_email=to_email,
        subject=subject,
        message=message,
        message_type=MESSAGE_USER_REPLY,
        direction="inbound",
        raw_email=json.dumps(email, default=str),
    ))
    await db.execute(
        update(ContactSubmission)
        .where(ContactSubmission.conversation_id == conversation_id)
        .values(last_user_message_at=datetime.now(timezone.utc))
    )
    await db.commit()

    logger.info(f"Stored incoming email for conversation: {conversation_id}")
    return conversation_id
