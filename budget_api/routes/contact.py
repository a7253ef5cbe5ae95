from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.dependencies import get_db, require_global_admin
from budget_api.exceptions import EmailDeliveryError
from budget_api.models.user import User
from budget_api.schemas.contact import (
    BackfillResponse,
    ContactForm,
    ConversationHistoryResponse,
    FollowUpRequest,
    SubmissionResponse,
    SubmissionStatusUpdate,
    form_errors,
)
from budget_api.services import contact_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["contact"])


@router.post("/contact")
async def submit_contact_form(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Public contact form.

    Validation problems come back as 400 with one message per field; e-mail
    failures are reported in the body but do not fail the request.
    """
    try:
        body = await request.json()
        form = ContactForm.model_validate(body if isinstance(body, dict) else {})
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Please check your form data", "errors": form_errors(e)},
        )
    except ValueError:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Please check your form data", "errors": []},
        )

    try:
        result = await contact_service.submit_contact_form(
            db,
            name=form.name,
            email=form.email,
            subject=form.subject,
            message=form.message,
            ip_address=contact_service.client_ip(request.headers),
            user_agent=request.headers.get("user-agent"),
        )
        return JSONResponse(content=result)
    except SQLAlchemyError as e:
        logger.error(f"Error saving contact submission: {e}")
        await db.rollback()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Failed to save your message. Please try again later."},
        )
    except Exception as e:
        logger.error(f"Error processing contact form: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Something went wrong. Please try again later."},
        )


@router.get("/admin/contact-submissions", response_model=List[SubmissionResponse])
async def get_contact_submissions(
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
):
    """All contact submissions, newest first"""
    try:
        return await contact_service.get_contact_submissions(db)
    except Exception as e:
        logger.error(f"Error fetching contact submissions: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch contact submissions"
        )


@router.put("/admin/contact-submissions/{submission_id}/status", response_model=SubmissionResponse)
async def update_contact_submission_status(
    submission_id: str,
    payload: SubmissionStatusUpdate,
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
):
    """Move a submission through new / in_progress / resolved / closed"""
    try:
        return await contact_service.update_contact_submission_status(
            db, submission_id, payload.status, payload.notes
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating contact submission {submission_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update contact submission"
        )


@router.post("/admin/contact-submissions/{submission_id}/follow-up", response_model=SubmissionResponse)
async def send_follow_up_email(
    submission_id: str,
    payload: FollowUpRequest,
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
):
    """Reply to the person who sent a submission"""
    try:
        return await contact_service.send_follow_up_email(
            db, submission_id, payload.message, payload.support_name, payload.support_email
        )
    except HTTPException:
        raise
    except EmailDeliveryError as e:
        logger.error(f"Follow-up e-mail for {submission_id} failed: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except Exception as e:
        logger.error(f"Error sending follow-up for {submission_id}: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send follow-up email"
        )


@router.get("/admin/contact-submissions/{submission_id}/conversation", response_model=ConversationHistoryResponse)
async def get_conversation_history(
    submission_id: str,
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
):
    """The e-mail thread of a submission, oldest message first"""
    try:
        return await contact_service.get_conversation_history(db, submission_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching conversation for {submission_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch conversation history"
        )


@router.post("/admin/contact-submissions/backfill-conversations", response_model=BackfillResponse)
async def backfill_conversation_ids(
    admin: User = Depends(require_global_admin),
    db: AsyncSession = Depends(get_db)
):
    """Assign conversation ids to submissions created before threads existed"""
    try:
        updated = await contact_service.backfill_conversation_ids(db)
        return {"updated": updated, "message": f"Updated {updated} submissions with conversation IDs"}
    except Exception as e:
        logger.error(f"Error backfilling conversation ids: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to backfill conversation IDs"
        )
