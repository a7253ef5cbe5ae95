from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from budget_api.config import settings
from budget_api.dependencies import get_db
from budget_api.services import contact_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/webhooks", tags=["webhooks"])

DELIVERY_EVENTS = {"email.delivered", "email.bounced"}
RECEIVED_EVENT = "email.received"


@router.post("/resend")
async def resend_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Resend event webhook.

    Delivery events are acknowledged; received e-mails are threaded onto the
    matching contact submission. The shared secret travels in the body.
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid payload"})
    if not isinstance(body, dict):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid payload"})

    if settings.RESEND_WEBHOOK_SECRET and body.get("secret") != settings.RESEND_WEBHOOK_SECRET:
        logger.error("Invalid webhook secret")
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})

    event_type = body.get("type")
    if event_type in DELIVERY_EVENTS:
        return {"success": True}

    if event_type == RECEIVED_EVENT:
        try:
            await contact_service.record_inbound_email(db, body.get("data") or {})
        except Exception as e:
            logger.error(f"Webhook processing error: {e}")
            await db.rollback()
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal server error"},
            )

    return {"success": True}
