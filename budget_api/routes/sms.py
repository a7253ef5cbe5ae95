from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from twilio.request_validator import RequestValidator
from twilio.twiml.messaging_response import MessagingResponse

from budget_api.config import settings
from budget_api.dependencies import get_db
from budget_api.services import sms_service
from budget_api.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/sms", tags=["sms"])

ERROR_REPLY = (
    'Sorry, I encountered an error processing your message. Please try again or send "help" for assistance.'
)


def twiml_reply(message: str) -> Response:
    reply = MessagingResponse()
    reply.message(message)
    return Response(content=str(reply), media_type="text/xml")


@router.post("/webhook")
async def sms_webhook(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Twilio inbound SMS webhook.

    The request must carry a valid ``X-Twilio-Signature`` when
    ``TWILIO_AUTH_TOKEN`` is configured. Replies are returned as TwiML; a
    failure while handling the text still answers with an apology message.
    """
    signature = request.headers.get("x-twilio-signature")
    if not signature:
        return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Missing Twilio signature"})

    params = dict(parse_qsl((await request.body()).decode(), keep_blank_values=True))

    if settings.TWILIO_AUTH_TOKEN:
        validator = RequestValidator(settings.TWILIO_AUTH_TOKEN)
        if not validator.validate(str(request.url), params, signature):
            logger.error("Invalid Twilio signature")
            return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Invalid Twilio signature"})
    else:
        logger.warning("TWILIO_AUTH_TOKEN not set, skipping signature validation")

    if not params.get("From") or not params.get("Body"):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Missing required SMS data"})

    try:
        reply = await sms_service.process_sms_message(db, params["From"], params["Body"])
    except Exception as e:
        logger.error(f"SMS webhook error for message {params.get('MessageSid')}: {e}")
        await db.rollback()
        reply = ERROR_REPLY

    return twiml_reply(reply)
