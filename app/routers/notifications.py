# =============================================================================
# app/routers/notifications.py - Notification Endpoints (internal)
# =============================================================================
# Called by other backend functions and jobs with the service-role key:
# - POST /notifications/sms: one SMS via Twilio
# - POST /notifications/telegram: one Telegram message
# - POST /notifications/send: fan out over the user's enabled channels
# - POST /notifications/generate: LLM-written message for an event
#
# Handlers are plain `def`: Twilio, Telegram and the LLM are blocking calls
# and run in FastAPI's threadpool.
# =============================================================================

from fastapi import APIRouter, Depends

from app.auth import require_service_role
from core.models.messaging import SmsRequest, SmsResponse, TelegramRequest, TelegramResponse
from core.models.notifications import (
    NotificationRequest,
    NotificationResponse,
    ProactiveMessageRequest,
    ProactiveMessageResponse,
)
from core.services.messaging_service import MessagingService
from core.services.notification_service import NotificationService

router = APIRouter(dependencies=[Depends(require_service_role)])


@router.post("/sms", response_model=SmsResponse)
def send_sms(request: SmsRequest):
    """Send an SMS and record the outcome on the linked event, if any."""
    return MessagingService.send_sms(
        request.user_id,
        request.phone_number,
        request.message,
        event_type=request.event_type,
        event_id=request.event_id,
    )


@router.post("/telegram", response_model=TelegramResponse)
def send_telegram(request: TelegramRequest):
    """Send a Telegram message and record the outcome on the linked event, if any."""
    return MessagingService.send_telegram(
        request.user_id,
        request.chat_id,
        request.message,
        parse_mode=request.parse_mode,
        event_type=request.event_type,
        event_id=request.event_id,
    )


@router.post("/send", response_model=NotificationResponse, response_model_exclude_none=True)
def send_assistant_notification(request: NotificationRequest):
    """
    Deliver an assistant notification over every enabled channel.

    Preference gates (disabled, type off, quiet hours) answer 200 with
    success=false and the reason in `message`.
    """
    return NotificationService.send_assistant_notification(
        request.user_id,
        request.event_type,
        request.message_body,
        message_title=request.message_title,
        message_html=request.message_html,
        priority=request.priority,
        force_send=request.force_send,
        metadata=request.metadata,
    )


@router.post("/generate", response_model=ProactiveMessageResponse)
def generate_proactive_message(request: ProactiveMessageRequest):
    """Write a notification message for an event, formatted for the channel."""
    return NotificationService.generate_proactive_message(
        request.user_id,
        request.event_type,
        context=request.context,
        channel=request.channel,
    )
