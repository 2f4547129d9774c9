#*** Begin: src/intake/api/routes.py ***
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from pydantic import ValidationError as PydanticValidationError

from src.config import Settings, get_settings
from src.intake.application.service import IntakeService
from src.intake.domain.errors import GatewayError
from src.shared.logging import get_logger

from .dependencies import get_intake_service, get_status_gateway
from .schemas import EvolutionWebhookPayload, WebhookAck

logger = get_logger(__name__)

router = APIRouter(prefix="/api/evolution", tags=["evolution"])

SERVICE_NAME = "ProviDATA WhatsApp Chatbot"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------
# Webhook ingress
# ---------------------------------------------------------
@router.post("/webhook", response_model=WebhookAck, status_code=status.HTTP_200_OK)
async def receive_webhook(
    request: Request,
    background: BackgroundTasks,
    service: IntakeService = Depends(get_intake_service),
) -> WebhookAck:
    """
    Acknowledge immediately; the dialogue runs after the response is sent.
    Payloads that are not inbound text messages are acknowledged and dropped.
    """
    try:
        raw = await request.json()
        payload = EvolutionWebhookPayload.model_validate(raw)
    except (ValueError, PydanticValidationError):
        logger.warning("webhook_payload_invalid")
        return WebhookAck()

    logger.debug("webhook_event_received", event_name=payload.event, instance=payload.instance)
    if not payload.should_process():
        logger.debug("webhook_event_ignored", event_name=payload.event)
        return WebhookAck()

    text = payload.text()
    if not text:
        logger.debug("webhook_non_text_ignored", message_type=payload.data.message_type if payload.data else None)
        return WebhookAck()

    background.add_task(service.handle, payload.sender(), text, payload.message_id())
    return WebhookAck()


@router.get("/webhook")
async def webhook_alive(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "instance": settings.EVOLUTION_INSTANCE_NAME,
        "timestamp": _now_iso(),
    }


@router.get("/status")
async def chatbot_status(
    settings: Settings = Depends(get_settings),
    gateway: Optional[Any] = Depends(get_status_gateway),
) -> Dict[str, Any]:
    connection: Any
    if gateway is None:
        connection = "error - gateway not configured"
    else:
        try:
            connection = await gateway.connection_state()
        except GatewayError:
            logger.warning("evolution_status_unreachable")
            connection = "error - unable to reach Evolution API"
    return {
        "chatbot": "online",
        "evolution_api": {
            "url": settings.EVOLUTION_API_URL,
            "instance": settings.EVOLUTION_INSTANCE_NAME,
            "connection": connection,
        },
        "timestamp": _now_iso(),
    }
#*** End: src/intake/api/routes.py ***
