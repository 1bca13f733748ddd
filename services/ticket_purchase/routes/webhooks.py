"""Webhook de la pasarela de pago"""
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
import logging
from shared.database.connection import get_db
from shared.exceptions import InvalidStatusTransition, NotFoundOrForbidden, ValidationError, WebhookSignatureError
from shared.payments.status import normalize_payment_status
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from services.ticket_purchase.models.reservation import PaymentWebhookRequest
from services.ticket_purchase.services.payment_gateway_service import PaymentGatewayService
from services.ticket_purchase.services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook")
@limiter.limit(RATE_LIMITS["webhook"])
async def payment_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Notificación de pago (entrega at-least-once)

    No requiere autenticación: la pasarela firma el body con HMAC-SHA256
    en el header X-Signature. Reservas desconocidas y transiciones inválidas
    se responden con 200 para que la pasarela deje de reintentar.
    """
    raw_body = await request.body()
    signature = request.headers.get("x-signature")

    gateway = PaymentGatewayService()
    if not gateway.verify_webhook(raw_body, signature):
        raise WebhookSignatureError()

    try:
        notification = PaymentWebhookRequest.model_validate_json(raw_body)
    except PydanticValidationError as e:
        raise ValidationError(f"Webhook mal formado: {e.error_count()} errores de validación")

    payment_status = normalize_payment_status(notification.status)
    logger.info(f"Webhook recibido - reserva {notification.reservation_id}, status '{notification.status}'")

    service = ReservationService()
    try:
        data = await service.apply_gateway_notification(db, notification.reservation_id, payment_status)
    except (NotFoundOrForbidden, InvalidStatusTransition) as e:
        logger.warning(f"Webhook ignorado para reserva {notification.reservation_id}: {e.message}")
        return {"success": False, "status": "ignored", "message": e.message}

    return {
        "success": True,
        "status": "processed",
        "data": data
    }
