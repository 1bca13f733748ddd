"""Construcción y firma del payload de tickets (contenido del QR)"""
import hashlib
import hmac
import json
from datetime import date, datetime, time, timezone
from typing import Optional, Union

from app.core.config import settings


def _iso(value: Optional[Union[date, time, datetime]]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def build_ticket_payload(
    reservation_id,
    event_id,
    event_name: str,
    event_start_date: Optional[date],
    event_end_date: Optional[date],
    event_start_time: Optional[time],
    event_end_time: Optional[time],
    ticket_number: int,
    attendee_id,
    issued_at: Optional[datetime] = None
) -> str:
    """
    Generar el payload JSON de un ticket

    Incluye los datos del evento para que el escaneo pueda validar el ticket
    sin consultar la base de datos.

    Returns:
        String JSON compacto
    """
    issued_at = issued_at or datetime.now(timezone.utc)
    data = {
        "reservationId": str(reservation_id),
        "eventId": str(event_id),
        "eventName": event_name,
        "eventStartDate": _iso(event_start_date),
        "eventEndDate": _iso(event_end_date),
        "eventStartTime": _iso(event_start_time),
        "eventEndTime": _iso(event_end_time),
        "ticketNumber": ticket_number,
        "attendeeId": str(attendee_id),
        "timestamp": issued_at.isoformat(),
    }
    return json.dumps(data, separators=(",", ":"))


def sign_ticket_payload(payload: str, secret: Optional[str] = None) -> str:
    """
    Firmar el payload con HMAC-SHA256

    Args:
        payload: JSON del ticket
        secret: Secret para HMAC (default: TICKET_SIGNING_SECRET)

    Returns:
        String hexadecimal de 64 caracteres
    """
    if secret is None:
        secret = settings.TICKET_SIGNING_SECRET

    return hmac.new(
        secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256
    ).hexdigest()


def verify_ticket_signature(payload: str, signature: str, secret: Optional[str] = None) -> bool:
    """Verificar que la firma corresponde al payload"""
    expected = sign_ticket_payload(payload, secret)
    return hmac.compare_digest(signature, expected)
