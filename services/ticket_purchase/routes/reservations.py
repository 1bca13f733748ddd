"""Rutas de reservas de attendees"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict
import logging
from shared.database.connection import get_db
from shared.auth.dependencies import get_current_user
from shared.exceptions import NotFoundOrForbidden
from shared.payments.status import normalize_payment_status
from shared.utils.rate_limiter import limiter, RATE_LIMITS
from services.ticket_purchase.models.reservation import (
    CreateReservationRequest,
    PaymentStatusUpdateRequest
)
from services.ticket_purchase.services.reservation_service import ReservationService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/reservations", status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["reservation"])
async def create_reservation(
    request: Request,  # Necesario para rate limiter
    reservation_request: CreateReservationRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """
    Crear reserva de tickets en estado pending

    Acepta eventId|event_id|event_ID|event, quantity|qty|ticketCount|ticket_count
    y totalPrice|total_price|price.
    """
    service = ReservationService()
    data = await service.create_reservation(db, current_user["user_id"], reservation_request)
    return {
        "success": True,
        "message": "Reserva creada exitosamente",
        "data": data
    }


@router.patch("/reservations/{reservation_id}/payment")
@limiter.limit(RATE_LIMITS["payment_status"])
async def update_reservation_payment_status(
    request: Request,
    reservation_id: str,
    update_request: PaymentStatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """
    Actualizar estado de pago de una reserva propia

    Al confirmar se emiten los tickets antes de responder. Si la emisión
    falla el estado queda confirmado igual y la reconciliación periódica
    emite los tickets pendientes.
    """
    payment_status = normalize_payment_status(update_request.payment_status)

    service = ReservationService()
    attendee_id = await service.get_attendee_id(db, current_user["user_id"])
    if attendee_id is None:
        raise NotFoundOrForbidden("Reserva no encontrada")

    data = await service.update_payment_status(db, reservation_id, attendee_id, payment_status)
    return {
        "success": True,
        "message": "Estado de pago actualizado",
        "data": data
    }


@router.get("/reservations")
@limiter.limit(RATE_LIMITS["read"])
async def list_reservations(
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: Dict = Depends(get_current_user)
):
    """Reservas del usuario autenticado, más recientes primero"""
    service = ReservationService()
    reservations = await service.list_reservations(db, current_user["user_id"])
    return {
        "success": True,
        "count": len(reservations),
        "data": reservations
    }
